"""Connected components, removal trees and anchor checks.

Component labels are recomputed from scratch whenever the store's structure
changes and cached until the next structural mutation. Labels are canonical:
components are numbered in order of their lowest occupied slot, so the
component holding the earliest-added surviving node is always ``0``.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Dict, List, Optional, Set

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse.csgraph import connected_components, shortest_path

from .logging_utils import apply_debug_logging
from .store import NodeEdgeStore
from .types import Handle, RemovalTree

logger = logging.getLogger(__name__)

PRIMORDIAL_COMPONENT = 0


class TopologyAnalyzer:
    """Derived graph-theoretic queries over a :class:`NodeEdgeStore`."""

    def __init__(self, store: NodeEdgeStore) -> None:
        self._store = store
        self._version: Optional[int] = None
        self._compact = np.zeros(0, dtype=np.intp)
        self._labels = np.zeros(0, dtype=np.intp)
        self._matrix: Optional[csr_matrix] = None
        self._members: Dict[int, List[int]] = {}

    def _refresh(self) -> None:
        store = self._store
        if self._version == store.version:
            return

        live = store.live_slots()
        compact = np.full(store.capacity, -1, dtype=np.intp)
        compact[live] = np.arange(live.size)
        src, dst = store.directed_edge_slots()

        matrix = None
        if live.size:
            matrix = csr_matrix(
                (np.ones(src.size), (compact[src], compact[dst])),
                shape=(live.size, live.size),
            )
            _, raw = connected_components(matrix, directed=False)
            _, first_seen = np.unique(raw, return_index=True)
            canonical = np.empty(first_seen.size, dtype=np.intp)
            canonical[np.argsort(first_seen)] = np.arange(first_seen.size)
            labels = canonical[raw]
        else:
            labels = np.zeros(0, dtype=np.intp)

        members: Dict[int, List[int]] = {}
        for slot, label in zip(live.tolist(), labels.tolist()):
            members.setdefault(label, []).append(slot)

        self._compact = compact
        self._labels = labels
        self._matrix = matrix
        self._members = members
        self._version = store.version
        logger.debug("Labelled %d component(s) over %d node(s)", len(members), live.size)

    def _label_of_slot(self, slot: int) -> int:
        return int(self._labels[self._compact[slot]])

    # -- components -----------------------------------------------------------

    def component_id(self, handle: Handle) -> int:
        """Return the component label of ``handle``; valid until the next structural edit."""

        slot = self._store.slot_of(handle)
        self._refresh()
        return self._label_of_slot(slot)

    def same_component(self, first: Handle, second: Handle) -> bool:
        return self.component_id(first) == self.component_id(second)

    is_connected = same_component

    def component_count(self) -> int:
        self._refresh()
        return len(self._members)

    def components(self) -> Dict[int, List[Handle]]:
        self._refresh()
        return {
            label: [self._store.handle_at(slot) for slot in slots]
            for label, slots in self._members.items()
        }

    def component_members(self, handle: Handle) -> List[Handle]:
        label = self.component_id(handle)
        return [self._store.handle_at(slot) for slot in self._members[label]]

    # -- removal trees --------------------------------------------------------

    def _reachable(self, start: int, blocked: int) -> Set[int]:
        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for other in self._store.neighbor_slots(current):
                if other == blocked or other in seen:
                    continue
                seen.add(other)
                queue.append(other)
        return seen

    def _hops_from(self, slot: int) -> np.ndarray:
        hops = shortest_path(
            self._matrix, directed=False, unweighted=True, indices=int(self._compact[slot])
        )
        return np.asarray(hops).reshape(-1)

    def removal_tree(self, start: Handle, root: Handle) -> RemovalTree:
        """Nodes that stop being reachable from ``root`` once ``start`` is deleted.

        ``start`` itself is always part of a non-empty result. When ``start``
        and ``root`` are in different components nothing is reachable and the
        result is empty.

        Deleting the root itself takes its whole component. If that component
        is the primordial one (label ``0``) the node nearest the root is spared
        and reported as ``remainder`` so the caller can re-anchor it. This is a
        recovery heuristic, not a structural guarantee.
        """

        start_slot = self._store.slot_of(start)
        root_slot = self._store.slot_of(root)
        self._refresh()
        label = self._label_of_slot(start_slot)
        if label != self._label_of_slot(root_slot):
            logger.debug("Removal tree requested across components: %r / %r", start, root)
            return RemovalTree()

        component = set(self._members[label])
        if start_slot != root_slot:
            survivors = self._reachable(root_slot, blocked=start_slot)
            doomed = component - survivors
            return RemovalTree(frozenset(self._store.handle_at(slot) for slot in doomed))

        doomed = component
        remainder: Optional[Handle] = None
        candidates = sorted(slot for slot in doomed if slot != root_slot)
        if label == PRIMORDIAL_COMPONENT and candidates:
            hops = self._hops_from(root_slot)
            nearest = min(candidates, key=lambda slot: (hops[self._compact[slot]], slot))
            doomed = doomed - {nearest}
            remainder = self._store.handle_at(nearest)
            logger.debug("Sparing %r as remainder of primordial component", remainder)
        return RemovalTree(frozenset(self._store.handle_at(slot) for slot in doomed), remainder)

    def deletion_count(self, start: Handle, root: Handle) -> int:
        return len(self.removal_tree(start, root))

    # -- anchors --------------------------------------------------------------

    def is_sole_anchor(self, handle: Handle) -> bool:
        """True when ``handle`` is anchored and no other node of its component is."""

        slot = self._store.slot_of(handle)
        if not self._store.anchored[slot]:
            return False
        self._refresh()
        members = self._members[self._label_of_slot(slot)]
        return int(np.count_nonzero(self._store.anchored[members])) == 1

    def anchors_in_component(self, handle: Handle) -> List[Handle]:
        store = self._store
        return [h for h in self.component_members(handle) if store.anchored[h.index]]


apply_debug_logging(globals(), logger=logger)


__all__ = ["PRIMORDIAL_COMPONENT", "TopologyAnalyzer"]
