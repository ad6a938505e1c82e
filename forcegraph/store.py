"""Handle-stable node and edge storage.

Node attributes live in slot-indexed numpy arrays so the stepper can operate
on them in bulk. A removed slot goes onto a free list and its generation is
bumped; a handle carrying an old generation no longer resolves.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from .types import Handle, InvalidRequest, NodeData, NotFound

logger = logging.getLogger(__name__)

_INITIAL_CAPACITY = 16

NodeMutator = Callable[[NodeData], Optional[NodeData]]


class NodeEdgeStore:
    """Container of nodes and undirected edges addressed by :class:`Handle`."""

    def __init__(self, capacity: int = _INITIAL_CAPACITY) -> None:
        capacity = max(int(capacity), 1)
        self.positions = np.zeros((capacity, 2), dtype=float)
        self.velocities = np.zeros((capacity, 2), dtype=float)
        self.masses = np.zeros(capacity, dtype=float)
        self.repel_radii = np.zeros(capacity, dtype=float)
        self.anchored = np.zeros(capacity, dtype=bool)
        self.alive = np.zeros(capacity, dtype=bool)
        self.generations = np.zeros(capacity, dtype=np.int64)
        self._owners: List[Any] = [None] * capacity
        self._adjacency: Dict[int, Dict[int, Any]] = {}
        self._free: List[int] = []
        self._next_slot = 0
        self._edge_count = 0
        self.version = 0

    # -- capacity -------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self.alive.shape[0]

    def _grow(self) -> None:
        new_capacity = self.capacity * 2
        pad = new_capacity - self.capacity
        self.positions = np.vstack([self.positions, np.zeros((pad, 2))])
        self.velocities = np.vstack([self.velocities, np.zeros((pad, 2))])
        self.masses = np.concatenate([self.masses, np.zeros(pad)])
        self.repel_radii = np.concatenate([self.repel_radii, np.zeros(pad)])
        self.anchored = np.concatenate([self.anchored, np.zeros(pad, dtype=bool)])
        self.alive = np.concatenate([self.alive, np.zeros(pad, dtype=bool)])
        self.generations = np.concatenate([self.generations, np.zeros(pad, dtype=np.int64)])
        self._owners.extend([None] * pad)
        logger.debug("Grew node store capacity to %d", new_capacity)

    def _allocate_slot(self) -> int:
        if self._free:
            return self._free.pop()
        if self._next_slot >= self.capacity:
            self._grow()
        slot = self._next_slot
        self._next_slot += 1
        return slot

    # -- handles --------------------------------------------------------------

    def slot_of(self, handle: Handle) -> int:
        """Resolve ``handle`` to its storage slot, raising :class:`NotFound` if stale."""

        try:
            index, generation = handle
        except (TypeError, ValueError):
            raise NotFound(f"{handle!r} is not a node handle") from None
        if not (0 <= index < self._next_slot) or not self.alive[index]:
            raise NotFound(f"node {handle!r} does not exist")
        if int(self.generations[index]) != generation:
            raise NotFound(f"node {handle!r} has been removed")
        return index

    def handle_at(self, slot: int) -> Handle:
        return Handle(int(slot), int(self.generations[slot]))

    def __contains__(self, handle: object) -> bool:
        try:
            self.slot_of(handle)  # type: ignore[arg-type]
        except NotFound:
            return False
        return True

    def __len__(self) -> int:
        return self.node_count

    @property
    def node_count(self) -> int:
        return int(np.count_nonzero(self.alive))

    @property
    def edge_count(self) -> int:
        return self._edge_count

    def live_slots(self) -> np.ndarray:
        """Return the occupied slot indices in ascending order."""

        return np.flatnonzero(self.alive)

    def handles(self) -> Iterator[Handle]:
        for slot in self.live_slots():
            yield self.handle_at(slot)

    # -- nodes ----------------------------------------------------------------

    def add_node(self, data: Optional[NodeData] = None) -> Handle:
        data = data if data is not None else NodeData()
        data.validate()
        slot = self._allocate_slot()
        self.positions[slot] = (data.x, data.y)
        self.velocities[slot] = 0.0
        self.masses[slot] = data.mass
        self.repel_radii[slot] = data.repel_radius
        self.anchored[slot] = bool(data.is_anchor)
        self.alive[slot] = True
        self._owners[slot] = data.owner
        self._adjacency[slot] = {}
        self.version += 1
        return self.handle_at(slot)

    def remove_node(self, handle: Handle) -> None:
        slot = self.slot_of(handle)
        for other in list(self._adjacency[slot]):
            del self._adjacency[other][slot]
            self._edge_count -= 1
        del self._adjacency[slot]
        self.alive[slot] = False
        self.anchored[slot] = False
        self.velocities[slot] = 0.0
        self._owners[slot] = None
        self.generations[slot] += 1
        self._free.append(slot)
        self.version += 1

    def get(self, handle: Handle) -> NodeData:
        """Return a detached snapshot of the node's attributes."""

        slot = self.slot_of(handle)
        x, y = self.positions[slot]
        return NodeData(
            x=float(x),
            y=float(y),
            mass=float(self.masses[slot]),
            repel_radius=float(self.repel_radii[slot]),
            is_anchor=bool(self.anchored[slot]),
            owner=self._owners[slot],
        )

    def set(self, handle: Handle, mutator: NodeMutator) -> NodeData:
        """Apply ``mutator`` to a snapshot of the node and write the result back.

        The mutator may edit the snapshot in place or return a replacement.
        Nothing is written when validation fails.
        """

        slot = self.slot_of(handle)
        snapshot = self.get(handle)
        result = mutator(snapshot)
        updated = result if result is not None else snapshot
        if not isinstance(updated, NodeData):
            raise InvalidRequest(f"node mutator must produce NodeData, got {type(updated).__name__}")
        updated.validate()
        if bool(updated.is_anchor) != bool(self.anchored[slot]):
            self.velocities[slot] = 0.0
        self.positions[slot] = (updated.x, updated.y)
        self.masses[slot] = updated.mass
        self.repel_radii[slot] = updated.repel_radius
        self.anchored[slot] = bool(updated.is_anchor)
        self._owners[slot] = updated.owner
        return updated

    def position(self, handle: Handle) -> Tuple[float, float]:
        x, y = self.positions[self.slot_of(handle)]
        return float(x), float(y)

    def owner(self, handle: Handle) -> Any:
        return self._owners[self.slot_of(handle)]

    # -- edges ----------------------------------------------------------------

    def add_edge(self, first: Handle, second: Handle, owner: Any = None) -> None:
        """Connect two nodes, or update the owner tag when they already are."""

        a = self.slot_of(first)
        b = self.slot_of(second)
        if a == b:
            raise InvalidRequest(f"self-loop on {first!r} is not allowed")
        if b in self._adjacency[a]:
            self._adjacency[a][b] = owner
            self._adjacency[b][a] = owner
            return
        self._adjacency[a][b] = owner
        self._adjacency[b][a] = owner
        self._edge_count += 1
        self.version += 1

    def remove_edge(self, first: Handle, second: Handle) -> None:
        a = self.slot_of(first)
        b = self.slot_of(second)
        if b not in self._adjacency[a]:
            raise NotFound(f"no edge between {first!r} and {second!r}")
        del self._adjacency[a][b]
        del self._adjacency[b][a]
        self._edge_count -= 1
        self.version += 1

    def has_edge(self, first: Handle, second: Handle) -> bool:
        return self.slot_of(second) in self._adjacency[self.slot_of(first)]

    def edge_owner(self, first: Handle, second: Handle) -> Any:
        a = self.slot_of(first)
        b = self.slot_of(second)
        try:
            return self._adjacency[a][b]
        except KeyError:
            raise NotFound(f"no edge between {first!r} and {second!r}") from None

    def neighbors(self, handle: Handle) -> List[Handle]:
        return [self.handle_at(slot) for slot in self._adjacency[self.slot_of(handle)]]

    def degree(self, handle: Handle) -> int:
        return len(self._adjacency[self.slot_of(handle)])

    def edges(self) -> Iterator[Tuple[Handle, Handle, Any]]:
        """Yield every undirected edge once, lower slot first."""

        for slot in self.live_slots():
            for other, owner in self._adjacency[int(slot)].items():
                if other > slot:
                    yield self.handle_at(slot), self.handle_at(other), owner

    def neighbor_slots(self, slot: int) -> List[int]:
        return list(self._adjacency[int(slot)])

    def directed_edge_slots(self) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(src, dst)`` slot arrays listing each edge in both directions."""

        src: List[int] = []
        dst: List[int] = []
        for slot, others in self._adjacency.items():
            for other in others:
                src.append(slot)
                dst.append(other)
        return np.asarray(src, dtype=np.intp), np.asarray(dst, dtype=np.intp)

    def clear(self) -> None:
        """Remove every node and edge; all outstanding handles become stale."""

        for slot in self.live_slots():
            self.generations[slot] += 1
        self.alive[:] = False
        self.anchored[:] = False
        self.velocities[:] = 0.0
        self._owners = [None] * self.capacity
        self._adjacency.clear()
        self._free = list(range(self._next_slot - 1, -1, -1))
        self._edge_count = 0
        self.version += 1


__all__ = ["NodeEdgeStore", "NodeMutator"]
