"""Structural editing policies layered over :class:`ForceGraph`.

The editor keeps the bookkeeping an interactive mind-map needs on top of the
raw graph: which node anchors each component (the root registry), which node
is active, where navigation was last heading, and whether the layout is still
settling.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

import numpy as np

from .config import (
    ANIMATION_MOVEMENT_THRESHOLD,
    DEFAULT_MASS_INCREASE_AMOUNT,
    DEFAULT_NODE_MASS,
    DEFAULT_REPEL_RADIUS,
    DEFAULT_UPDATE_DELTA,
    INITIAL_HEADING,
    MIN_INSERT_OFFSET,
)
from .graph import ForceGraph
from .logging_utils import apply_debug_logging
from .navigation import TargetCycler, heading_between
from .types import (
    Handle,
    InvalidRequest,
    InvalidTopology,
    NodeData,
    NotFound,
    SimulationParameters,
    WouldUnanchorComponent,
)

logger = logging.getLogger(__name__)


class RootRegistry:
    """Maps ephemeral component ids to the node anchoring each component.

    Component ids go stale after any structural edit, so :meth:`rebuild` must
    run before the registry is queried again.
    """

    def __init__(self) -> None:
        self._roots: Dict[int, Handle] = {}

    def __len__(self) -> int:
        return len(self._roots)

    def __contains__(self, component: object) -> bool:
        return component in self._roots

    def items(self) -> Iterator[Tuple[int, Handle]]:
        return iter(list(self._roots.items()))

    def register(self, graph: ForceGraph, handle: Handle) -> int:
        component = graph.component_id(handle)
        self._roots[component] = handle
        return component

    def forget(self, handle: Handle) -> None:
        self._roots = {c: h for c, h in self._roots.items() if h != handle}

    def is_root(self, handle: Handle) -> bool:
        return handle in self._roots.values()

    def root_of(self, graph: ForceGraph, handle: Handle) -> Handle:
        component = graph.component_id(handle)
        try:
            return self._roots[component]
        except KeyError:
            raise NotFound(f"component {component} of {handle!r} has no registered root") from None

    def rebuild(self, graph: ForceGraph) -> None:
        """Re-derive every surviving root's component id; the earliest root of a merged component wins."""

        rebuilt: Dict[int, Handle] = {}
        for handle in self._roots.values():
            if handle not in graph:
                continue
            component = graph.component_id(handle)
            if component in rebuilt:
                logger.info("Root %r dropped: component %d already held by %r", handle, component, rebuilt[component])
                continue
            rebuilt[component] = handle
        self._roots = rebuilt


class GraphEditor:
    """Interactive editing session over a single :class:`ForceGraph`."""

    def __init__(
        self,
        parameters: Optional[SimulationParameters] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        default_owner: Any = None,
    ) -> None:
        self.graph = ForceGraph(parameters)
        self.roots = RootRegistry()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.targets = TargetCycler()
        self.last_heading = INITIAL_HEADING
        self.active: Optional[Handle] = None
        self.animating = True
        self.last_move = 0.0
        self.default_node = self.graph.add_node(
            NodeData(x=0.0, y=0.0, mass=DEFAULT_NODE_MASS, repel_radius=DEFAULT_REPEL_RADIUS,
                     is_anchor=True, owner=default_owner)
        )
        self.roots.register(self.graph, self.default_node)
        self.set_active(self.default_node)

    @property
    def parameters(self) -> SimulationParameters:
        return self.graph.parameters

    def _changed(self, fallback: Optional[Handle] = None) -> None:
        self.roots.rebuild(self.graph)
        self.animating = True
        if self.active is None or self.active not in self.graph:
            self.active = None
            self.set_active(fallback if fallback is not None else self.default_node)
            return
        current = self.targets.current
        self.targets.reset(self.graph.ordered_neighbors(self.active, self.last_heading))
        if current is not None and current in self.targets.targets:
            self.targets.select(current)

    # -- roots ----------------------------------------------------------------

    def is_root(self, handle: Handle) -> bool:
        return self.roots.is_root(handle)

    def root_of(self, handle: Handle) -> Handle:
        return self.roots.root_of(self.graph, handle)

    def deletion_count(self, handle: Handle) -> int:
        """Number of nodes :meth:`delete_subtree` would remove for ``handle``."""

        return self.graph.topology.deletion_count(handle, self.root_of(handle))

    # -- insertion ------------------------------------------------------------

    def add_child(self, parent: Handle, owner: Any = None, edge_owner: Any = None) -> Handle:
        """Attach a new node to ``parent``, jittered so the two never coincide."""

        px, py = self.graph.position(parent)
        spread = max(self.parameters.min_attract_distance, MIN_INSERT_OFFSET)
        ox, oy = (self.rng.random(2) - 0.5) * spread
        child = self.graph.add_node(
            NodeData(x=px + float(ox), y=py + float(oy), mass=DEFAULT_NODE_MASS,
                     repel_radius=DEFAULT_REPEL_RADIUS, owner=owner)
        )
        self.graph.add_edge(parent, child, edge_owner)
        logger.info("Added %r under %r", child, parent)
        self._changed()
        return child

    def add_external_node(self, owner: Any = None, x: float = 0.0, y: float = 0.0) -> Handle:
        """Start a new component whose anchored root is the new node."""

        node = self.graph.add_node(
            NodeData(x=x, y=y, mass=DEFAULT_NODE_MASS, repel_radius=DEFAULT_REPEL_RADIUS,
                     is_anchor=True, owner=owner)
        )
        self.roots.rebuild(self.graph)
        component = self.roots.register(self.graph, node)
        logger.info("Added external root %r for component %d", node, component)
        self._changed()
        return node

    def insert_between(self, first: Handle, second: Handle, owner: Any = None) -> Handle:
        """Split the edge ``first``-``second`` with a new node at its midpoint and activate it."""

        if not self.graph.has_edge(first, second):
            logger.warning("Insert rejected: %r and %r are not adjacent", first, second)
            raise InvalidTopology(f"no edge between {first!r} and {second!r} to insert into")
        edge_owner = self.graph.store.edge_owner(first, second)
        (ax, ay), (bx, by) = self.graph.position(first), self.graph.position(second)
        middle = self.graph.add_node(
            NodeData(x=(ax + bx) * 0.5, y=(ay + by) * 0.5, mass=DEFAULT_NODE_MASS,
                     repel_radius=DEFAULT_REPEL_RADIUS, owner=owner)
        )
        self.graph.add_edge(first, middle, edge_owner)
        self.graph.add_edge(middle, second, edge_owner)
        self.graph.remove_edge(first, second)
        logger.info("Inserted %r between %r and %r", middle, first, second)
        self._changed()
        self.set_active(middle)
        return middle

    # -- removal --------------------------------------------------------------

    def delete_subtree(self, handle: Handle) -> Handle:
        """Delete ``handle`` and everything that would lose its path to the component root.

        Returns the node to activate next.
        """

        if handle == self.default_node:
            logger.warning("Delete rejected: %r is the default node", handle)
            raise InvalidTopology("the default node cannot be deleted")
        root = self.root_of(handle)
        tree = self.graph.removal_tree(handle, root)

        if self.roots.is_root(handle):
            # The default node roots component 0 and is never deleted, so a
            # root deletion always takes its whole component with no remainder.
            for node in tree:
                self.graph.remove_node(node)
            self.roots.forget(handle)
            follow = self.default_node
            logger.info("Deleted root %r and %d node(s) of its component", handle, len(tree))
        else:
            anchors = self.graph.topology.anchors_in_component(handle)
            if anchors and all(node in tree for node in anchors):
                logger.warning("Delete rejected: %r would unanchor its component", handle)
                raise WouldUnanchorComponent(
                    f"deleting {handle!r} would remove every anchor of its component"
                )
            survivors = sorted(n for n in self.graph.neighbors(handle) if n not in tree)
            follow = survivors[0] if survivors else self.default_node
            for node in tree:
                self.graph.remove_node(node)
            logger.info("Deleted %r with %d node(s)", handle, len(tree))

        self._changed(fallback=follow)
        return follow

    def snip(self, handle: Handle) -> Handle:
        """Remove a node of degree two or less, joining its two neighbors if it had two.

        Returns the node to activate next.
        """

        if self.roots.is_root(handle):
            logger.warning("Snip rejected: %r is a root", handle)
            raise InvalidTopology("a root node cannot be snipped")
        neighbors = self.graph.neighbors(handle)
        if len(neighbors) > 2:
            logger.warning("Snip rejected: %r has %d neighbors", handle, len(neighbors))
            raise InvalidTopology(f"{handle!r} has more than 2 neighbors")
        if neighbors and self.graph.is_sole_anchor(handle):
            logger.warning("Snip rejected: %r is the only anchor of its component", handle)
            raise WouldUnanchorComponent(f"{handle!r} is the only anchor of its component")

        if len(neighbors) == 2:
            owner = self.graph.store.edge_owner(handle, neighbors[0])
            self.graph.add_edge(neighbors[0], neighbors[1], owner)
        self.graph.remove_node(handle)
        follow = neighbors[0] if neighbors else self.default_node
        logger.info("Snipped %r (%d neighbor(s))", handle, len(neighbors))

        self._changed(fallback=follow)
        return follow

    # -- node attributes ------------------------------------------------------

    def toggle_anchor(self, handle: Handle) -> bool:
        """Flip the anchor flag of ``handle`` and return the new state."""

        if self.graph.get(handle).is_anchor and self.graph.is_sole_anchor(handle):
            logger.warning("Anchor toggle rejected: %r is the only anchor of its component", handle)
            raise WouldUnanchorComponent(f"{handle!r} is the only anchor of its component")
        updated = self.graph.set(handle, _flip_anchor)
        self.animating = True
        return updated.is_anchor

    def move_node(self, handle: Handle, dx: float, dy: float) -> Tuple[float, float]:
        """Pin ``handle`` in place and shift it by ``(dx, dy)``."""

        if handle == self.default_node:
            raise InvalidRequest("the default node cannot be moved")

        def shift(data: NodeData) -> None:
            data.is_anchor = True
            data.x += dx
            data.y += dy

        updated = self.graph.set(handle, shift)
        self.animating = True
        return updated.x, updated.y

    def increase_mass(self, handle: Handle) -> float:
        def grow(data: NodeData) -> None:
            data.mass += DEFAULT_MASS_INCREASE_AMOUNT
            if data.mass > DEFAULT_MASS_INCREASE_AMOUNT:
                data.mass = float(round(data.mass))

        self.animating = True
        return self.graph.set(handle, grow).mass

    def decrease_mass(self, handle: Handle) -> float:
        """Lower the mass by one step; steps shrink tenfold near zero so mass stays positive."""

        step = DEFAULT_MASS_INCREASE_AMOUNT

        def shrink(data: NodeData) -> None:
            if data.mass > step + 0.1:
                data.mass = float(round(data.mass - step))
            elif data.mass > (step + 0.1) / 10.0:
                data.mass -= step / 10.0
            elif data.mass > (step + 0.01) / 100.0:
                data.mass -= step / 100.0

        self.animating = True
        return self.graph.set(handle, shrink).mass

    def reset_mass(self, handle: Handle) -> float:
        def restore(data: NodeData) -> None:
            data.mass = DEFAULT_NODE_MASS

        self.animating = True
        return self.graph.set(handle, restore).mass

    # -- navigation -----------------------------------------------------------

    def set_active(self, handle: Handle) -> None:
        """Make ``handle`` active, remembering the heading of the move."""

        position = self.graph.position(handle)
        if self.active is not None and self.active != handle and self.active in self.graph:
            self.last_heading = heading_between(self.graph.position(self.active), position)
        self.active = handle
        self.targets.reset(self.graph.ordered_neighbors(handle, self.last_heading))
        self.targets.cycle_forward()

    @property
    def target(self) -> Optional[Handle]:
        return self.targets.current

    def cycle_target_forward(self) -> Optional[Handle]:
        return self.targets.cycle_forward()

    def cycle_target_backward(self) -> Optional[Handle]:
        return self.targets.cycle_backward()

    def activate_target(self) -> Optional[Handle]:
        target = self.targets.current
        if target is not None:
            self.set_active(target)
        return target

    # -- simulation -----------------------------------------------------------

    def tick(self, dt: float = DEFAULT_UPDATE_DELTA) -> float:
        """Advance the layout while it is still settling; returns the largest move."""

        if not self.animating:
            return 0.0
        moved = self.graph.update(dt)
        self.last_move = moved
        if moved < ANIMATION_MOVEMENT_THRESHOLD:
            self.animating = False
            logger.debug("Layout settled (largest move %.4f)", moved)
        return moved

    def run_until_idle(self, dt: float = DEFAULT_UPDATE_DELTA, max_ticks: int = 10_000) -> int:
        ticks = 0
        while self.animating and ticks < max_ticks:
            self.tick(dt)
            ticks += 1
        return ticks


def _flip_anchor(data: NodeData) -> None:
    data.is_anchor = not data.is_anchor


apply_debug_logging(globals(), logger=logger)


__all__ = ["RootRegistry", "GraphEditor"]
