"""The force graph: storage, simulation, topology and navigation behind one object."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Tuple

from .config import get_default_parameters
from .navigation import ordered_neighbors
from .stepper import step
from .store import NodeEdgeStore, NodeMutator
from .topology import TopologyAnalyzer
from .types import Handle, NodeData, RemovalTree, SimulationParameters


class ForceGraph:
    """A mutable, possibly disconnected, undirected graph laid out by a force simulation.

    The graph is single-threaded: callers serialize edits and ``update``
    calls themselves.
    """

    def __init__(self, parameters: Optional[SimulationParameters] = None) -> None:
        self.parameters = parameters if parameters is not None else get_default_parameters()
        self.store = NodeEdgeStore()
        self.topology = TopologyAnalyzer(self.store)

    def __len__(self) -> int:
        return self.store.node_count

    def __contains__(self, handle: object) -> bool:
        return handle in self.store

    def __repr__(self) -> str:
        return f"ForceGraph(nodes={self.node_count}, edges={self.edge_count})"

    # -- storage --------------------------------------------------------------

    @property
    def node_count(self) -> int:
        return self.store.node_count

    @property
    def edge_count(self) -> int:
        return self.store.edge_count

    def add_node(self, data: Optional[NodeData] = None) -> Handle:
        return self.store.add_node(data)

    def remove_node(self, handle: Handle) -> None:
        """Remove ``handle`` together with its incident edges."""

        self.store.remove_node(handle)

    def add_edge(self, first: Handle, second: Handle, owner: Any = None) -> None:
        self.store.add_edge(first, second, owner)

    def remove_edge(self, first: Handle, second: Handle) -> None:
        self.store.remove_edge(first, second)

    def has_edge(self, first: Handle, second: Handle) -> bool:
        return self.store.has_edge(first, second)

    def neighbors(self, handle: Handle) -> List[Handle]:
        return self.store.neighbors(handle)

    def degree(self, handle: Handle) -> int:
        return self.store.degree(handle)

    def get(self, handle: Handle) -> NodeData:
        return self.store.get(handle)

    def set(self, handle: Handle, mutator: NodeMutator) -> NodeData:
        return self.store.set(handle, mutator)

    def position(self, handle: Handle) -> Tuple[float, float]:
        return self.store.position(handle)

    def nodes(self) -> Iterator[Handle]:
        return self.store.handles()

    def edges(self) -> Iterator[Tuple[Handle, Handle, Any]]:
        return self.store.edges()

    def find_owner(self, owner: Any) -> Optional[Handle]:
        """Return the first node tagged with ``owner``, if any."""

        for handle in self.store.handles():
            if self.store.owner(handle) == owner:
                return handle
        return None

    def clear(self) -> None:
        self.store.clear()

    # -- simulation -----------------------------------------------------------

    def update(self, dt: float) -> float:
        """Advance the layout by ``dt`` seconds and return the largest per-axis move."""

        return step(self.store, self.parameters, dt)

    # -- topology -------------------------------------------------------------

    def component_id(self, handle: Handle) -> int:
        return self.topology.component_id(handle)

    def same_component(self, first: Handle, second: Handle) -> bool:
        return self.topology.same_component(first, second)

    def is_connected(self, first: Handle, second: Handle) -> bool:
        return self.topology.is_connected(first, second)

    def components(self) -> Dict[int, List[Handle]]:
        return self.topology.components()

    def component_count(self) -> int:
        return self.topology.component_count()

    def removal_tree(self, start: Handle, root: Handle) -> RemovalTree:
        return self.topology.removal_tree(start, root)

    def is_sole_anchor(self, handle: Handle) -> bool:
        return self.topology.is_sole_anchor(handle)

    # -- navigation -----------------------------------------------------------

    def ordered_neighbors(self, center: Handle, last_heading: float) -> List[Handle]:
        return ordered_neighbors(self.store, center, last_heading)


__all__ = ["ForceGraph"]
