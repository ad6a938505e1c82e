from .types import (
    GraphError,
    NotFound,
    InvalidRequest,
    WouldUnanchorComponent,
    InvalidTopology,
    Handle,
    NodeData,
    SimulationParameters,
    RemovalTree,
)
from .config import get_default_parameters, set_default_parameters
from .store import NodeEdgeStore
from .stepper import step
from .topology import PRIMORDIAL_COMPONENT, TopologyAnalyzer
from .navigation import TargetCycler, heading_between, ordered_neighbors
from .graph import ForceGraph
from .editor import GraphEditor, RootRegistry

__all__ = [
    'GraphError',
    'NotFound',
    'InvalidRequest',
    'WouldUnanchorComponent',
    'InvalidTopology',
    'Handle',
    'NodeData',
    'SimulationParameters',
    'RemovalTree',
    'get_default_parameters',
    'set_default_parameters',
    'NodeEdgeStore',
    'step',
    'PRIMORDIAL_COMPONENT',
    'TopologyAnalyzer',
    'TargetCycler',
    'heading_between',
    'ordered_neighbors',
    'ForceGraph',
    'GraphEditor',
    'RootRegistry',
]
