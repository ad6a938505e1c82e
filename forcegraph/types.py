"""Core value types shared by the force graph engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, fields
from typing import Any, FrozenSet, Mapping, NamedTuple, Optional


class GraphError(Exception):
    """Base class for every error raised by the engine."""


class NotFound(GraphError, KeyError):
    """Raised when an operation references a handle that is not in the graph."""

    def __str__(self) -> str:  # KeyError quotes its message otherwise
        return str(self.args[0]) if self.args else "not found"


class InvalidRequest(GraphError, ValueError):
    """Raised when arguments are malformed (self-loops, negative dt, bad parameters)."""


class WouldUnanchorComponent(GraphError):
    """Raised when a deletion or anchor toggle would leave a component without a fixed point."""


class InvalidTopology(GraphError, ValueError):
    """Raised when a structural edit is not valid for the node's neighborhood or role."""


class Handle(NamedTuple):
    """Stable reference to a node: storage slot plus the slot's generation."""

    index: int
    generation: int = 0

    def __repr__(self) -> str:
        return f"Handle({self.index}@{self.generation})"


@dataclass
class NodeData:
    """User-editable node attributes.

    ``repel_radius`` is the half-distance scale of the repulsion falloff and
    ``owner`` is an opaque tag mapping the node back to caller-side entities.
    """

    x: float = 0.0
    y: float = 0.0
    mass: float = 10.0
    repel_radius: float = 40.0
    is_anchor: bool = False
    owner: Any = None

    def validate(self) -> None:
        if not (math.isfinite(self.x) and math.isfinite(self.y)):
            raise InvalidRequest(f"node position must be finite, got ({self.x}, {self.y})")
        if not (self.mass > 0.0 and math.isfinite(self.mass)):
            raise InvalidRequest(f"node mass must be positive, got {self.mass}")
        if not (self.repel_radius >= 0.0 and math.isfinite(self.repel_radius)):
            raise InvalidRequest(f"repel radius must be non-negative, got {self.repel_radius}")


@dataclass(frozen=True)
class SimulationParameters:
    """Per-session simulation constants."""

    force_charge: float = 12000.0
    force_spring: float = 0.3
    force_max: float = 280.0
    node_speed: float = 7000.0
    damping_factor: float = 0.95
    min_attract_distance: float = 0.0

    def __post_init__(self) -> None:
        for entry in fields(self):
            value = getattr(self, entry.name)
            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise InvalidRequest(f"{entry.name} must be a number, got {value!r}")
            if not math.isfinite(value) or value < 0.0:
                raise InvalidRequest(f"{entry.name} must be finite and non-negative, got {value}")
        if self.damping_factor > 1.0:
            raise InvalidRequest(f"damping_factor must lie in [0, 1], got {self.damping_factor}")

    @classmethod
    def from_mapping(
        cls, values: Mapping[str, Any], base: Optional["SimulationParameters"] = None
    ) -> "SimulationParameters":
        """Build parameters from ``values``, falling back to ``base`` for missing keys."""

        known = {entry.name for entry in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise InvalidRequest(f"unknown simulation parameter(s): {', '.join(unknown)}")
        merged = {name: getattr(base or cls(), name) for name in known}
        for key, value in values.items():
            try:
                merged[key] = float(value)
            except (TypeError, ValueError) as exc:
                raise InvalidRequest(f"{key} must be a number, got {value!r}") from exc
        return cls(**merged)


@dataclass(frozen=True)
class RemovalTree:
    """Nodes that become unreachable from a keep-alive root when ``start`` is deleted."""

    nodes: FrozenSet[Handle] = field(default_factory=frozenset)
    remainder: Optional[Handle] = None

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, handle: object) -> bool:
        return handle in self.nodes

    def __iter__(self):
        return iter(sorted(self.nodes))


__all__ = [
    "GraphError",
    "NotFound",
    "InvalidRequest",
    "WouldUnanchorComponent",
    "InvalidTopology",
    "Handle",
    "NodeData",
    "SimulationParameters",
    "RemovalTree",
]
