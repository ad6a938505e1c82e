"""Named defaults and the process-wide default simulation parameters."""

from __future__ import annotations

import math

from .types import SimulationParameters

DEFAULT_NODE_MASS = 10.0
DEFAULT_REPEL_RADIUS = 40.0
DEFAULT_MASS_INCREASE_AMOUNT = 2.0

# Frame delta of the editor's animation timer (seconds).
DEFAULT_UPDATE_DELTA = 0.032
# Largest per-tick displacement below which a graph counts as idle.
ANIMATION_MOVEMENT_THRESHOLD = 0.1
# Lower bound on the random offset given to freshly inserted nodes.
MIN_INSERT_OFFSET = 1.0
# Navigation starts out heading "up" in screen coordinates.
INITIAL_HEADING = math.tau - math.pi / 2

_DEFAULT_PARAMETERS = SimulationParameters()


def get_default_parameters() -> SimulationParameters:
    return _DEFAULT_PARAMETERS


def set_default_parameters(parameters: SimulationParameters) -> None:
    global _DEFAULT_PARAMETERS
    if not isinstance(parameters, SimulationParameters):
        raise TypeError(f"expected SimulationParameters, got {type(parameters).__name__}")
    _DEFAULT_PARAMETERS = parameters


__all__ = [
    "DEFAULT_NODE_MASS",
    "DEFAULT_REPEL_RADIUS",
    "DEFAULT_MASS_INCREASE_AMOUNT",
    "DEFAULT_UPDATE_DELTA",
    "ANIMATION_MOVEMENT_THRESHOLD",
    "MIN_INSERT_OFFSET",
    "INITIAL_HEADING",
    "get_default_parameters",
    "set_default_parameters",
]
