"""One tick of the spring/repulsion simulation."""

from __future__ import annotations

import logging
import math
from typing import Tuple

import numpy as np
from scipy.special import expit

from .store import NodeEdgeStore
from .types import InvalidRequest, SimulationParameters

logger = logging.getLogger(__name__)


def _unit_vectors(delta: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(unit, distance)`` for rows of ``delta``; coincident rows map to zero."""

    distance = np.hypot(delta[:, 0], delta[:, 1])
    safe = np.where(distance > 0.0, distance, 1.0)
    unit = delta / safe[:, None]
    unit[distance == 0.0] = 0.0
    return unit, distance


def _clamped(force: np.ndarray, parameters: SimulationParameters, dt: float) -> np.ndarray:
    limit = parameters.force_max
    return np.clip(force, -limit, limit) * dt


def attraction_forces(
    store: NodeEdgeStore, parameters: SimulationParameters, dt: float
) -> np.ndarray:
    """Accumulate spring pulls along every edge onto each non-anchored endpoint."""

    accel = np.zeros_like(store.positions)
    src, dst = store.directed_edge_slots()
    if src.size == 0:
        return accel
    unit, distance = _unit_vectors(store.positions[dst] - store.positions[src])
    magnitude = parameters.force_spring * distance * 0.5
    contribution = _clamped(unit * magnitude[:, None], parameters, dt)
    free = ~store.anchored[src]
    np.add.at(accel, src[free], contribution[free])
    return accel


def repulsion_strength(
    distance: np.ndarray, scale: np.ndarray, parameters: SimulationParameters
) -> np.ndarray:
    """Logistic repulsion: ``-charge`` at contact, decaying to zero past ``scale / 2``.

    A pair with zero combined scale does not repel.
    """

    safe_scale = np.where(scale > 0.0, scale, 1.0)
    strength = -parameters.force_charge * expit(-10.0 * (distance - safe_scale / 2.0) / safe_scale)
    return np.where(scale > 0.0, strength, 0.0)


def repulsion_forces(
    store: NodeEdgeStore, parameters: SimulationParameters, dt: float
) -> np.ndarray:
    """Accumulate pairwise repulsion, visiting every unordered pair of live nodes once."""

    accel = np.zeros_like(store.positions)
    live = store.live_slots()
    if live.size < 2:
        return accel
    upper_i, upper_j = np.triu_indices(live.size, k=1)
    first = live[upper_i]
    second = live[upper_j]

    unit, distance = _unit_vectors(store.positions[second] - store.positions[first])
    reach = store.repel_radii / 10.0 * store.masses
    scale = reach[first] + reach[second]
    strength = repulsion_strength(distance, scale, parameters)

    push = unit * strength[:, None]
    on_first = _clamped(push, parameters, dt)
    on_second = _clamped(-push, parameters, dt)

    free_first = ~store.anchored[first]
    free_second = ~store.anchored[second]
    np.add.at(accel, first[free_first], on_first[free_first])
    np.add.at(accel, second[free_second], on_second[free_second])
    return accel


def step(store: NodeEdgeStore, parameters: SimulationParameters, dt: float) -> float:
    """Advance every non-anchored node by ``dt`` seconds.

    Returns the largest single-axis displacement of any node during this tick.
    Anchored nodes accumulate no force and are never written.
    """

    if not math.isfinite(dt) or dt < 0.0:
        raise InvalidRequest(f"dt must be finite and non-negative, got {dt}")
    if store.node_count == 0:
        return 0.0

    accel = attraction_forces(store, parameters, dt) + repulsion_forces(store, parameters, dt)

    moving = store.live_slots()
    moving = moving[~store.anchored[moving]]
    if moving.size == 0:
        return 0.0

    velocity = store.velocities[moving]
    velocity = (velocity + accel[moving] * dt * parameters.node_speed) * parameters.damping_factor
    displacement = velocity * dt
    store.velocities[moving] = velocity
    store.positions[moving] += displacement

    largest = float(np.max(np.abs(displacement)))
    logger.debug("Stepped %d free node(s) by dt=%.4f, largest move %.6f", moving.size, dt, largest)
    return largest


__all__ = [
    "attraction_forces",
    "repulsion_strength",
    "repulsion_forces",
    "step",
]
