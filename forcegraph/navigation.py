"""Angular neighbor ordering for keyboard navigation."""

from __future__ import annotations

import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .store import NodeEdgeStore
from .types import Handle, NotFound

Point = Tuple[float, float]


def heading_between(origin: Point, target: Point) -> float:
    """Return the angle of the step from ``origin`` to ``target`` in radians."""

    return math.atan2(target[1] - origin[1], target[0] - origin[0])


def ordered_neighbors(store: NodeEdgeStore, center: Handle, last_heading: float) -> List[Handle]:
    """Neighbors of ``center`` in ascending angle, starting with the one closest to ``last_heading``.

    Equal angles fall back to handle order so the result is deterministic.
    """

    neighbors = store.neighbors(center)
    if not neighbors:
        return []

    origin = np.asarray(store.position(center))
    offsets = np.array([store.position(n) for n in neighbors]) - origin
    angles = np.arctan2(offsets[:, 1], offsets[:, 0])

    tie_break = np.array([(n.index, n.generation) for n in neighbors])
    order = np.lexsort((tie_break[:, 1], tie_break[:, 0], angles))
    angles = angles[order]

    heading = np.array([math.cos(last_heading), math.sin(last_heading)])
    directions = np.column_stack([np.cos(angles), np.sin(angles)])
    deviation = np.abs(np.arccos(np.clip(directions @ heading, -1.0, 1.0)))
    start = int(np.argmin(deviation))

    rotated = np.roll(order, -start)
    return [neighbors[i] for i in rotated]


class TargetCycler:
    """Cursor over an ordered list of navigation targets."""

    def __init__(self, targets: Sequence[Handle] = ()) -> None:
        self._targets: List[Handle] = list(targets)
        self._cursor: Optional[int] = None

    def __len__(self) -> int:
        return len(self._targets)

    @property
    def targets(self) -> List[Handle]:
        return list(self._targets)

    @property
    def current(self) -> Optional[Handle]:
        if self._cursor is None:
            return None
        return self._targets[self._cursor]

    def reset(self, targets: Sequence[Handle]) -> None:
        self._targets = list(targets)
        self._cursor = None

    def cycle_forward(self) -> Optional[Handle]:
        if not self._targets:
            return None
        if self._cursor is None or self._cursor == len(self._targets) - 1:
            self._cursor = 0
        else:
            self._cursor += 1
        return self.current

    def cycle_backward(self) -> Optional[Handle]:
        if not self._targets:
            return None
        if self._cursor is None or self._cursor == 0:
            self._cursor = len(self._targets) - 1
        else:
            self._cursor -= 1
        return self.current

    def select(self, handle: Handle) -> Handle:
        try:
            self._cursor = self._targets.index(handle)
        except ValueError:
            raise NotFound(f"{handle!r} is not a navigation target") from None
        return handle


__all__ = ["heading_between", "ordered_neighbors", "TargetCycler"]
