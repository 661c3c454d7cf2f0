"""Waypoint polyline describing the road centerline.

The map is a closed loop of (x, y) waypoints with a parallel array of
cumulative arc length ``s``. Structural checks run once, when the map is
built, so the coordinate conversions never have to repeat them.
"""

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
from loguru import logger


@dataclass
class WaypointMap:
    """Closed waypoint polyline.

    Attributes:
        x: X coordinates of the waypoints [m]
        y: Y coordinates of the waypoints [m]
        s: Cumulative arc length at each waypoint [m]
        dx: Optional x component of the unit normal at each waypoint
        dy: Optional y component of the unit normal at each waypoint
    """
    x: np.ndarray
    y: np.ndarray
    s: np.ndarray
    dx: Optional[np.ndarray] = None
    dy: Optional[np.ndarray] = None
    chord_s: np.ndarray = field(init=False, repr=False)

    def __post_init__(self):
        self.x = np.asarray(self.x, dtype=float)
        self.y = np.asarray(self.y, dtype=float)
        self.s = np.asarray(self.s, dtype=float)

        if self.x.ndim != 1 or self.y.ndim != 1 or self.s.ndim != 1:
            raise ValueError("Waypoint arrays must be one-dimensional")
        if not (len(self.x) == len(self.y) == len(self.s)):
            raise ValueError(
                f"Waypoint arrays must have the same length, got "
                f"x={len(self.x)}, y={len(self.y)}, s={len(self.s)}"
            )
        if len(self.x) < 2:
            raise ValueError(f"Waypoint map needs at least 2 points, got {len(self.x)}")
        if np.any(np.diff(self.s) <= 0):
            raise ValueError("Waypoint s values must be strictly increasing")

        # Closing segment (last -> first) is part of the loop as well.
        seg_len = np.hypot(np.diff(self.x, append=self.x[0]),
                           np.diff(self.y, append=self.y[0]))
        duplicates = np.flatnonzero(seg_len == 0.0)
        if len(duplicates) > 0:
            i = int(duplicates[0])
            raise ValueError(
                f"Duplicate consecutive waypoints at index {i} and {(i + 1) % len(self.x)}"
            )

        if (self.dx is None) != (self.dy is None):
            raise ValueError("Waypoint normals need both dx and dy")
        if self.dx is not None:
            self.dx = np.asarray(self.dx, dtype=float)
            self.dy = np.asarray(self.dy, dtype=float)
            if self.dx.shape != self.x.shape or self.dy.shape != self.x.shape:
                raise ValueError(
                    f"Waypoint normals must match the {len(self.x)} waypoints, got "
                    f"dx={len(self.dx)}, dy={len(self.dy)}"
                )

        # Arc length rebuilt from the chords, independent of the supplied s.
        self.chord_s = np.concatenate(([0.0], np.cumsum(seg_len[:-1])))

    def __len__(self) -> int:
        return len(self.x)

    @property
    def track_length(self) -> float:
        """Length of the full loop, including the closing segment [m]."""
        closing = math.hypot(self.x[0] - self.x[-1], self.y[0] - self.y[-1])
        return float(self.s[-1] - self.s[0] + closing)

    def point(self, index: int) -> np.ndarray:
        """Waypoint at ``index`` (wrapping modulo the map size)."""
        i = index % len(self)
        return np.array([self.x[i], self.y[i]])

    def wrap_s(self, s: float) -> float:
        """Wrap ``s`` into ``[s[0], s[0] + track_length)`` for multi-lap horizons."""
        return float(self.s[0] + (s - self.s[0]) % self.track_length)

    @classmethod
    def from_points(cls, x: Sequence[float], y: Sequence[float]) -> 'WaypointMap':
        """Build a map whose s values are the cumulative chord lengths."""
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if len(x) != len(y):
            raise ValueError(f"x ({len(x)}) and y ({len(y)}) must have the same length")
        if len(x) == 0:
            raise ValueError("Waypoint map needs at least 2 points, got 0")
        s = np.concatenate(([0.0], np.cumsum(np.hypot(np.diff(x), np.diff(y)))))
        return cls(x=x, y=y, s=s)


def load_waypoint_map(map_path: Union[str, Path]) -> WaypointMap:
    """Load a whitespace separated waypoint file.

    Each row holds ``x y s`` optionally followed by the normal ``dx dy``.

    Args:
        map_path: Path to the waypoint file

    Returns:
        Validated waypoint map
    """
    map_path = Path(map_path)
    if not map_path.exists():
        raise FileNotFoundError(f"Waypoint map not found: {map_path}")

    data = np.loadtxt(map_path, dtype=float, ndmin=2)
    if data.shape[1] not in (3, 5):
        raise ValueError(
            f"Waypoint rows must have 3 (x y s) or 5 (x y s dx dy) columns, "
            f"got {data.shape[1]} in {map_path}"
        )

    dx = data[:, 3] if data.shape[1] == 5 else None
    dy = data[:, 4] if data.shape[1] == 5 else None
    waypoint_map = WaypointMap(x=data[:, 0], y=data[:, 1], s=data[:, 2], dx=dx, dy=dy)

    logger.info(f"Loaded {len(waypoint_map)} waypoints from {map_path} "
                f"(track length {waypoint_map.track_length:.1f}m)")
    return waypoint_map
