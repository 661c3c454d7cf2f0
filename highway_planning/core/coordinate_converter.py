"""Coordinate conversion between Cartesian and Frenet frames.

The Frenet frame is defined by a piecewise-linear waypoint polyline, where:
- s: arc length along the centerline
- d: signed lateral offset from the centerline

The sign of d does not follow the vehicle heading. It is fixed by a reference
point lying outside the course: positions on the same side of the centerline
as the reference point get a negative d.
"""

import bisect
import math
from typing import Sequence, Tuple, Union

import numpy as np
from loguru import logger

from .data_structures import FrenetPoint
from .waypoint_map import WaypointMap

# Reference point used to sign the lateral offset [m]
DEFAULT_SIGN_REFERENCE = (1000.0, 2000.0)


def distance(x1: float, y1: float, x2: float, y2: float) -> float:
    """Euclidean distance between two points."""
    return math.hypot(x2 - x1, y2 - y1)


def normalize_angle(angle: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """Normalize angle to [-pi, pi] range.

    Args:
        angle: Input angle in radians

    Returns:
        Normalized angle in [-pi, pi]
    """
    two_pi = 2.0 * np.pi

    n = np.round(angle / two_pi)
    a = angle - n * two_pi

    # 3*pi and friends map onto -pi, pi itself stays pi
    if np.isscalar(a):
        if abs(a + np.pi) < 1e-9 and angle > 0:
            return -np.pi
        return float(a)

    mask = (np.abs(a + np.pi) < 1e-9) & (angle > 0)
    if np.any(mask):
        a[mask] = -np.pi

    return a


def closest_waypoint(
    x: float,
    y: float,
    maps_x: Sequence[float],
    maps_y: Sequence[float]
) -> int:
    """Index of the waypoint closest to (x, y).

    Ties resolve to the lowest index.

    Raises:
        ValueError: If the polyline is empty
    """
    if len(maps_x) == 0:
        raise ValueError("Cannot search an empty waypoint polyline")
    if len(maps_x) != len(maps_y):
        raise ValueError(
            f"maps_x ({len(maps_x)}) and maps_y ({len(maps_y)}) must have the same length"
        )

    dists = np.hypot(np.asarray(maps_x, dtype=float) - x,
                     np.asarray(maps_y, dtype=float) - y)
    return int(np.argmin(dists))


def next_waypoint(
    x: float,
    y: float,
    theta: float,
    maps_x: Sequence[float],
    maps_y: Sequence[float]
) -> int:
    """Index of the next waypoint ahead of a vehicle at (x, y) heading ``theta``.

    The closest waypoint counts as ahead unless the bearing towards it differs
    from the heading by more than 90 degrees, in which case the vehicle has
    already passed it and the following waypoint is returned.
    """
    closest = closest_waypoint(x, y, maps_x, maps_y)

    heading = math.atan2(maps_y[closest] - y, maps_x[closest] - x)
    angle = abs(normalize_angle(theta - heading))

    if angle > np.pi / 2:
        closest = (closest + 1) % len(maps_x)

    return closest


class CartesianFrenetConverter:
    """Segment-level conversion between Cartesian and Frenet coordinates.

    Both directions work on a single polyline segment; choosing the segment is
    left to :class:`CoordinateConverter`.
    """

    @staticmethod
    def cartesian_to_frenet(
        x: float,
        y: float,
        prev_x: float,
        prev_y: float,
        next_x: float,
        next_y: float,
        prev_s: float,
        sign_reference: Tuple[float, float] = DEFAULT_SIGN_REFERENCE
    ) -> Tuple[float, float]:
        """Project (x, y) onto the segment prev -> next.

        Args:
            x, y: Position to convert
            prev_x, prev_y: Segment start
            next_x, next_y: Segment end
            prev_s: Arc length at the segment start
            sign_reference: Point outside the course fixing the sign of d

        Returns:
            s, d: Frenet coordinates

        Raises:
            ZeroDivisionError: If the segment has zero length
        """
        n_x = next_x - prev_x
        n_y = next_y - prev_y
        x_x = x - prev_x
        x_y = y - prev_y

        proj_norm = (x_x * n_x + x_y * n_y) / (n_x * n_x + n_y * n_y)
        proj_x = proj_norm * n_x
        proj_y = proj_norm * n_y

        d = distance(x_x, x_y, proj_x, proj_y)

        # Reference point expressed in the same local frame as the position
        center_x = sign_reference[0] - prev_x
        center_y = sign_reference[1] - prev_y
        center_to_pos = distance(center_x, center_y, x_x, x_y)
        center_to_ref = distance(center_x, center_y, proj_x, proj_y)

        if center_to_pos <= center_to_ref:
            d = -d

        s = prev_s + math.hypot(proj_x, proj_y)
        return s, d

    @staticmethod
    def frenet_to_cartesian(
        s: float,
        d: float,
        prev_x: float,
        prev_y: float,
        next_x: float,
        next_y: float,
        prev_s: float
    ) -> Tuple[float, float]:
        """Place (s, d) along the segment prev -> next.

        Positive d lies to the right of the segment direction.

        Returns:
            x, y: Cartesian position
        """
        heading = math.atan2(next_y - prev_y, next_x - prev_x)
        seg_s = s - prev_s

        seg_x = prev_x + seg_s * math.cos(heading)
        seg_y = prev_y + seg_s * math.sin(heading)

        perp_heading = heading - np.pi / 2

        x = seg_x + d * math.cos(perp_heading)
        y = seg_y + d * math.sin(perp_heading)
        return x, y


class CoordinateConverter:
    """High-level coordinate conversion interface over a waypoint map.

    Args:
        waypoint_map: Closed waypoint polyline
        sign_reference: Point outside the course fixing the sign of d
    """

    def __init__(
        self,
        waypoint_map: WaypointMap,
        sign_reference: Tuple[float, float] = DEFAULT_SIGN_REFERENCE
    ):
        self.waypoint_map = waypoint_map
        self.sign_reference = (float(sign_reference[0]), float(sign_reference[1]))
        self.converter = CartesianFrenetConverter()
        self._s_list = waypoint_map.s.tolist()
        logger.debug(f"Coordinate converter initialized with {len(waypoint_map)} waypoints")

    def closest_waypoint(self, x: float, y: float) -> int:
        """Index of the waypoint closest to (x, y)."""
        return closest_waypoint(x, y, self.waypoint_map.x, self.waypoint_map.y)

    def next_waypoint(self, x: float, y: float, theta: float) -> int:
        """Index of the next waypoint ahead of (x, y) when heading ``theta``."""
        return next_waypoint(x, y, theta, self.waypoint_map.x, self.waypoint_map.y)

    def to_frenet(self, x: float, y: float, theta: float) -> FrenetPoint:
        """Convert a Cartesian pose to Frenet coordinates.

        Args:
            x, y: Position in global coordinates
            theta: Direction of travel [rad]

        Returns:
            Frenet point (s, d)
        """
        wp = self.waypoint_map
        next_wp = self.next_waypoint(x, y, theta)
        prev_wp = next_wp - 1 if next_wp > 0 else len(wp) - 1

        s, d = self.converter.cartesian_to_frenet(
            x, y,
            wp.x[prev_wp], wp.y[prev_wp],
            wp.x[next_wp], wp.y[next_wp],
            float(wp.chord_s[prev_wp]),
            self.sign_reference
        )
        return FrenetPoint(s=s, d=d)

    def segment_index(self, s: float) -> int:
        """Index of the waypoint starting the segment that contains ``s``.

        Picks the last waypoint whose s is strictly below ``s``, so an exact
        waypoint s stays on the segment ending there. Values up to the first
        waypoint clamp to segment 0, values past the last waypoint use the
        closing segment.
        """
        prev_wp = bisect.bisect_left(self._s_list, s) - 1
        return max(prev_wp, 0)

    def to_cartesian(self, s: float, d: float) -> Tuple[float, float]:
        """Convert Frenet coordinates to a Cartesian position.

        Args:
            s: Arc length along the centerline [m]
            d: Signed lateral offset [m]

        Returns:
            x, y: Position in global coordinates
        """
        wp = self.waypoint_map
        prev_wp = self.segment_index(s)
        wp2 = (prev_wp + 1) % len(wp)

        return self.converter.frenet_to_cartesian(
            s, d,
            wp.x[prev_wp], wp.y[prev_wp],
            wp.x[wp2], wp.y[wp2],
            float(wp.s[prev_wp])
        )
