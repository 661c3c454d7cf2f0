"""Lane occupancy summaries and a faster-and-emptier lane preference.

The preference only looks at aggregate speed and count. It says nothing about
gaps to individual vehicles, so a chosen lane still has to pass
:class:`~highway_planning.safety.lane_safety.LaneSafetyChecker`.
"""

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
from loguru import logger

from ..core.coordinate_converter import CoordinateConverter
from ..core.data_structures import LaneSummary, Obstacle
from .lane_safety import SPEED_EPSILON, obstacle_heading

EMPTY_LANE_SPEED = 25.0  # Speed assumed for a lane without traffic [m/s]
LANE_WIDTH = 4.0  # [m]
N_LANES = 3


def lane_summary(obstacles: Sequence[Obstacle],
                 empty_lane_speed: float = EMPTY_LANE_SPEED) -> LaneSummary:
    """Mean speed and number of vehicles in a lane.

    Args:
        obstacles: Vehicles in the lane
        empty_lane_speed: Speed reported for a lane without vehicles [m/s]

    Returns:
        Lane summary
    """
    if len(obstacles) == 0:
        return LaneSummary(avg_speed=empty_lane_speed, count=0)

    speeds = [obstacle.speed for obstacle in obstacles]
    return LaneSummary(avg_speed=float(np.mean(speeds)), count=len(speeds))


def lane_score(left: LaneSummary, right: LaneSummary) -> float:
    """Positive when the left lane is faster and emptier than the right one."""
    return (left.avg_speed - right.avg_speed) + (right.count - left.count)


def compare_lanes(left: LaneSummary, right: LaneSummary) -> bool:
    """True to prefer the left lane; ties favour the left lane."""
    score = lane_score(left, right)
    logger.debug(f"Lane score {score:.2f}: pick {'left' if score >= 0.0 else 'right'}")
    return score >= 0.0


def lane_index(d: float, lane_width: float = LANE_WIDTH,
               n_lanes: int = N_LANES) -> Optional[int]:
    """Lane containing lateral offset ``d``; lane 0 borders the centerline.

    Returns None for offsets outside the road.
    """
    if d < 0:
        return None
    lane = int(d // lane_width)
    return lane if lane < n_lanes else None


def lane_center(lane: int, lane_width: float = LANE_WIDTH) -> float:
    """Lateral offset of the middle of ``lane`` [m]."""
    return lane_width * (lane + 0.5)


def group_obstacles_by_lane(
    obstacles: Iterable[Obstacle],
    converter: Optional[CoordinateConverter] = None,
    lane_width: float = LANE_WIDTH,
    n_lanes: int = N_LANES,
    speed_epsilon: float = SPEED_EPSILON
) -> Dict[int, List[Obstacle]]:
    """Sort obstacles into lanes by their lateral offset.

    The offset reported by sensor fusion is used when present. Otherwise the
    obstacle position is converted with ``converter``; obstacles slower than
    ``speed_epsilon`` are converted with a zero heading.

    Returns:
        Mapping from every lane index to the obstacles in it (possibly empty)
    """
    lanes: Dict[int, List[Obstacle]] = {lane: [] for lane in range(n_lanes)}

    for obstacle in obstacles:
        d = obstacle.d
        if d is None:
            if converter is None:
                raise ValueError(
                    f"Obstacle {obstacle.id} has no d and no converter was given"
                )
            theta = obstacle_heading(obstacle.vx, obstacle.vy, speed_epsilon=speed_epsilon)
            d = converter.to_frenet(obstacle.x, obstacle.y, theta).d

        lane = lane_index(d, lane_width, n_lanes)
        if lane is None:
            logger.debug(f"Obstacle {obstacle.id} off road (d={d:.2f}m)")
            continue
        lanes[lane].append(obstacle)

    return lanes
