"""Lane change safety and lane selection."""

from .lane_safety import (
    LaneSafetyChecker,
    assess_lane_change,
    obstacle_heading,
    safe_to_change_lane,
    safety_margin,
    time_to_collision,
)
from .lane_selection import (
    compare_lanes,
    group_obstacles_by_lane,
    lane_center,
    lane_index,
    lane_score,
    lane_summary,
)

__all__ = [
    'LaneSafetyChecker',
    'assess_lane_change',
    'obstacle_heading',
    'safe_to_change_lane',
    'safety_margin',
    'time_to_collision',
    'compare_lanes',
    'group_obstacles_by_lane',
    'lane_center',
    'lane_index',
    'lane_score',
    'lane_summary',
]
