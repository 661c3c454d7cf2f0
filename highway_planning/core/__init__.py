"""Core module for fundamental data structures and coordinate conversion."""

from .data_structures import (
    EgoVehicleState,
    Obstacle,
    FrenetPoint,
    LaneSummary,
    ObstacleAssessment,
    SafetyReport,
)
from .waypoint_map import WaypointMap, load_waypoint_map
from .coordinate_converter import (
    CartesianFrenetConverter,
    CoordinateConverter,
    closest_waypoint,
    next_waypoint,
    normalize_angle,
)

__all__ = [
    'EgoVehicleState',
    'Obstacle',
    'FrenetPoint',
    'LaneSummary',
    'ObstacleAssessment',
    'SafetyReport',
    'WaypointMap',
    'load_waypoint_map',
    'CartesianFrenetConverter',
    'CoordinateConverter',
    'closest_waypoint',
    'next_waypoint',
    'normalize_angle',
]
