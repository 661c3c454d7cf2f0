"""Configuration management module."""

import yaml
from pathlib import Path
from typing import Any, Dict, Optional, List
from dataclasses import dataclass, field
from loguru import logger

from ..core.data_structures import EgoVehicleState, Obstacle
from ..core.waypoint_map import WaypointMap, load_waypoint_map


@dataclass
class LanePlanningConfig:
    """Configuration for lane change planning.

    Attributes:
        # Safety margin
        vehicle_length: Vehicle length [m]
        gap_buffer: Fixed part of the safety margin [m]
        target_speed: Cruise speed the margin is tuned around [m/s]
        margin_speed_gain: Extra margin per m/s of speed deviation [s]
        horizon: Time-to-collision horizon [s]
        speed_epsilon: Speed below which obstacle heading falls back to 0 [m/s]

        # Lanes
        empty_lane_speed: Speed assumed for a lane without traffic [m/s]
        lane_width: Lane width [m]
        n_lanes: Number of lanes on the driving side

        # Road
        sign_reference_point: Point outside the course fixing the sign of d
        waypoint_map_path: Waypoint file (x y s [dx dy] per row)
        waypoints_x: Inline waypoint x coordinates, used without a map file
        waypoints_y: Inline waypoint y coordinates, used without a map file

        # Scenario
        ego_state: Ego state [x, y, yaw, v, (s), (d)]
        obstacles: Sensor fusion records [id, x, y, vx, vy, (s), (d)]
    """
    # Safety margin
    vehicle_length: float = 4.0
    gap_buffer: float = 5.0
    target_speed: float = 22.3  # ~50 mph
    margin_speed_gain: float = 1.0
    horizon: float = 3.0
    speed_epsilon: float = 1e-6

    # Lanes
    empty_lane_speed: float = 25.0
    lane_width: float = 4.0
    n_lanes: int = 3

    # Road
    sign_reference_point: list = field(default_factory=lambda: [1000.0, 2000.0])
    waypoint_map_path: Optional[str] = None
    waypoints_x: list = field(default_factory=list)
    waypoints_y: list = field(default_factory=list)

    # Scenario
    ego_state: list = field(default_factory=lambda: [0.0, 0.0, 0.0, 0.0])
    obstacles: list = field(default_factory=list)

    # Internal: loaded from
    config_path: Optional[str] = None

    def build_waypoint_map(self) -> WaypointMap:
        """Waypoint map from the map file, or from the inline waypoints."""
        if self.waypoint_map_path:
            map_path = Path(self.waypoint_map_path)
            if not map_path.is_absolute() and self.config_path:
                map_path = Path(self.config_path).parent / map_path
            return load_waypoint_map(map_path)
        return WaypointMap.from_points(self.waypoints_x, self.waypoints_y)

    def build_ego_state(self) -> EgoVehicleState:
        return EgoVehicleState.from_array(self.ego_state)

    def build_obstacles(self) -> List[Obstacle]:
        return [Obstacle.from_sensor_fusion(row) for row in self.obstacles]


class ConfigValidationError(ValueError):
    """Raised when configuration validation fails."""
    pass


def validate_config(config: LanePlanningConfig) -> None:
    """Validate configuration values for consistency and correctness.

    Args:
        config: Configuration to validate

    Raises:
        ConfigValidationError: If validation fails
    """
    errors: List[str] = []

    # Safety margin
    if config.vehicle_length <= 0:
        errors.append(f"vehicle_length must be positive, got {config.vehicle_length}")
    if config.gap_buffer < 0:
        errors.append(f"gap_buffer must be non-negative, got {config.gap_buffer}")
    if config.target_speed < 0:
        errors.append(f"target_speed must be non-negative, got {config.target_speed}")
    if config.margin_speed_gain < 0:
        errors.append(f"margin_speed_gain must be non-negative, got {config.margin_speed_gain}")
    if config.horizon <= 0:
        errors.append(f"horizon must be positive, got {config.horizon}")
    if config.speed_epsilon <= 0:
        errors.append(f"speed_epsilon must be positive, got {config.speed_epsilon}")

    # Lanes
    if config.empty_lane_speed < 0:
        errors.append(f"empty_lane_speed must be non-negative, got {config.empty_lane_speed}")
    if config.lane_width <= 0:
        errors.append(f"lane_width must be positive, got {config.lane_width}")
    if config.n_lanes <= 0:
        errors.append(f"n_lanes must be positive, got {config.n_lanes}")

    # Road
    if len(config.sign_reference_point) != 2:
        errors.append(f"sign_reference_point must have 2 elements [x, y], got {len(config.sign_reference_point)}")
    if not config.waypoint_map_path:
        if len(config.waypoints_x) < 2:
            errors.append(f"waypoints_x must have at least 2 points, got {len(config.waypoints_x)}")
        if len(config.waypoints_y) < 2:
            errors.append(f"waypoints_y must have at least 2 points, got {len(config.waypoints_y)}")
        if len(config.waypoints_x) != len(config.waypoints_y):
            errors.append(f"waypoints_x ({len(config.waypoints_x)}) and waypoints_y ({len(config.waypoints_y)}) must have the same length")

    # Scenario
    if not 4 <= len(config.ego_state) <= 6:
        errors.append(f"ego_state must have 4 to 6 elements [x, y, yaw, v, (s), (d)], got {len(config.ego_state)}")
    for i, row in enumerate(config.obstacles):
        if not 5 <= len(row) <= 7:
            errors.append(f"obstacles[{i}] must have 5 to 7 elements [id, x, y, vx, vy, (s), (d)], got {len(row)}")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigValidationError(error_msg)


def load_config(config_path: str) -> LanePlanningConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Loaded configuration
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML file {config_path}: {e}") from e

    if config_dict is None:
        raise ValueError(f"YAML file {config_path} is empty or contains no valid content")

    try:
        config = LanePlanningConfig(**config_dict)
    except TypeError as e:
        raise ValueError(f"Invalid configuration structure in {config_path}: {e}") from e

    config.config_path = str(config_path)

    try:
        validate_config(config)
    except ConfigValidationError:
        logger.error(f"Configuration validation failed for {config_path}")
        raise

    logger.info(f"Configuration loaded and validated from {config_path}")

    return config


def save_config(config: LanePlanningConfig, config_path: str):
    """Save configuration to YAML file.

    Args:
        config: Configuration to save
        config_path: Path to save YAML file
    """
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    config_dict: Dict[str, Any] = {
        'vehicle_length': config.vehicle_length,
        'gap_buffer': config.gap_buffer,
        'target_speed': config.target_speed,
        'margin_speed_gain': config.margin_speed_gain,
        'horizon': config.horizon,
        'speed_epsilon': config.speed_epsilon,
        'empty_lane_speed': config.empty_lane_speed,
        'lane_width': config.lane_width,
        'n_lanes': config.n_lanes,
        'sign_reference_point': list(config.sign_reference_point),
        'waypoint_map_path': config.waypoint_map_path,
        'waypoints_x': list(config.waypoints_x),
        'waypoints_y': list(config.waypoints_y),
        'ego_state': list(config.ego_state),
        'obstacles': [list(row) for row in config.obstacles],
    }

    with open(config_path, 'w') as f:
        yaml.safe_dump(config_dict, f, default_flow_style=False, indent=2)

    logger.info(f"Configuration saved to {config_path}")
