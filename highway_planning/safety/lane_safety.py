"""Lane change safety check.

Projects every obstacle in the target lane onto the road frame and estimates
how long it takes for the longitudinal gap to the ego vehicle to close under
constant relative speed.
"""

import math
from typing import Iterable, List, Optional

from loguru import logger

from ..core.coordinate_converter import CoordinateConverter
from ..core.data_structures import Obstacle, ObstacleAssessment, SafetyReport


# Safety parameters
VEHICLE_LENGTH = 4.0  # Vehicle length [m]
GAP_BUFFER = 5.0  # Fixed part of the safety margin [m]
TARGET_SPEED = 22.3  # Cruise speed the margin is tuned around [m/s]
MARGIN_SPEED_GAIN = 1.0  # Extra margin per m/s away from TARGET_SPEED [s]
HORIZON = 3.0  # Time-to-collision horizon [s]
SPEED_EPSILON = 1e-6  # Below this speed heading is undefined [m/s]


def obstacle_heading(vx: float, vy: float, speed: Optional[float] = None,
                     speed_epsilon: float = SPEED_EPSILON) -> float:
    """Heading of an obstacle from its velocity, in [-pi, pi].

    A (nearly) stationary obstacle has no direction of travel and gets 0.0.
    """
    if speed is None:
        speed = math.hypot(vx, vy)
    if speed < speed_epsilon:
        return 0.0

    cos_theta = max(-1.0, min(1.0, vx / speed))
    theta = math.acos(cos_theta)
    return theta if vy >= 0 else -theta


def safety_margin(ego_speed: float,
                  vehicle_length: float = VEHICLE_LENGTH,
                  gap_buffer: float = GAP_BUFFER,
                  target_speed: float = TARGET_SPEED,
                  speed_gain: float = MARGIN_SPEED_GAIN) -> float:
    """Minimum longitudinal gap to any obstacle, growing with |target - ego speed| [m]."""
    return vehicle_length + gap_buffer + abs(target_speed - ego_speed) * speed_gain


def time_to_collision(gap: float, relative_speed: float,
                      vehicle_length: float = VEHICLE_LENGTH) -> float:
    """Time until the longitudinal gap closes [s].

    Args:
        gap: Obstacle s minus ego s [m]
        relative_speed: Ego speed minus obstacle speed [m/s]
        vehicle_length: Length of the vehicle whose body closes the gap [m]

    Returns:
        Time to collision; negative when the gap is opening, inf when the
        relative speed is zero
    """
    if relative_speed == 0.0:
        return float('inf')
    if gap >= 0:
        return (gap - vehicle_length) / relative_speed
    return (gap + vehicle_length) / relative_speed


class LaneSafetyChecker:
    """Predicts whether moving into a lane is safe given its traffic.

    Args:
        converter: Coordinate converter for the road the obstacles drive on
        vehicle_length: Vehicle length [m]
        gap_buffer: Fixed part of the safety margin [m]
        target_speed: Cruise speed the margin is tuned around [m/s]
        margin_speed_gain: Extra margin per m/s of speed deviation [s]
        horizon: Time-to-collision horizon [s]
        speed_epsilon: Speed below which an obstacle's heading falls back to 0
    """

    def __init__(
        self,
        converter: CoordinateConverter,
        vehicle_length: float = VEHICLE_LENGTH,
        gap_buffer: float = GAP_BUFFER,
        target_speed: float = TARGET_SPEED,
        margin_speed_gain: float = MARGIN_SPEED_GAIN,
        horizon: float = HORIZON,
        speed_epsilon: float = SPEED_EPSILON
    ):
        self.converter = converter
        self.vehicle_length = vehicle_length
        self.gap_buffer = gap_buffer
        self.target_speed = target_speed
        self.margin_speed_gain = margin_speed_gain
        self.horizon = horizon
        self.speed_epsilon = speed_epsilon

    @classmethod
    def from_config(cls, converter: CoordinateConverter, config) -> 'LaneSafetyChecker':
        """Create a checker from a :class:`LanePlanningConfig`."""
        return cls(
            converter,
            vehicle_length=config.vehicle_length,
            gap_buffer=config.gap_buffer,
            target_speed=config.target_speed,
            margin_speed_gain=config.margin_speed_gain,
            horizon=config.horizon,
            speed_epsilon=config.speed_epsilon,
        )

    def safety_margin(self, ego_speed: float) -> float:
        return safety_margin(ego_speed, self.vehicle_length, self.gap_buffer,
                             self.target_speed, self.margin_speed_gain)

    def assess(self, obstacles: Iterable[Obstacle], ego_s: float,
               ego_speed: float) -> SafetyReport:
        """Check every obstacle of the target lane.

        An obstacle already inside the safety margin ends the check right away.
        Otherwise all obstacles are examined and the lane change is unsafe if
        any of them would close the gap within the horizon.

        Args:
            obstacles: Vehicles in the target lane
            ego_s: Ego longitudinal Frenet coordinate [m]
            ego_speed: Ego speed [m/s]

        Returns:
            Safety report with one assessment per examined obstacle
        """
        margin = self.safety_margin(ego_speed)
        assessments: List[ObstacleAssessment] = []
        safe = True

        for obstacle in obstacles:
            speed = obstacle.speed
            theta = obstacle_heading(obstacle.vx, obstacle.vy, speed, self.speed_epsilon)
            frenet = self.converter.to_frenet(obstacle.x, obstacle.y, theta)

            gap = frenet.s - ego_s
            relative_speed = ego_speed - speed

            if abs(gap) <= margin:
                assessments.append(ObstacleAssessment(
                    obstacle_id=obstacle.id,
                    s=frenet.s,
                    distance=gap,
                    relative_speed=relative_speed,
                    time_to_collision=time_to_collision(gap, relative_speed, self.vehicle_length),
                    margin_violation=True,
                    dangerous=True,
                ))
                logger.debug(f"Obstacle {obstacle.id} within safety margin "
                             f"({gap:.1f}m, margin {margin:.1f}m)")
                return SafetyReport(safe=False, safety_margin=margin,
                                    horizon=self.horizon, assessments=assessments)

            ttc = time_to_collision(gap, relative_speed, self.vehicle_length)
            dangerous = 0.0 <= ttc <= self.horizon
            if dangerous:
                safe = False

            assessments.append(ObstacleAssessment(
                obstacle_id=obstacle.id,
                s=frenet.s,
                distance=gap,
                relative_speed=relative_speed,
                time_to_collision=ttc,
                dangerous=dangerous,
            ))

        return SafetyReport(safe=safe, safety_margin=margin,
                            horizon=self.horizon, assessments=assessments)

    def is_safe(self, obstacles: Iterable[Obstacle], ego_s: float, ego_speed: float) -> bool:
        """Boolean verdict of :meth:`assess`."""
        return self.assess(obstacles, ego_s, ego_speed).safe


def assess_lane_change(
    obstacles: Iterable[Obstacle],
    ego_s: float,
    ego_speed: float,
    converter: CoordinateConverter,
    horizon: float = HORIZON
) -> SafetyReport:
    """Safety report for changing into the lane holding ``obstacles``."""
    return LaneSafetyChecker(converter, horizon=horizon).assess(obstacles, ego_s, ego_speed)


def safe_to_change_lane(
    obstacles: Iterable[Obstacle],
    ego_s: float,
    ego_speed: float,
    converter: CoordinateConverter,
    horizon: float = HORIZON
) -> bool:
    """True when no obstacle in the target lane blocks the lane change."""
    return assess_lane_change(obstacles, ego_s, ego_speed, converter, horizon).safe
