"""Core data structures for highway lane planning.

This module defines the value types shared by the coordinate conversion and
lane safety components. None of them hold references to each other, so every
planning cycle can build them fresh from the latest sensor data.
"""

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from dataclasses_json import dataclass_json


@dataclass
class EgoVehicleState:
    """State of the ego vehicle.

    Attributes:
        x: X coordinate in global frame [m]
        y: Y coordinate in global frame [m]
        yaw: Heading angle [rad]
        v: Speed [m/s]
        s: Longitudinal Frenet coordinate [m]
        d: Lateral Frenet coordinate [m]
        timestamp: Time stamp [s]
    """
    x: float
    y: float
    yaw: float
    v: float
    s: float = 0.0
    d: float = 0.0
    timestamp: float = 0.0

    @classmethod
    def from_array(cls, arr: Sequence[float], timestamp: float = 0.0) -> 'EgoVehicleState':
        """Create from array [x, y, yaw, v, (s), (d)]."""
        s = arr[4] if len(arr) > 4 else 0.0
        d = arr[5] if len(arr) > 5 else 0.0
        return cls(x=arr[0], y=arr[1], yaw=arr[2], v=arr[3], s=s, d=d,
                   timestamp=timestamp)


@dataclass
class Obstacle:
    """Another vehicle reported by sensor fusion.

    Attributes:
        id: Sensor fusion identifier
        x, y: Position in global frame [m]
        vx, vy: Velocity in global frame [m/s]
        s, d: Frenet coordinates when the sensor already reports them
    """
    id: int
    x: float
    y: float
    vx: float
    vy: float
    s: Optional[float] = None
    d: Optional[float] = None

    @property
    def speed(self) -> float:
        """Scalar speed [m/s]."""
        return math.hypot(self.vx, self.vy)

    @classmethod
    def from_sensor_fusion(cls, row: Sequence[float]) -> 'Obstacle':
        """Create from a sensor fusion record [id, x, y, vx, vy, (s), (d)]."""
        if len(row) < 5:
            raise ValueError(
                f"Sensor fusion record needs at least [id, x, y, vx, vy], got {len(row)} fields"
            )
        s = float(row[5]) if len(row) > 5 else None
        d = float(row[6]) if len(row) > 6 else None
        return cls(id=int(row[0]), x=float(row[1]), y=float(row[2]),
                   vx=float(row[3]), vy=float(row[4]), s=s, d=d)


@dataclass
class FrenetPoint:
    """Position in the road-relative frame.

    Attributes:
        s: Arc length along the centerline [m]
        d: Signed lateral offset from the centerline [m]
    """
    s: float
    d: float

    def to_tuple(self) -> Tuple[float, float]:
        return (self.s, self.d)


@dataclass_json
@dataclass
class LaneSummary:
    """Aggregate traffic condition of one lane.

    Attributes:
        avg_speed: Mean scalar speed of the vehicles in the lane [m/s]
        count: Number of vehicles in the lane
    """
    avg_speed: float
    count: int

    def to_tuple(self) -> Tuple[float, float]:
        return (self.avg_speed, float(self.count))


@dataclass_json
@dataclass
class ObstacleAssessment:
    """Relative motion of one obstacle with respect to the ego vehicle.

    Attributes:
        obstacle_id: Sensor fusion identifier
        s: Obstacle longitudinal Frenet coordinate [m]
        distance: Obstacle s minus ego s [m]
        relative_speed: Ego speed minus obstacle speed [m/s]
        time_to_collision: Projected time until the gap closes [s], inf if never
        margin_violation: Obstacle is already inside the safety margin
        dangerous: Obstacle blocks the lane change
    """
    obstacle_id: int
    s: float
    distance: float
    relative_speed: float
    time_to_collision: float
    margin_violation: bool = False
    dangerous: bool = False


@dataclass_json
@dataclass
class SafetyReport:
    """Verdict of a lane change safety check with per-obstacle diagnostics.

    Attributes:
        safe: True when no obstacle blocks the lane change
        safety_margin: Minimum longitudinal gap used for the check [m]
        horizon: Time-to-collision horizon [s]
        assessments: Obstacles examined, in input order
    """
    safe: bool
    safety_margin: float
    horizon: float
    assessments: List[ObstacleAssessment] = field(default_factory=list)

    @property
    def closest_distance(self) -> float:
        """Smallest absolute longitudinal gap among the examined obstacles [m]."""
        if not self.assessments:
            return float('inf')
        return min(abs(a.distance) for a in self.assessments)

    @property
    def min_time_to_collision(self) -> float:
        """Smallest non-negative time to collision [s], inf if none."""
        ttcs = [a.time_to_collision for a in self.assessments if a.time_to_collision >= 0]
        return min(ttcs) if ttcs else float('inf')
