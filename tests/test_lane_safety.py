"""Tests for the lane change safety check."""

import math

import pytest
import numpy as np

from highway_planning.core.coordinate_converter import CoordinateConverter
from highway_planning.core.data_structures import Obstacle
from highway_planning.core.waypoint_map import WaypointMap
from highway_planning.safety.lane_safety import (
    LaneSafetyChecker,
    assess_lane_change,
    obstacle_heading,
    safe_to_change_lane,
    safety_margin,
    time_to_collision,
)


@pytest.fixture
def converter():
    """Straight 1km road along the x axis, waypoints every 10m."""
    x = np.arange(0.0, 1001.0, 10.0)
    return CoordinateConverter(WaypointMap.from_points(x, np.zeros_like(x)))


def car(obstacle_id, x, vx, y=-6.0, vy=0.0):
    return Obstacle(id=obstacle_id, x=x, y=y, vx=vx, vy=vy)


def test_obstacle_heading():
    assert obstacle_heading(1.0, 0.0) == 0.0
    assert np.isclose(obstacle_heading(0.0, 2.0), np.pi / 2)
    assert np.isclose(obstacle_heading(0.0, -2.0), -np.pi / 2)
    assert np.isclose(obstacle_heading(-3.0, 0.0), np.pi)
    assert np.isclose(obstacle_heading(1.0, -1.0), -np.pi / 4)


def test_obstacle_heading_stationary():
    """A stopped car gets a defined heading instead of NaN."""
    heading = obstacle_heading(0.0, 0.0, 0.0)
    assert heading == 0.0
    assert not math.isnan(obstacle_heading(1e-9, 0.0))


def test_safety_margin():
    assert np.isclose(safety_margin(22.3), 9.0)
    assert np.isclose(safety_margin(12.3), 19.0)
    assert np.isclose(safety_margin(32.3), 19.0)


def test_time_to_collision():
    # Car ahead, ego 10m/s faster
    assert np.isclose(time_to_collision(54.0, 10.0), 5.0)
    # Car behind, closing at 10m/s
    assert np.isclose(time_to_collision(-54.0, -10.0), 5.0)
    # Car ahead pulling away
    assert time_to_collision(54.0, -10.0) < 0
    assert time_to_collision(54.0, 0.0) == float('inf')


def test_obstacle_inside_margin_is_unsafe(converter):
    """Car 3m ahead at the same speed is inside the 9m margin."""
    report = assess_lane_change([car(7, 303.0, 22.3)], ego_s=300.0, ego_speed=22.3,
                                converter=converter)

    assert report.safe is False
    assert np.isclose(report.safety_margin, 9.0)
    assert len(report.assessments) == 1
    assert report.assessments[0].obstacle_id == 7
    assert report.assessments[0].margin_violation
    assert np.isclose(report.assessments[0].distance, 3.0)


def test_margin_violation_stops_the_scan(converter):
    obstacles = [car(0, 303.0, 22.3), car(1, 600.0, 22.3)]

    report = assess_lane_change(obstacles, ego_s=300.0, ego_speed=22.3, converter=converter)

    assert report.safe is False
    assert [a.obstacle_id for a in report.assessments] == [0]


def test_closing_within_horizon_is_unsafe(converter):
    """200m gap closing at 98m/s gives ttc = (200 - 4) / 98 = 2s."""
    report = assess_lane_change([car(0, 505.0, 2.0)], ego_s=305.0, ego_speed=100.0,
                                converter=converter)

    assert report.safe is False
    assessment = report.assessments[0]
    assert not assessment.margin_violation
    assert assessment.dangerous
    assert np.isclose(assessment.distance, 200.0)
    assert np.isclose(assessment.time_to_collision, 2.0)


def test_closing_beyond_horizon_is_safe(converter):
    """200m gap closing at 19.6m/s gives ttc = 10s."""
    assert safe_to_change_lane([car(0, 505.0, 2.7)], ego_s=305.0, ego_speed=22.3,
                               converter=converter)

    report = assess_lane_change([car(0, 505.0, 2.7)], ego_s=305.0, ego_speed=22.3,
                                converter=converter)
    assert np.isclose(report.assessments[0].time_to_collision, 10.0)
    assert not report.assessments[0].dangerous


def test_car_behind_catching_up(converter):
    # 50m behind, 20m/s faster: (-50 + 4) / -20 = 2.3s
    report = assess_lane_change([car(0, 255.0, 40.0)], ego_s=305.0, ego_speed=20.0,
                                converter=converter)
    assert report.safe is False
    assert np.isclose(report.assessments[0].time_to_collision, 2.3)

    # 10m/s faster: 4.6s
    assert safe_to_change_lane([car(0, 255.0, 30.0)], ego_s=305.0, ego_speed=20.0,
                               converter=converter)


def test_equal_speed_outside_margin_is_safe(converter):
    report = assess_lane_change([car(0, 405.0, 22.3)], ego_s=305.0, ego_speed=22.3,
                                converter=converter)

    assert report.safe is True
    assert report.assessments[0].time_to_collision == float('inf')


def test_all_obstacles_scanned_after_danger(converter):
    """A dangerous car does not hide the diagnostics of the ones after it."""
    obstacles = [car(0, 505.0, 2.0), car(1, 905.0, 99.0)]

    report = assess_lane_change(obstacles, ego_s=305.0, ego_speed=100.0, converter=converter)

    assert report.safe is False
    assert [a.obstacle_id for a in report.assessments] == [0, 1]
    assert [a.dangerous for a in report.assessments] == [True, False]
    assert np.isclose(report.closest_distance, 200.0)
    assert np.isclose(report.min_time_to_collision, 2.0)


def test_stationary_obstacle_does_not_break_check(converter):
    report = assess_lane_change([car(0, 705.0, 0.0)], ego_s=305.0, ego_speed=22.3,
                                converter=converter)

    assessment = report.assessments[0]
    assert not math.isnan(assessment.s)
    assert np.isclose(assessment.distance, 400.0)
    assert report.safe is True


def test_empty_lane_is_safe(converter):
    report = assess_lane_change([], ego_s=305.0, ego_speed=22.3, converter=converter)
    assert report.safe is True
    assert report.assessments == []
    assert report.closest_distance == float('inf')


def test_checker_horizon(converter):
    """ttc = 10s is dangerous once the horizon reaches it."""
    checker = LaneSafetyChecker(converter, horizon=12.0)
    assert not checker.is_safe([car(0, 505.0, 2.7)], ego_s=305.0, ego_speed=22.3)
