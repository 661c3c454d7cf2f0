"""Tests for lane summaries and lane preference."""

import pytest
import numpy as np

from highway_planning.core.coordinate_converter import CoordinateConverter
from highway_planning.core.data_structures import LaneSummary, Obstacle
from highway_planning.core.waypoint_map import WaypointMap
from highway_planning.safety.lane_selection import (
    compare_lanes,
    group_obstacles_by_lane,
    lane_center,
    lane_index,
    lane_score,
    lane_summary,
)


def test_empty_lane_summary():
    summary = lane_summary([])
    assert summary.to_tuple() == (25.0, 0.0)
    assert summary.count == 0


def test_single_car_lane_summary():
    summary = lane_summary([Obstacle(id=0, x=0.0, y=0.0, vx=10.0, vy=0.0)])
    assert summary.to_tuple() == (10.0, 1.0)


def test_lane_summary_mean_speed():
    obstacles = [
        Obstacle(id=0, x=0.0, y=0.0, vx=3.0, vy=4.0),
        Obstacle(id=1, x=0.0, y=0.0, vx=15.0, vy=0.0),
    ]
    summary = lane_summary(obstacles)
    assert np.isclose(summary.avg_speed, 10.0)
    assert summary.count == 2


def test_custom_empty_lane_speed():
    assert lane_summary([], empty_lane_speed=30.0).avg_speed == 30.0


def test_compare_lanes_prefers_faster_lane():
    left = LaneSummary(avg_speed=20.0, count=2)
    right = LaneSummary(avg_speed=15.0, count=0)

    assert lane_score(left, right) == 3.0
    assert compare_lanes(left, right) is True


def test_compare_lanes_prefers_emptier_lane():
    left = LaneSummary(avg_speed=20.0, count=4)
    right = LaneSummary(avg_speed=19.0, count=1)

    assert compare_lanes(left, right) is False


def test_compare_lanes_tie_favours_left():
    lane = LaneSummary(avg_speed=18.0, count=1)
    assert compare_lanes(lane, LaneSummary(avg_speed=18.0, count=1)) is True


@pytest.mark.parametrize("d, expected", [
    (0.0, 0),
    (2.0, 0),
    (6.0, 1),
    (11.9, 2),
    (12.0, None),
    (-1.0, None),
])
def test_lane_index(d, expected):
    assert lane_index(d) == expected


def test_lane_center():
    assert lane_center(0) == 2.0
    assert lane_center(1) == 6.0
    assert lane_center(2, lane_width=3.5) == 8.75


def test_group_by_reported_d():
    obstacles = [
        Obstacle(id=0, x=0.0, y=0.0, vx=1.0, vy=0.0, s=10.0, d=2.0),
        Obstacle(id=1, x=0.0, y=0.0, vx=1.0, vy=0.0, s=20.0, d=10.0),
        Obstacle(id=2, x=0.0, y=0.0, vx=1.0, vy=0.0, s=30.0, d=2.5),
        Obstacle(id=3, x=0.0, y=0.0, vx=1.0, vy=0.0, s=40.0, d=-3.0),
    ]

    lanes = group_obstacles_by_lane(obstacles)

    assert [o.id for o in lanes[0]] == [0, 2]
    assert lanes[1] == []
    assert [o.id for o in lanes[2]] == [1]


def test_group_by_converted_position():
    x = np.arange(0.0, 101.0, 10.0)
    converter = CoordinateConverter(WaypointMap.from_points(x, np.zeros_like(x)))
    obstacles = [
        Obstacle(id=0, x=35.0, y=-6.0, vx=20.0, vy=0.0),
        Obstacle(id=1, x=55.0, y=-2.0, vx=20.0, vy=0.0),
        Obstacle(id=2, x=75.0, y=3.0, vx=20.0, vy=0.0),
    ]

    lanes = group_obstacles_by_lane(obstacles, converter)

    assert [o.id for o in lanes[0]] == [1]
    assert [o.id for o in lanes[1]] == [0]
    assert lanes[2] == []


def test_group_uses_speed_epsilon_for_heading():
    """A crawling car counts as stationary once below the speed epsilon."""
    corner = WaypointMap.from_points([0.0, 10.0, 10.0], [0.0, 0.0, 10.0])
    converter = CoordinateConverter(corner)
    crawling = Obstacle(id=0, x=11.0, y=-1.0, vx=-0.5, vy=0.0)

    # Heading west it sits right of the first segment
    lanes = group_obstacles_by_lane([crawling], converter)
    assert [o.id for o in lanes[0]] == [0]

    # Heading falls back to 0, so the north segment is used and it is off road
    lanes = group_obstacles_by_lane([crawling], converter, speed_epsilon=1.0)
    assert all(cars == [] for cars in lanes.values())


def test_group_without_d_needs_converter():
    with pytest.raises(ValueError):
        group_obstacles_by_lane([Obstacle(id=0, x=1.0, y=1.0, vx=0.0, vy=0.0)])
