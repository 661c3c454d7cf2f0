#!/usr/bin/env python3
"""Example script to check lane changes for a scenario.

This script demonstrates how to use the coordinate converter and the lane
safety checker on a scenario file.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from highway_planning.config import load_config
from highway_planning.core import CoordinateConverter
from highway_planning.safety import (
    LaneSafetyChecker,
    compare_lanes,
    group_obstacles_by_lane,
    lane_index,
    lane_summary,
)
from highway_planning.diagnostics import (
    log_lane_choice,
    log_lane_summary,
    log_safety_report,
)


def main():
    """Main function."""
    parser = argparse.ArgumentParser(
        description='Check lane change safety for a highway scenario'
    )
    parser.add_argument(
        '--scenario',
        type=str,
        default='scenarios/straight_highway.yaml',
        help='Path to scenario configuration file'
    )
    parser.add_argument(
        '--horizon',
        type=float,
        default=None,
        help='Time-to-collision horizon in seconds (overrides config)'
    )
    parser.add_argument(
        '--log-level',
        type=str,
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level'
    )

    args = parser.parse_args()

    # Configure logging
    logger.remove()
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>",
        level=args.log_level
    )
    logger.enable("highway_planning")

    logger.info(f"Loading scenario from {args.scenario}")
    config = load_config(args.scenario)

    if args.horizon is not None:
        config.horizon = args.horizon
        logger.info(f"Overriding horizon to: {args.horizon}s")

    waypoint_map = config.build_waypoint_map()
    converter = CoordinateConverter(waypoint_map, tuple(config.sign_reference_point))
    checker = LaneSafetyChecker.from_config(converter, config)

    ego = config.build_ego_state()
    ego_frenet = converter.to_frenet(ego.x, ego.y, ego.yaw)
    ego_lane = lane_index(ego_frenet.d, config.lane_width, config.n_lanes)
    logger.info(f"Ego at s={ego_frenet.s:.1f}m, d={ego_frenet.d:.2f}m (lane {ego_lane})")

    if ego_lane is None:
        logger.error("Ego vehicle is off the road")
        return 1

    lanes = group_obstacles_by_lane(
        config.build_obstacles(), converter, config.lane_width, config.n_lanes,
        config.speed_epsilon
    )
    summaries = {
        lane: lane_summary(cars, config.empty_lane_speed) for lane, cars in lanes.items()
    }
    for lane, summary in summaries.items():
        log_lane_summary(summary, lane)

    verdicts = {}
    for lane in (ego_lane - 1, ego_lane + 1):
        if lane not in lanes:
            continue
        report = checker.assess(lanes[lane], ego_frenet.s, ego.v)
        log_safety_report(report, lane)
        verdicts[lane] = report.safe

    left, right = ego_lane - 1, ego_lane + 1
    if left in verdicts and right in verdicts:
        prefer_left = compare_lanes(summaries[left], summaries[right])
        log_lane_choice(summaries[left], summaries[right], prefer_left)
        ordered = (left, right) if prefer_left else (right, left)
    else:
        ordered = tuple(verdicts)

    target = next((lane for lane in ordered if verdicts[lane]), ego_lane)
    if target == ego_lane:
        logger.info(f"Keeping lane {ego_lane}")
    else:
        logger.success(f"Changing to lane {target}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
