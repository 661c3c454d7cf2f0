"""Diagnostics sink for lane planning results.

The planning functions return structured reports and never print. This module
turns those reports into log records, so an application decides where they go
by configuring loguru sinks.
"""

from typing import Optional

from loguru import logger

from .core.data_structures import LaneSummary, SafetyReport

MPS_TO_MPH = 2.237


def mps_to_mph(speed: float) -> float:
    """Convert m/s to mph."""
    return speed * MPS_TO_MPH


def log_safety_report(report: SafetyReport, lane: Optional[int] = None) -> None:
    """Log every obstacle assessment of ``report`` followed by the verdict."""
    prefix = f"[lane {lane}] " if lane is not None else ""

    for a in report.assessments:
        status = "Dangerous!" if a.dangerous else "Safe"
        if a.margin_violation:
            status = "Inside safety margin"
        logger.info(
            f"{prefix}Car {a.obstacle_id}: relative position {a.distance:.2f}m, "
            f"relative speed {a.relative_speed:.2f}m/s, "
            f"time to collision {a.time_to_collision:.2f}s -> {status}"
        )

    logger.info(
        f"{prefix}Safety check done: {'safe' if report.safe else 'unsafe'} "
        f"(margin {report.safety_margin:.1f}m, closest car {report.closest_distance:.1f}m)"
    )


def log_lane_summary(summary: LaneSummary, lane: Optional[int] = None) -> None:
    prefix = f"[lane {lane}] " if lane is not None else ""
    logger.info(f"{prefix}Lane speed: {mps_to_mph(summary.avg_speed):.1f}mph, "
                f"{summary.count} cars")


def log_lane_choice(left: LaneSummary, right: LaneSummary, prefer_left: bool) -> None:
    logger.info(
        f"Pick {'left' if prefer_left else 'right'} "
        f"(left {left.avg_speed:.1f}m/s x{left.count}, "
        f"right {right.avg_speed:.1f}m/s x{right.count})"
    )
