"""
Shared helpers for shaping query answers: display labels, counts by category
and the canned error results.
"""

from __future__ import annotations

from collections import Counter
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional

from models import (
    Level,
    QueryResponse,
    QueryResult,
    ResponseType,
    Robot,
    RobotStatus,
    Zone,
)

HELP_MESSAGE = (
    "I'm not sure how to answer that question. You can ask me about specific AMRs "
    "(e.g., \"Where is AMR 03?\"), zones (e.g., \"Show Zone B status\"), or general "
    "warehouse information like efficiency or maintenance needs. You can also ask to "
    "compare robots or zones, see all robots or zones, get counts, or check priority or "
    "traffic information. For more complex operations, try asking about optimizing "
    "workflows, deploying robots, or forecasting capacity needs."
)

LEVEL_SCORE = {Level.HIGH: 3, Level.MEDIUM: 2, Level.LOW: 1}


def robot_label(robot_id: int) -> str:
    """Display name for a robot id: always zero-padded to two digits."""
    return f"AMR {robot_id:02d}"


def round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_coordinate(value: float) -> str:
    """12.0 -> '12', 12.34 -> '12.3'."""
    return f"{round(value, 1):g}"


def battery_description(level: int) -> str:
    if level < 10:
        return "The battery is critically low and requires immediate charging."
    if level < 30:
        return "The battery is running low and should be charged soon."
    if level < 60:
        return "The battery level is moderate."
    if level < 80:
        return "The battery level is good."
    return "The battery is nearly full."


def status_phrase(status: RobotStatus) -> str:
    """'an idle', 'a charging'..."""
    article = "an" if status.value[0] in "aeiou" else "a"
    return f"{article} {status.value}"


def status_counts(robots: Iterable[Robot]) -> dict[str, int]:
    """Robot count per status, keyed by display label, every status present."""
    counts = Counter(r.status for r in robots)
    return {status.value.capitalize(): counts.get(status, 0) for status in RobotStatus}


def level_counts(values: Iterable[Level]) -> dict[str, int]:
    """High/Medium/Low counts, in that order."""
    counts = Counter(values)
    return {level.value.capitalize(): counts.get(level, 0) for level in (Level.HIGH, Level.MEDIUM, Level.LOW)}


def tool_counts(robots: Iterable[Robot]) -> dict[str, int]:
    return dict(Counter(r.current_tool for r in robots))


def robots_in_zone(robots: Iterable[Robot], zone_id: str, status: Optional[RobotStatus] = None) -> list[Robot]:
    return [r for r in robots if r.zone_id == zone_id and (status is None or r.status == status)]


def average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def join_labels(robots: Iterable[Robot]) -> str:
    return ", ".join(robot_label(r.id) for r in robots)


def zone_names(zones: Iterable[Zone]) -> str:
    return ", ".join(z.name for z in zones)


def error_result(message: str, title: str) -> QueryResult:
    return QueryResult(
        message=message,
        response=QueryResponse(title=title, data=None, type=ResponseType.ERROR),
    )


def unrecognized_result() -> QueryResult:
    return error_result(HELP_MESSAGE, "AI Response")
