"""
Compound query handling.

Queries that trip three or more detector families land here. A few known
combinations get a dedicated answer; everything else gets a sectioned
analysis of the zone, robot or warehouse the query is about.
"""

from __future__ import annotations

import re
from typing import Optional

from models import (
    ChartMetadata,
    ComparisonMetadata,
    InsightMetadata,
    Level,
    QueryResponse,
    QueryResult,
    ResponseType,
    RobotStatus,
    WarehouseSnapshot,
)
from intent_classifier import Detector, MatchSet
from response_builder import average, error_result, robot_label, round_half_up, status_phrase
from tuning import EngineTuning

TOOL_TERMS = ["forklift", "gripper", "conveyor", "scanner", "lift", "arm", "vacuum"]
DEFAULT_TOOL = "forklift"

EFFICIENCY_RECOMMENDATIONS = [
    "Redistribute AMRs from low-task zones to high-priority zones",
    "Prioritize charging for AMRs with battery levels between 30-40%",
    "Swap tools to match the most common tasks in each zone",
]


def find_tool_term(query: str) -> Optional[str]:
    for term in TOOL_TERMS:
        if re.search(rf"\b{term}\b", query):
            return term
    return None


def _zone_not_found(zone_id: str) -> QueryResult:
    return error_result(
        f"I couldn't find {zone_id} in the system. Available zones are Zone A, Zone B, and Zone C.",
        "Zone Not Found",
    )


def handle_complex(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    if match.zone_id and match.has(Detector.BATTERY) and match.has(Detector.EFFICIENCY):
        return _zone_low_efficiency_battery(match, snapshot, tuning)
    if match.has(Detector.TOOL) and match.has(Detector.BATTERY):
        return _tool_low_battery(match, snapshot, tuning)
    if match.has(Detector.COMPARISON) and match.zone_id and match.has(Detector.EFFICIENCY):
        return _zone_efficiency_comparison(match, snapshot)
    return _comprehensive_analysis(match, snapshot, tuning)


# --- Known combinations ---

def _zone_low_efficiency_battery(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    """Battery levels of the under-performing robots in one zone."""
    zone_id = match.zone_id
    if snapshot.get_zone_by_id(zone_id) is None:
        return _zone_not_found(zone_id)

    threshold = match.percentage if match.percentage is not None else tuning.default_efficiency_threshold
    robots = sorted(
        (r for r in snapshot.robots if r.zone_id == zone_id and r.efficiency < threshold),
        key=lambda r: r.battery_level,
    )
    if not robots:
        return QueryResult(
            message=f"There are no AMRs in {zone_id} with efficiency below {threshold}%.",
            response=QueryResponse(title=f"{zone_id} Battery Analysis", data=[], type=ResponseType.MULTI_ROBOT),
        )

    return QueryResult(
        message=(
            f"In {zone_id}, {len(robots)} AMRs have efficiency below {threshold}%. Their battery levels "
            f"range from {robots[0].battery_level}% to {robots[-1].battery_level}%."
        ),
        response=QueryResponse(
            title=f"{zone_id} Low Efficiency AMRs - Battery Analysis",
            data=robots,
            type=ResponseType.MULTI_ROBOT,
            metadata=ChartMetadata(
                metric_name="Battery Level",
                chart_data={robot_label(r.id): r.battery_level for r in robots},
            ),
        ),
    )


def _tool_low_battery(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    tool = find_tool_term(match.query) or DEFAULT_TOOL
    threshold = match.percentage if match.percentage is not None else tuning.default_tool_battery_threshold
    title = f"{tool.capitalize()} Tool Users"

    robots = [
        r for r in snapshot.robots
        if tool in r.current_tool.lower() and r.battery_level < threshold
    ]
    if not robots:
        return QueryResult(
            message=f"No AMRs with the {tool} tool have battery levels below {threshold}%.",
            response=QueryResponse(title=title, data=[], type=ResponseType.MULTI_ROBOT),
        )

    listing = ", ".join(f"{robot_label(r.id)} ({r.battery_level}%)" for r in robots)
    return QueryResult(
        message=(
            f"{len(robots)} AMRs are using the {tool} tool and have battery levels below {threshold}%: {listing}."
        ),
        response=QueryResponse(
            title=f"{title} - Low Battery",
            data=robots,
            type=ResponseType.MULTI_ROBOT,
            metadata=ChartMetadata(
                metric_name="Battery Level",
                chart_data={robot_label(r.id): r.battery_level for r in robots},
            ),
        ),
    )


def _zone_efficiency_comparison(match: MatchSet, snapshot: WarehouseSnapshot) -> QueryResult:
    """Average robot efficiency per zone, optionally only for one tool."""
    tool = find_tool_term(match.query) if match.has(Detector.TOOL) else None
    suffix = f" using {tool} tools" if tool else ""

    efficiencies: dict[str, int] = {}
    lines = []
    for zone in snapshot.zones:
        robots = [
            r for r in snapshot.robots
            if r.zone_id == zone.id and (tool is None or tool in r.current_tool.lower())
        ]
        efficiencies[zone.name] = round_half_up(average([r.efficiency for r in robots]))
        lines.append(f"- {zone.name}: {efficiencies[zone.name]}% efficiency ({len(robots)} AMRs{suffix})")

    return QueryResult(
        message=f"Zone efficiency comparison for AMRs{suffix}:\n" + "\n".join(lines),
        response=QueryResponse(
            title="Zone Efficiency Comparison" + (f" - {tool} Tools" if tool else ""),
            data=list(snapshot.zones),
            type=ResponseType.COMPARISON,
            metadata=ComparisonMetadata(comparison_type="Zone", metric_name="Efficiency", chart_data=efficiencies),
        ),
    )


# --- Comprehensive analysis ---

def _comprehensive_analysis(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    sections = ["Based on your complex query, here's a comprehensive analysis:"]
    title = "Comprehensive Analysis"

    if match.zone_id:
        zone = snapshot.get_zone_by_id(match.zone_id)
        if zone is None:
            return _zone_not_found(match.zone_id)
        title = f"{zone.name} Analysis"
        sections.append(
            f"{zone.name} is a {zone.priority.value} priority zone with {zone.robot_count} AMRs and "
            f"{zone.tasks_pending} pending tasks."
        )
        members = [r for r in snapshot.robots if r.zone_id == zone.id]
        if members:
            sections.append("AMRs in this zone:\n" + "\n".join(
                f"- {robot_label(r.id)}: {r.status.value}, {r.battery_level}% battery, using {r.current_tool} tool"
                for r in members
            ))
        data, response_type = list(snapshot.zones), ResponseType.MULTI_ZONE

    elif match.robot_id is not None:
        robot = snapshot.get_robot_by_id(match.robot_id)
        if robot is None:
            return error_result(
                f"I couldn't find {robot_label(match.robot_id)} in the system. Please check the ID and try again.",
                "Robot Not Found",
            )
        label = robot_label(robot.id)
        title = f"{label} Analysis"
        task = f"working on {robot.current_task}" if robot.current_task else "not assigned any tasks"
        sections.append(
            f"{label} is {status_phrase(robot.status)} robot in {robot.zone_id} with {robot.battery_level}% battery.\n"
            f"It's using a {robot.current_tool} tool and currently {task}.\n"
            f"This robot is operating at {robot.efficiency}% efficiency."
        )
        data, response_type = list(snapshot.robots), ResponseType.MULTI_ROBOT

    else:
        overview = snapshot.overview
        general = (
            "Warehouse Overview:\n"
            f"- {overview.active_robots} active AMRs out of {overview.total_robots} total\n"
            f"- Overall efficiency: {overview.robot_efficiency}%\n"
            f"- Tasks completed today: {overview.tasks_completed}"
        )
        high_priority = [z.name for z in snapshot.zones if z.priority == Level.HIGH]
        if high_priority:
            general += f"\n\nHigh Priority Zones: {', '.join(high_priority)}"
        sections.append(general)

        if match.has(Detector.BATTERY):
            low = [r for r in snapshot.robots if r.battery_level < tuning.low_battery_threshold]
            if low:
                sections.append("Critical Battery Levels:\n" + "\n".join(
                    f"- {robot_label(r.id)}: {r.battery_level}% battery in {r.zone_id}" for r in low
                ))

        if match.has(Detector.MAINTENANCE):
            down = [r for r in snapshot.robots if r.status == RobotStatus.MAINTENANCE]
            if down:
                sections.append("Robots in Maintenance:\n" + "\n".join(
                    f"- {robot_label(r.id)} in {r.zone_id}" for r in down
                ))
        data, response_type = overview, ResponseType.OVERVIEW

    if match.has(Detector.EFFICIENCY):
        sections.append("Efficiency Recommendations:\n" + "\n".join(f"- {line}" for line in EFFICIENCY_RECOMMENDATIONS))

    message = "\n\n".join(sections)
    return QueryResult(
        message=message,
        response=QueryResponse(
            title=title,
            data=data,
            type=response_type,
            metadata=InsightMetadata(secondary_data=message.split("\n\n")),
        ),
    )
