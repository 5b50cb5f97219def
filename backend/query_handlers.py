"""
Lookup and analytic handlers for the local query engine.

Each handler takes the classified query, a frozen warehouse snapshot and the
engine tuning, and returns a QueryResult. "Nothing found" is always an error
result, never an exception.
"""

from __future__ import annotations

from models import (
    ChartMetadata,
    ComparisonMetadata,
    InsightMetadata,
    Level,
    QueryResponse,
    QueryResult,
    ResponseType,
    Robot,
    RobotStatus,
    WarehouseSnapshot,
)
from intent_classifier import Detector, MatchSet
from response_builder import (
    LEVEL_SCORE,
    average,
    battery_description,
    error_result,
    format_coordinate,
    join_labels,
    level_counts,
    robot_label,
    robots_in_zone,
    round_half_up,
    status_counts,
    status_phrase,
    tool_counts,
    zone_names,
)
from tuning import EngineTuning
import planning_engine

RECENT_ACTIVITY_LIMIT = 5


def _task_phrase(robot: Robot) -> str:
    return f"working on {robot.current_task}" if robot.current_task else "not assigned any tasks"


# --- Robot lookup ---

def handle_robot(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robot_id = match.robot_id
    robot = snapshot.get_robot_by_id(robot_id)
    label = robot_label(robot_id)
    if robot is None:
        return error_result(
            f"I couldn't find {label} in the system. Please check the ID and try again.",
            "Robot Not Found",
        )

    if match.has(Detector.COMPARISON):
        other_id = match.second_robot_id()
        if other_id is not None:
            return _compare_two_robots(robot, other_id, snapshot)

    if match.has(Detector.LOCATION):
        x, y = format_coordinate(robot.coordinates.x), format_coordinate(robot.coordinates.y)
        return _robot_result(
            robot,
            f"{label} is currently located in {robot.zone_id} at coordinates ({x}, {y}).",
            "Location",
        )

    if match.has(Detector.STATUS):
        return _robot_result(
            robot,
            f"{label} is currently {robot.status.value}. It has a battery level of "
            f"{robot.battery_level}% and is {_task_phrase(robot)}.",
            "Status",
        )

    if match.has(Detector.BATTERY):
        return _robot_result(
            robot,
            f"{label} currently has a battery level of {robot.battery_level}%. "
            f"{battery_description(robot.battery_level)}",
            "Battery",
        )

    if match.has(Detector.TOOL):
        usage = "actively using it for" if robot.status == RobotStatus.ACTIVE else "assigned to use it for"
        task = robot.current_task or "no current task"
        return _robot_result(
            robot,
            f"{label} is currently equipped with the {robot.current_tool} tool and is {usage} {task}.",
            "Equipment",
        )

    if match.has(Detector.ACTIVITY):
        return _robot_activity(robot, snapshot)

    return _robot_result(
        robot,
        f"{label} is {status_phrase(robot.status)} robot in {robot.zone_id}. It has a battery level of "
        f"{robot.battery_level}% and is currently {_task_phrase(robot)}.",
        "Information",
    )


def _robot_result(robot: Robot, message: str, aspect: str) -> QueryResult:
    return QueryResult(
        message=message,
        response=QueryResponse(
            title=f"{robot_label(robot.id)} {aspect}",
            data=robot,
            type=ResponseType.ROBOT,
        ),
    )


def _robot_activity(robot: Robot, snapshot: WarehouseSnapshot) -> QueryResult:
    label = robot_label(robot.id)
    entries = [a for a in snapshot.activities if label in a.message][:RECENT_ACTIVITY_LIMIT]
    lines = [f"{a.timestamp:%H:%M} - {a.message}" for a in entries]
    if lines:
        message = f"Recent activity for {label}: " + "; ".join(a.message for a in entries) + "."
    else:
        message = f"No recent activity recorded for {label}. It is currently {_task_phrase(robot)}."
    return QueryResult(
        message=message,
        response=QueryResponse(
            title=f"{label} Activity Tracking",
            data=robot,
            type=ResponseType.ROBOT,
            metadata=InsightMetadata(secondary_data=lines),
        ),
    )


def _compare_two_robots(first: Robot, other_id: int, snapshot: WarehouseSnapshot) -> QueryResult:
    second = snapshot.get_robot_by_id(other_id)
    if second is None:
        return error_result(
            f"I couldn't find {robot_label(other_id)} in the system. Please check the ID and try again.",
            "Robot Not Found",
        )

    a, b = robot_label(first.id), robot_label(second.id)
    if first.efficiency == second.efficiency:
        verdict = "Both are running at the same efficiency."
    else:
        leader = first if first.efficiency > second.efficiency else second
        verdict = f"{robot_label(leader.id)} is the more efficient of the two."

    return QueryResult(
        message=(
            f"Comparing {a} and {b}. {a} is at {first.efficiency}% efficiency with "
            f"{first.battery_level}% battery; {b} is at {second.efficiency}% efficiency with "
            f"{second.battery_level}% battery. {verdict}"
        ),
        response=QueryResponse(
            title=f"Full Comparison: {a} vs {b}",
            data=[first, second],
            type=ResponseType.COMPARISON,
            metadata=ComparisonMetadata(
                comparison_type="Robot",
                metric_name="Efficiency and Battery",
                chart_data={
                    "Efficiency": {a: first.efficiency, b: second.efficiency},
                    "Battery": {a: first.battery_level, b: second.battery_level},
                },
            ),
        ),
    )


# --- Zone lookup ---

def handle_zone(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    zone_id = match.zone_id
    zone = snapshot.get_zone_by_id(zone_id)
    if zone is None:
        return error_result(
            f"I couldn't find {zone_id} in the system. Available zones are Zone A, Zone B, and Zone C.",
            "Zone Not Found",
        )

    if match.has(Detector.DEPLOYMENT, Detector.REDISTRIBUTION):
        return planning_engine.plan_zone_deployment(zone, match, snapshot, tuning)

    if match.has(Detector.IDLE):
        return _robots_in_zone_with_status(zone.id, RobotStatus.IDLE, snapshot)
    if match.has(Detector.ACTIVE) and match.mentions("robot", "amr"):
        return _robots_in_zone_with_status(zone.id, RobotStatus.ACTIVE, snapshot)

    if match.mentions("robots", "amrs"):
        members = robots_in_zone(snapshot.robots, zone.id)
        active = sum(1 for r in members if r.status == RobotStatus.ACTIVE)
        if members:
            robot_info = f"There are {len(members)} AMRs in this zone: {join_labels(members)}."
        else:
            robot_info = "There are currently no AMRs operating in this zone."
        return QueryResult(
            message=(
                f"{zone.id} currently has {zone.robot_count} AMRs, {active} of them active. "
                f"{robot_info} The zone has {zone.tasks_pending} pending tasks and "
                f"{zone.tasks_completed} completed tasks."
            ),
            response=QueryResponse(title=f"{zone.id} Robots", data=zone, type=ResponseType.ZONE),
        )

    if match.has(Detector.EFFICIENCY):
        return QueryResult(
            message=(
                f"{zone.id} is currently operating at {zone.efficiency}% efficiency. This zone has a "
                f"{zone.traffic_density.value} traffic density and {zone.tasks_pending} pending tasks."
            ),
            response=QueryResponse(title=f"{zone.id} Efficiency", data=zone, type=ResponseType.ZONE),
        )

    return QueryResult(
        message=(
            f"{zone.id} is a {zone.priority.value} priority zone with {zone.robot_count} AMRs. "
            f"The zone has {zone.tasks_pending} pending tasks, {zone.tasks_completed} completed tasks, "
            f"and is operating at {zone.efficiency}% efficiency with {zone.traffic_density.value} "
            f"traffic density."
        ),
        response=QueryResponse(title=f"{zone.id} Status", data=zone, type=ResponseType.ZONE),
    )


def _robots_in_zone_with_status(zone_id: str, status: RobotStatus, snapshot: WarehouseSnapshot) -> QueryResult:
    found = robots_in_zone(snapshot.robots, zone_id, status)
    title = f"{status.value.capitalize()} Robots in {zone_id}"
    if not found:
        return error_result(f"No {status.value} robots found in {zone_id}.", title)
    return QueryResult(
        message=f"Found {len(found)} {status.value} robots in {zone_id}.",
        response=QueryResponse(title=title, data=found, type=ResponseType.MULTI_ROBOT),
    )


# --- Warehouse-wide ---

def handle_overview(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    overview = snapshot.overview
    counts = status_counts(snapshot.robots)
    pending = sum(z.tasks_pending for z in snapshot.zones)
    high_traffic = sum(1 for z in snapshot.zones if z.traffic_density == Level.HIGH)

    insights = [
        f"{overview.active_robots} out of {overview.total_robots} AMRs are currently active",
        f"Overall warehouse efficiency is at {overview.robot_efficiency}%",
        f"{pending} tasks are currently pending across all zones",
        f"{high_traffic} zones have high traffic density",
        f"{counts['Maintenance']} AMRs are currently in maintenance",
    ]
    return QueryResult(
        message=(
            f"The warehouse currently has {overview.active_robots} active AMRs out of a total of "
            f"{overview.total_robots}. The overall robot efficiency is {overview.robot_efficiency}% "
            f"with {overview.tasks_completed} tasks completed today."
        ),
        response=QueryResponse(
            title="Warehouse Overview",
            data=overview,
            type=ResponseType.OVERVIEW,
            metadata=InsightMetadata(secondary_data=insights, chart_data=counts),
        ),
    )


def handle_efficiency(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robots = sorted(snapshot.robots, key=lambda r: r.efficiency, reverse=True)
    zones = sorted(snapshot.zones, key=lambda z: z.efficiency, reverse=True)
    about_robots = match.mentions("robot", "amr")
    about_zones = match.mentions("zone")

    for detector, pick, word in ((Detector.HIGHEST, 0, "most"), (Detector.LOWEST, -1, "least")):
        if not match.has(detector):
            continue
        if about_robots and robots:
            robot = robots[pick]
            return QueryResult(
                message=(
                    f"The {word} efficient robot is {robot_label(robot.id)} with an efficiency rating of "
                    f"{robot.efficiency}%. It's currently {robot.status.value} in {robot.zone_id}."
                ),
                response=QueryResponse(
                    title=f"{word.capitalize()} Efficient Robot", data=robot, type=ResponseType.ROBOT
                ),
            )
        if about_zones and zones:
            zone = zones[pick]
            return QueryResult(
                message=(
                    f"The {word} efficient zone is {zone.name} with an efficiency rating of "
                    f"{zone.efficiency}%. It has {zone.robot_count} AMRs and {zone.tasks_pending} "
                    f"pending tasks."
                ),
                response=QueryResponse(
                    title=f"{word.capitalize()} Efficient Zone", data=zone, type=ResponseType.ZONE
                ),
            )

    if not robots or not zones:
        return error_result("There is no efficiency data available for the warehouse yet.", "Efficiency Analysis")

    chart = {robot_label(r.id): r.efficiency for r in robots[:5]}
    chart.update({z.name: z.efficiency for z in zones})
    return QueryResult(
        message=(
            f"The overall warehouse efficiency is {snapshot.overview.robot_efficiency}%. The most "
            f"efficient zone is {zones[0].name} at {zones[0].efficiency}% and the most efficient AMR is "
            f"{robot_label(robots[0].id)} at {robots[0].efficiency}%."
        ),
        response=QueryResponse(
            title="Efficiency Analysis",
            data=robots,
            type=ResponseType.COMPARISON,
            metadata=ComparisonMetadata(comparison_type="Efficiency", metric_name="Efficiency", chart_data=chart),
        ),
    )


def handle_status(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robots = list(snapshot.robots)

    if match.has(Detector.IDLE):
        idle = [r for r in robots if r.status == RobotStatus.IDLE]
        if not idle:
            return error_result(
                "There are currently no idle AMRs in the warehouse. All robots are actively engaged in tasks.",
                "Idle AMRs",
            )
        first = idle[0]
        return QueryResult(
            message=(
                f"There are {len(idle)} idle AMRs in the warehouse. {robot_label(first.id)} is currently "
                f"idle in {first.zone_id}."
            ),
            response=QueryResponse(title="Idle AMR Status", data=first, type=ResponseType.ROBOT),
        )

    if match.has(Detector.ACTIVE):
        active = [r for r in robots if r.status == RobotStatus.ACTIVE]
        if not active:
            return error_result(
                "There are currently no active AMRs in the warehouse. Most robots may be charging or in maintenance.",
                "Active AMRs",
            )
        first = active[0]
        return QueryResult(
            message=(
                f"There are {len(active)} active AMRs in the warehouse. {robot_label(first.id)} is currently "
                f"active in {first.zone_id}, {_task_phrase(first)}."
            ),
            response=QueryResponse(title="Active AMR Status", data=first, type=ResponseType.ROBOT),
        )

    counts = status_counts(robots)
    overview = snapshot.overview
    return QueryResult(
        message=(
            f"The warehouse currently has {overview.active_robots} active AMRs out of "
            f"{overview.total_robots} total. {counts['Charging']} are charging, {counts['Maintenance']} "
            f"are in maintenance, and {counts['Idle']} are idle."
        ),
        response=QueryResponse(
            title="AMR Status Overview",
            data=robots,
            type=ResponseType.MULTI_ROBOT,
            metadata=ChartMetadata(metric_name="Status Distribution", chart_data=counts),
        ),
    )


def handle_maintenance(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    in_maintenance = [r for r in snapshot.robots if r.status == RobotStatus.MAINTENANCE]
    if not in_maintenance:
        return error_result(
            "There are currently no AMRs in maintenance. All robots are operational.",
            "Maintenance Status",
        )
    first = in_maintenance[0]
    return QueryResult(
        message=(
            f"There are {len(in_maintenance)} AMRs currently undergoing maintenance. "
            f"{robot_label(first.id)} is in maintenance in {first.zone_id}."
        ),
        response=QueryResponse(title="Maintenance Status", data=first, type=ResponseType.ROBOT),
    )


def handle_battery(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robots = list(snapshot.robots)
    if not robots:
        return error_result("There are no AMRs reporting battery levels.", "Battery Overview")

    if match.has(Detector.LOWEST):
        lowest = min(robots, key=lambda r: r.battery_level)
        return QueryResult(
            message=(
                f"{robot_label(lowest.id)} has the lowest battery at {lowest.battery_level}%. "
                f"{battery_description(lowest.battery_level)}"
            ),
            response=QueryResponse(title="Lowest Battery AMR", data=lowest, type=ResponseType.ROBOT),
        )

    if match.mentions("charging"):
        charging = [r for r in robots if r.status == RobotStatus.CHARGING]
        if not charging:
            return error_result(
                "There are currently no AMRs charging. All robots are either active, idle, or in maintenance.",
                "Charging Status",
            )
        first = charging[0]
        return QueryResult(
            message=(
                f"There are {len(charging)} AMRs currently charging. {robot_label(first.id)} is charging in "
                f"{first.zone_id} at {first.battery_level}%."
            ),
            response=QueryResponse(title="Charging Status", data=first, type=ResponseType.ROBOT),
        )

    levels = [r.battery_level for r in robots]
    critical = sum(1 for b in levels if b < tuning.critical_battery_level)
    buckets = {
        "Critical (0-20%)": sum(1 for b in levels if b < 20),
        "Low (20-40%)": sum(1 for b in levels if 20 <= b < 40),
        "Medium (40-60%)": sum(1 for b in levels if 40 <= b < 60),
        "Good (60-80%)": sum(1 for b in levels if 60 <= b < 80),
        "Full (80-100%)": sum(1 for b in levels if b >= 80),
    }
    return QueryResult(
        message=(
            f"The average battery level across all AMRs is {round_half_up(average(levels))}%. There are "
            f"{critical} robots with critical battery levels (below {tuning.critical_battery_level}%)."
        ),
        response=QueryResponse(
            title="Battery Overview",
            data=sorted(robots, key=lambda r: r.battery_level, reverse=True),
            type=ResponseType.MULTI_ROBOT,
            metadata=ChartMetadata(metric_name="Battery Levels", chart_data=buckets),
        ),
    )


def handle_multi_robot_location(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    distribution = {z.name: len(robots_in_zone(snapshot.robots, z.id)) for z in snapshot.zones}
    if not distribution:
        return error_result("There are no zones configured in the warehouse.", "Robot Locations")

    busiest = max(distribution, key=distribution.get)
    breakdown = ", ".join(f"{name}: {count} AMRs" for name, count in distribution.items())
    return QueryResult(
        message=f"Most AMRs are currently in {busiest} ({distribution[busiest]} robots). {breakdown}.",
        response=QueryResponse(
            title="Robot Locations",
            data=list(snapshot.robots),
            type=ResponseType.MULTI_ROBOT,
            metadata=ChartMetadata(metric_name="Zone Distribution", chart_data=distribution),
        ),
    )


# --- Listings ---

def handle_all_robots(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robots = list(snapshot.robots)

    if match.has(Detector.STATUS):
        counts = status_counts(robots)
        return QueryResult(
            message=(
                f"There are {len(robots)} AMRs in the warehouse: {counts['Active']} active, {counts['Idle']} "
                f"idle, {counts['Charging']} charging, and {counts['Maintenance']} in maintenance."
            ),
            response=QueryResponse(
                title="All Robots by Status",
                data=robots,
                type=ResponseType.MULTI_ROBOT,
                metadata=ChartMetadata(metric_name="Status", chart_data=counts),
            ),
        )

    attribute = ""
    if match.has(Detector.BATTERY):
        robots.sort(key=lambda r: r.battery_level, reverse=True)
        attribute = "battery level"
    elif match.has(Detector.EFFICIENCY):
        robots.sort(key=lambda r: r.efficiency, reverse=True)
        attribute = "efficiency"

    return QueryResult(
        message=f"Here are all {len(robots)} AMRs in the warehouse" + (f", sorted by {attribute}." if attribute else "."),
        response=QueryResponse(
            title=f"All Robots by {attribute.title()}" if attribute else "All Robots",
            data=robots,
            type=ResponseType.MULTI_ROBOT,
        ),
    )


def handle_all_zones(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    zones = list(snapshot.zones)

    attribute = ""
    if match.has(Detector.EFFICIENCY):
        zones.sort(key=lambda z: z.efficiency, reverse=True)
        attribute = "efficiency"
    elif match.has(Detector.PRIORITY):
        zones.sort(key=lambda z: LEVEL_SCORE[z.priority], reverse=True)
        attribute = "priority"
    elif match.has(Detector.TRAFFIC):
        zones.sort(key=lambda z: LEVEL_SCORE[z.traffic_density], reverse=True)
        attribute = "traffic density"

    return QueryResult(
        message=f"Here are all {len(zones)} zones in the warehouse" + (f", sorted by {attribute}." if attribute else "."),
        response=QueryResponse(
            title=f"All Zones by {attribute.title()}" if attribute else "All Zones",
            data=zones,
            type=ResponseType.MULTI_ZONE,
        ),
    )


# --- Comparison ---

def handle_comparison(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    if match.mentions("robot", "amr"):
        return _compare_robots(match, list(snapshot.robots))
    if match.mentions("zone"):
        return _compare_zones(match, list(snapshot.zones))
    return error_result(
        "I'm not sure what you want to compare. You can compare robots by battery level, efficiency, "
        "status, or tool, or zones by priority, traffic density, or efficiency.",
        "Comparison",
    )


def _compare_robots(match: MatchSet, robots: list[Robot]) -> QueryResult:
    numeric = match.has(Detector.BATTERY, Detector.EFFICIENCY)

    if match.has(Detector.STATUS) and not numeric:
        counts = status_counts(robots)
        return QueryResult(
            message=(
                f"Comparing AMRs by status: {counts['Active']} active, {counts['Idle']} idle, "
                f"{counts['Charging']} charging, and {counts['Maintenance']} in maintenance."
            ),
            response=QueryResponse(
                title="Robot Status Comparison",
                data=robots,
                type=ResponseType.COMPARISON,
                metadata=ComparisonMetadata(comparison_type="Robot", metric_name="Status", chart_data=counts),
            ),
        )

    if match.has(Detector.TOOL) and not numeric:
        counts = tool_counts(robots)
        breakdown = ", ".join(f"{count} using {tool}" for tool, count in counts.items())
        return QueryResult(
            message=f"Comparing AMRs by current tool: {breakdown}.",
            response=QueryResponse(
                title="Robot Tool Comparison",
                data=robots,
                type=ResponseType.COMPARISON,
                metadata=ComparisonMetadata(comparison_type="Robot", metric_name="Tool", chart_data=counts),
            ),
        )

    if match.has(Detector.BATTERY):
        metric, key, unit = "Battery Level", (lambda r: r.battery_level), "%"
    else:
        metric, key, unit = "Efficiency", (lambda r: r.efficiency), "% efficiency"

    ranked = sorted(robots, key=key, reverse=True)
    if not ranked:
        return error_result("There are no AMRs to compare.", f"Robot {metric} Comparison")
    top = ranked[0]
    return QueryResult(
        message=(
            f"Comparing AMRs by {metric.lower()}. The highest is {robot_label(top.id)} at {key(top)}{unit}."
        ),
        response=QueryResponse(
            title=f"Robot {metric} Comparison",
            data=ranked,
            type=ResponseType.COMPARISON,
            metadata=ComparisonMetadata(
                comparison_type="Robot",
                metric_name=metric,
                chart_data={robot_label(r.id): key(r) for r in ranked},
            ),
        ),
    )


def _compare_zones(match: MatchSet, zones: list) -> QueryResult:
    if match.has(Detector.PRIORITY, Detector.TRAFFIC) or not zones:
        if match.has(Detector.PRIORITY):
            metric, counts = "Priority", level_counts(z.priority for z in zones)
        else:
            metric, counts = "Traffic Density", level_counts(z.traffic_density for z in zones)
        return QueryResult(
            message=(
                f"Comparing zones by {metric.lower()}: {counts['High']} high, {counts['Medium']} medium, "
                f"and {counts['Low']} low."
            ),
            response=QueryResponse(
                title=f"Zone {metric} Comparison",
                data=zones,
                type=ResponseType.COMPARISON,
                metadata=ComparisonMetadata(comparison_type="Zone", metric_name=metric, chart_data=counts),
            ),
        )

    ranked = sorted(zones, key=lambda z: z.efficiency, reverse=True)
    return QueryResult(
        message=f"Comparing zones by efficiency. The most efficient is {ranked[0].name} at {ranked[0].efficiency}%.",
        response=QueryResponse(
            title="Zone Efficiency Comparison",
            data=ranked,
            type=ResponseType.COMPARISON,
            metadata=ComparisonMetadata(
                comparison_type="Zone",
                metric_name="Efficiency",
                chart_data={z.name: z.efficiency for z in ranked},
            ),
        ),
    )


# --- Counts ---

def handle_count(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    robots, zones, overview = snapshot.robots, snapshot.zones, snapshot.overview
    pending = sum(z.tasks_pending for z in zones)

    if match.mentions("robot", "amr"):
        counts = status_counts(robots)
        return QueryResult(
            message=(
                f"There are {len(robots)} total AMRs in the warehouse: {counts['Active']} active, "
                f"{counts['Idle']} idle, {counts['Charging']} charging, and {counts['Maintenance']} in maintenance."
            ),
            response=QueryResponse(
                title="Robot Count",
                data=overview,
                type=ResponseType.OVERVIEW,
                metadata=InsightMetadata(secondary_data=counts),
            ),
        )

    if match.mentions("zone"):
        counts = level_counts(z.priority for z in zones)
        return QueryResult(
            message=(
                f"There are {len(zones)} total zones in the warehouse: {counts['High']} high priority, "
                f"{counts['Medium']} medium priority, and {counts['Low']} low priority."
            ),
            response=QueryResponse(
                title="Zone Count",
                data=list(zones),
                type=ResponseType.MULTI_ZONE,
                metadata=ChartMetadata(
                    metric_name="Priority",
                    chart_data={f"{level} Priority": n for level, n in counts.items()},
                ),
            ),
        )

    if match.mentions("task"):
        return QueryResult(
            message=(
                f"There are {pending} pending tasks and {overview.tasks_completed} completed tasks today "
                f"across all zones."
            ),
            response=QueryResponse(
                title="Task Count",
                data=overview,
                type=ResponseType.OVERVIEW,
                metadata=InsightMetadata(
                    secondary_data={"Pending Tasks": pending, "Completed Tasks": overview.tasks_completed}
                ),
            ),
        )

    return QueryResult(
        message=(
            f"The warehouse has {overview.total_robots} total AMRs ({overview.active_robots} active) and "
            f"{len(zones)} zones with a total of {pending} pending tasks."
        ),
        response=QueryResponse(title="Warehouse Count Summary", data=overview, type=ResponseType.OVERVIEW),
    )


# --- Priority and traffic tiers ---

def _tier_result(
    match: MatchSet,
    snapshot: WarehouseSnapshot,
    attribute: str,
    noun: str,
    metric: str,
    title: str,
    describe,
) -> QueryResult:
    zones = list(snapshot.zones)
    for detector, level in ((Detector.HIGHEST, Level.HIGH), (Detector.LOWEST, Level.LOW)):
        if not match.has(detector):
            continue
        tier = [z for z in zones if getattr(z, attribute) == level]
        tier_title = f"{level.value.capitalize()} {noun.capitalize()} Zones"
        if not tier:
            return error_result(f"There are no {level.value} {noun} zones in the warehouse currently.", tier_title)
        return QueryResult(
            message=f"There are {len(tier)} {level.value} {noun} zones: {zone_names(tier)}. {describe(level, tier)}",
            response=QueryResponse(title=tier_title, data=tier, type=ResponseType.MULTI_ZONE),
        )

    counts = level_counts(getattr(z, attribute) for z in zones)
    return QueryResult(
        message=(
            f"The warehouse has {counts['High']} high {noun} zones, {counts['Medium']} medium {noun} zones, "
            f"and {counts['Low']} low {noun} zones."
        ),
        response=QueryResponse(
            title=title,
            data=zones,
            type=ResponseType.MULTI_ZONE,
            metadata=ChartMetadata(metric_name=metric, chart_data=counts),
        ),
    )


def handle_priority(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    def describe(level, tier):
        return f"These zones have a total of {sum(z.tasks_pending for z in tier)} pending tasks."

    return _tier_result(match, snapshot, "priority", "priority", "Priority", "Zones by Priority", describe)


def handle_traffic(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    def describe(level, tier):
        robots = sum(z.robot_count for z in tier)
        if level == Level.HIGH:
            return f"These zones might experience congestion with {robots} robots."
        return f"These zones have good flow with {robots} robots."

    return _tier_result(match, snapshot, "traffic_density", "traffic", "Traffic Density", "Zones by Traffic", describe)
