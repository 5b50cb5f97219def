"""
Planning engine for the query assistant.
Canned heuristics over a warehouse snapshot:
- Deployment (targeted, workload redistribution, general)
- Optimization recommendations
- Forecast, utilization and scheduling projections
- Local optimization suggestions for the dashboard panel

These are illustrations built from EngineTuning constants, not real planners.
"""

from __future__ import annotations

import math
from datetime import timedelta

from models import (
    DeploymentMetadata,
    InsightMetadata,
    Level,
    QueryResponse,
    QueryResult,
    ResponseType,
    Robot,
    RobotStatus,
    WarehouseSnapshot,
    Zone,
    ZoneWorkload,
)
from intent_classifier import Detector, MatchSet
from response_builder import (
    LEVEL_SCORE,
    average,
    error_result,
    join_labels,
    robot_label,
    robots_in_zone,
    round_half_up,
    tool_counts,
    zone_names,
)
from tuning import EngineTuning

CANNED_SUGGESTIONS = [
    "Redistribute AMRs from low-activity zones to high-demand areas to balance workload and reduce wait times.",
    "Implement dynamic charging schedules based on peak operation hours to maintain optimal fleet availability.",
    "Optimize AMR pathfinding algorithms to reduce cross-zone travel time by 15-20%.",
    "Deploy more versatile tool attachments to reduce the need for tool-switching operations.",
]


def _battery_labels(robots: list[Robot]) -> str:
    return ", ".join(f"{robot_label(r.id)} ({r.battery_level}%)" for r in robots)


class FleetPlanner:
    """Answers planning questions against one snapshot."""

    def __init__(self, snapshot: WarehouseSnapshot, tuning: EngineTuning):
        self.snapshot = snapshot
        self.tuning = tuning
        self.robots = list(snapshot.robots)
        self.zones = list(snapshot.zones)

    # --- Shared selections ---

    def _with_status(self, status: RobotStatus) -> list[Robot]:
        return [r for r in self.robots if r.status == status]

    def _needs_charging(self) -> list[Robot]:
        return [
            r for r in self.robots
            if r.battery_level < self.tuning.low_battery_threshold and r.status != RobotStatus.CHARGING
        ]

    def _busy_zones(self) -> list[Zone]:
        return [z for z in self.zones if z.tasks_pending > self.tuning.busy_zone_pending_tasks]

    def _active_percent(self) -> float:
        overview = self.snapshot.overview
        if not overview.total_robots:
            return 0.0
        return overview.active_robots / overview.total_robots * 100

    # --- Deployment ---

    def deploy_to_zone(self, zone: Zone, match: MatchSet) -> QueryResult:
        """Pick robots to send to a zone: idle first, then highest battery."""
        count = match.requested_count if match.requested_count is not None else self.tuning.default_deploy_count
        zone_priority = {z.id: z.priority for z in self.zones}

        candidates = [
            r for r in self.robots
            if r.status != RobotStatus.MAINTENANCE
            and r.zone_id != zone.id
            and zone_priority.get(r.zone_id) != Level.HIGH
        ]
        if not candidates:
            return error_result(
                f"There are no available AMRs to deploy to {zone.id}. All AMRs are either in high "
                f"priority zones or in maintenance.",
                f"Deployment to {zone.id}",
            )

        candidates.sort(key=lambda r: (r.status != RobotStatus.IDLE, -r.battery_level, r.id))
        chosen = candidates[:count]

        def describe(robot: Robot) -> str:
            where = "" if robot.status == RobotStatus.IDLE else f" in {robot.zone_id}"
            return f"{robot_label(robot.id)} ({robot.battery_level}% battery, currently {robot.status.value}{where})"

        message = f"I can deploy {len(chosen)} AMRs to {zone.id}"
        if chosen:
            message += f": {', '.join(describe(r) for r in chosen)}"

        return QueryResult(
            message=f"{message}.",
            response=QueryResponse(
                title=f"Deployment Plan for {zone.id}",
                data=chosen,
                type=ResponseType.MULTI_ROBOT,
                metadata=DeploymentMetadata(
                    target_zone=zone.id,
                    secondary_data=[
                        f"Target zone: {zone.id} ({zone.priority.value} priority)",
                        f"Current robot count: {zone.robot_count}",
                        f"Pending tasks: {zone.tasks_pending}",
                        f"Traffic density: {zone.traffic_density.value}",
                    ],
                ),
            ),
        )

    def zone_workloads(self) -> list[ZoneWorkload]:
        workloads = []
        for zone in self.zones:
            members = robots_in_zone(self.robots, zone.id)
            workloads.append(ZoneWorkload(
                zone_id=zone.id,
                active_count=sum(1 for r in members if r.status == RobotStatus.ACTIVE),
                idle_count=sum(1 for r in members if r.status == RobotStatus.IDLE),
                low_battery_count=sum(1 for r in members if r.battery_level < self.tuning.low_battery_threshold),
                traffic_score=LEVEL_SCORE[zone.traffic_density],
                priority_score=LEVEL_SCORE[zone.priority],
            ))
        return workloads

    def redistribute(self) -> QueryResult:
        """Balance active robots across zones and flag charging and traffic pressure."""
        workloads = self.zone_workloads()
        suggestions: list[str] = []

        if workloads:
            busiest = max(workloads, key=lambda w: w.active_count)
            quietest = min(workloads, key=lambda w: w.active_count)
            gap = busiest.active_count - quietest.active_count
            # Smaller gaps are noise
            if gap >= self.tuning.redistribution_gap:
                moved = min(self.tuning.max_robots_per_move, gap // 2)
                suggestions.append(
                    f"Redistribute {moved} robots from {busiest.zone_id} to {quietest.zone_id}."
                )

        low_battery = sum(w.low_battery_count for w in workloads)
        if low_battery > self.tuning.charging_rotation_trigger:
            suggestions.append(f"Schedule charging rotation for {low_battery} robots with low battery.")

        for zone in self.zones:
            if zone.traffic_density == Level.HIGH:
                suggestions.append(f"Reduce traffic density in {zone.name} by adjusting robot pathfinding.")

        if suggestions:
            message = "Based on the current workload across zones, I recommend:\n\n" + "\n".join(suggestions)
        else:
            message = (
                "The current robot distribution is well balanced across zones. "
                "No redistribution is needed at this time."
            )
        return QueryResult(
            message=message,
            response=QueryResponse(
                title="Resource Optimization Recommendations",
                data=self.zones,
                type=ResponseType.OPTIMIZATION,
                metadata=DeploymentMetadata(secondary_data=suggestions, zone_workloads=workloads),
            ),
        )

    def recommend_deployments(self) -> QueryResult:
        """Send idle robots to the zones with the most pending tasks."""
        idle = self._with_status(RobotStatus.IDLE)
        if not idle:
            return error_result(
                "There are currently no idle AMRs available for deployment. All robots are actively "
                "engaged in tasks.",
                "Deployment Recommendation",
            )

        targets = sorted(self.zones, key=lambda z: z.tasks_pending, reverse=True)[: self.tuning.deploy_zone_count]
        if not targets:
            return QueryResult(
                message=(
                    "All zones currently have balanced task loads. No specific deployment "
                    "recommendation is needed at this time."
                ),
                response=QueryResponse(title="Deployment Recommendation", data=self.zones, type=ResponseType.MULTI_ZONE),
            )

        plans: list[str] = []
        for zone in targets:
            batch, idle = idle[: self.tuning.robots_per_deploy_zone], idle[self.tuning.robots_per_deploy_zone:]
            for robot in batch:
                plans.append(
                    f"Deploy {robot_label(robot.id)} to {zone.name} to help with {zone.tasks_pending} pending tasks"
                )
            if not idle:
                break

        return QueryResult(
            message="Based on the current warehouse state, I recommend the following deployments:\n\n" + "\n".join(plans),
            response=QueryResponse(
                title="Deployment Recommendations",
                data=targets,
                type=ResponseType.MULTI_ZONE,
                metadata=DeploymentMetadata(secondary_data=plans),
            ),
        )

    # --- Optimization ---

    def optimization_items(self) -> list[str]:
        """Threshold checks in fixed order; never empty."""
        items: list[str] = []

        needs_charging = self._needs_charging()
        if needs_charging:
            items.append(f"Schedule {len(needs_charging)} AMRs for charging: {_battery_labels(needs_charging)}")

        in_maintenance = self._with_status(RobotStatus.MAINTENANCE)
        if in_maintenance:
            items.append(
                f"Prioritize maintenance completion for {len(in_maintenance)} AMRs: {join_labels(in_maintenance)}"
            )

        idle = self._with_status(RobotStatus.IDLE)
        busy_zones = self._busy_zones()
        if idle and busy_zones:
            items.append(
                f"Reassign {min(len(idle), len(busy_zones))} idle AMRs to high-task zones: {zone_names(busy_zones)}"
            )

        high_traffic = [z for z in self.zones if z.traffic_density == Level.HIGH]
        if high_traffic:
            items.append(f"Implement traffic control measures in high traffic zones: {zone_names(high_traffic)}")

        # round() keeps 9 * (1/3) from landing a hair above 3
        skew_limit = math.ceil(round(len(self.robots) * self.tuning.tool_skew_fraction, 6))
        skewed = [tool for tool, count in tool_counts(self.robots).items() if count > skew_limit]
        if skewed:
            items.append(f"Redistribute {', '.join(skewed)} tools more evenly across AMRs")

        if not items:
            items.append("The warehouse is currently operating at optimal efficiency. Continue to monitor for changes.")
        return items

    def optimize(self) -> QueryResult:
        items = self.optimization_items()
        return QueryResult(
            message="Here are my optimization recommendations for improving warehouse operations:\n\n" + "\n\n".join(items),
            response=QueryResponse(
                title="Optimization Recommendations",
                data=self.snapshot.overview,
                type=ResponseType.OVERVIEW,
                metadata=InsightMetadata(secondary_data=items),
            ),
        )

    def suggestions(self) -> list[str]:
        """Dashboard suggestions used when no remote assistant is reachable."""
        suggestions = list(CANNED_SUGGESTIONS)

        low_battery = sum(1 for r in self.robots if r.battery_level < self.tuning.low_battery_threshold)
        if low_battery:
            suggestions.append(
                f"Schedule preventive charging for {low_battery} AMRs below "
                f"{self.tuning.low_battery_threshold}% battery to avoid mid-task disruptions."
            )

        idle = len(self._with_status(RobotStatus.IDLE))
        if idle > 2:
            suggestions.append(f"Reassign {idle} idle AMRs to assist with pending tasks in high-priority zones.")

        high_traffic = [z for z in self.zones if z.traffic_density == Level.HIGH]
        if high_traffic:
            suggestions.append(
                f"Implement traffic flow optimization in {zone_names(high_traffic)} to reduce congestion "
                f"and improve throughput."
            )

        return suggestions[: self.tuning.max_suggestions]

    # --- Forecast ---

    def forecast(self) -> QueryResult:
        t = self.tuning
        overview = self.snapshot.overview
        avg_battery = average([r.battery_level for r in self.robots])
        maintenance = len(self._with_status(RobotStatus.MAINTENANCE))
        charging = len(self._with_status(RobotStatus.CHARGING))

        projections: list[str] = []

        hours_to_critical = max(0, round_half_up((avg_battery - t.critical_battery_level) / t.battery_drain_per_hour))
        projections.append(
            f"Based on current battery levels, approximately {round_half_up(len(self.robots) * t.charging_share)} "
            f"AMRs will need charging within the next {hours_to_critical} hours"
        )

        tasks_per_hour = overview.tasks_completed / t.operating_hours
        projections.append(
            f"At the current rate, approximately {round_half_up(tasks_per_hour * t.forecast_horizon_hours)} tasks "
            f"will be completed in the next {t.forecast_horizon_hours} hours"
        )

        if maintenance:
            projections.append(
                f"If maintenance continues at the current rate, {maintenance} AMRs will resume operations "
                f"in approximately {t.maintenance_hours} hours"
            )

        current = overview.robot_efficiency
        projected = current
        if maintenance > len(self.robots) * t.maintenance_share:
            projected += t.maintenance_recovery_boost
        if charging > len(self.robots) * t.charging_share:
            projected += t.charging_recovery_boost
        if self._active_percent() < t.low_activity_percent:
            projected -= t.low_activity_penalty
        projected = max(0, min(100, projected))

        if projected > current:
            outlook = f"increase to {projected}%"
        elif projected < current:
            outlook = f"decrease to {projected}%"
        else:
            outlook = f"hold steady at {projected}%"
        projections.append(
            f"Warehouse efficiency is projected to {outlook} in the next {t.efficiency_outlook_hours} hours"
        )

        busy_zones = self._busy_zones()
        if busy_zones:
            backlog = sum(z.tasks_pending for z in busy_zones)
            robots = max(1, sum(z.robot_count for z in busy_zones))
            hours = math.ceil(backlog / (robots * t.tasks_per_robot_hour))
            projections.append(
                f"High-task zones ({zone_names(busy_zones)}) will require approximately {hours} hours "
                f"to clear current backlog"
            )

        return QueryResult(
            message=(
                f"Based on current warehouse data, here are my projections for the next "
                f"{t.forecast_horizon_hours} hours:\n\n" + "\n\n".join(projections)
            ),
            response=QueryResponse(
                title="Operational Forecast",
                data=overview,
                type=ResponseType.OVERVIEW,
                metadata=InsightMetadata(secondary_data=projections),
            ),
        )

    # --- Utilization ---

    def utilization(self) -> QueryResult:
        overview = self.snapshot.overview
        fleet = len(self.robots)
        robot_utilization = round_half_up(self._active_percent())

        zone_usage = []
        for zone in self.zones:
            capacity = self.tuning.zone_capacity(zone.priority)
            assigned = len(robots_in_zone(self.robots, zone.id))
            zone_usage.append((zone, assigned, capacity, assigned / capacity * 100 if capacity else 0.0))

        zone_lines = [
            f"{zone.name}: {round_half_up(pct)}% utilized ({assigned}/{capacity} AMRs)"
            for zone, assigned, capacity, pct in zone_usage
        ]
        tools = tool_counts(self.robots)
        tool_lines = [
            f"{tool}: {count} AMRs ({round_half_up(count / fleet * 100)}% of fleet)"
            for tool, count in tools.items()
        ]

        available = overview.total_robots - overview.active_robots
        extra_tasks = available * self.tuning.tasks_per_robot_hour

        insights = [
            f"Overall AMR utilization: {robot_utilization}%",
            f"Available capacity: {available} AMRs",
            f"Estimated additional task capacity: {extra_tasks} tasks",
        ]
        if zone_usage:
            busiest = max(zone_usage, key=lambda u: u[3])[0]
            insights.append(f"Most utilized zone: {busiest.name}")
        if tools:
            insights.append(f"Most common tool: {max(tools, key=tools.get)}")

        message = (
            "Current warehouse utilization analysis:\n\n"
            f"Robot Utilization: {robot_utilization}% of total fleet\n\n"
            "Zone Utilization:\n" + "\n".join(zone_lines) + "\n\n"
            "Tool Distribution:\n" + "\n".join(tool_lines) + "\n\n"
            f"The warehouse has capacity for approximately {extra_tasks} additional tasks with the current "
            f"resource allocation."
        )
        return QueryResult(
            message=message,
            response=QueryResponse(
                title="Utilization & Capacity Analysis",
                data=overview,
                type=ResponseType.OVERVIEW,
                metadata=InsightMetadata(
                    secondary_data=insights,
                    chart_data={zone.name: round_half_up(pct) for zone, _, _, pct in zone_usage},
                ),
            ),
        )

    # --- Scheduling ---

    def schedule(self) -> QueryResult:
        """Time-slotted plan starting at the snapshot's capture time."""
        needs_charging = self._needs_charging()
        in_maintenance = self._with_status(RobotStatus.MAINTENANCE)
        idle = self._with_status(RobotStatus.IDLE)

        zones_with_tasks = sorted(
            (z for z in self.zones if z.tasks_pending > 0),
            key=lambda z: (-LEVEL_SCORE[z.priority], -z.tasks_pending),
        )

        items: list[str] = []
        if needs_charging:
            items.append(f"Immediate charging: {_battery_labels(needs_charging)}")

        for zone in zones_with_tasks:
            if not idle:
                break
            take = min(zone.tasks_pending, len(idle))
            assigned, idle = idle[:take], idle[take:]
            items.append(f"Assign {join_labels(assigned)} to {zone.name} for {zone.tasks_pending} pending tasks")

        if in_maintenance:
            items.append(
                f"Maintenance completion (estimated {self.tuning.maintenance_hours} hours): {join_labels(in_maintenance)}"
            )

        if not items:
            items.append("No immediate scheduling actions required. All AMRs are appropriately assigned.")

        start = self.snapshot.captured_at
        slot = timedelta(minutes=self.tuning.schedule_slot_minutes)
        timeline = [f"{start + slot * i:%H:%M} - {item}" for i, item in enumerate(items)]

        return QueryResult(
            message="Here is the recommended schedule for the next few hours:\n\n" + "\n\n".join(timeline),
            response=QueryResponse(
                title="AMR Schedule Recommendation",
                data=zones_with_tasks,
                type=ResponseType.MULTI_ZONE,
                metadata=InsightMetadata(secondary_data=timeline),
            ),
        )


# --- Handler entry points ---

def plan_zone_deployment(zone: Zone, match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    return FleetPlanner(snapshot, tuning).deploy_to_zone(zone, match)


def handle_deployment(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    planner = FleetPlanner(snapshot, tuning)
    if match.has(Detector.REDISTRIBUTION):
        return planner.redistribute()
    return planner.recommend_deployments()


def handle_optimization(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    return FleetPlanner(snapshot, tuning).optimize()


def handle_forecast(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    return FleetPlanner(snapshot, tuning).forecast()


def handle_utilization(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    return FleetPlanner(snapshot, tuning).utilization()


def handle_schedule(match: MatchSet, snapshot: WarehouseSnapshot, tuning: EngineTuning) -> QueryResult:
    return FleetPlanner(snapshot, tuning).schedule()


def local_optimization_suggestions(snapshot: WarehouseSnapshot, tuning: EngineTuning) -> list[str]:
    return FleetPlanner(snapshot, tuning).suggestions()
