"""
Warehouse simulator for the AMR fleet dashboard.
Seeds 24 robots across three zones with random status, battery, task and tool,
then nudges active robots around the floor on every tick. It is the only
source of randomness in the backend; the query engine reads frozen snapshots.
"""

from __future__ import annotations

import random
from collections import deque
from datetime import datetime, timedelta
from typing import Optional

from models import (
    Activity,
    ActivityType,
    AlertCounts,
    BatteryBuckets,
    Coordinates,
    Level,
    Robot,
    RobotStatus,
    WarehouseOverview,
    WarehouseSnapshot,
    Zone,
)
from facility import (
    FLOOR_HEIGHT,
    FLOOR_WIDTH,
    TASKS,
    TOOLS,
    ZONE_IDS,
    ZONE_PROFILES,
    clamp_to_floor,
    get_zone_for_position,
)

# Weighted toward active: 3 of 6 slots
STATUS_POOL = [
    RobotStatus.ACTIVE,
    RobotStatus.ACTIVE,
    RobotStatus.ACTIVE,
    RobotStatus.CHARGING,
    RobotStatus.IDLE,
    RobotStatus.MAINTENANCE,
]

ACTIVITY_RETENTION = 20

# (type, message, icon) used when seeding the feed
SEED_ACTIVITIES = {
    ActivityType.ROBOT: [
        ("AMR {id} completed pallet transport", "robot-line"),
        ("AMR {id} switched to inventory scanner", "tools-line"),
        ("AMR {id} docked for charging", "battery-charge-line"),
        ("AMR {id} started maintenance routine", "settings-line"),
        ("AMR {id} resumed operations", "play-line"),
    ],
    ActivityType.SYSTEM: [
        ("System optimization completed", "refresh-line"),
        ("New firmware update available", "download-2-line"),
        ("Network connectivity restored", "wifi-line"),
        ("Scheduled maintenance completed", "check-double-line"),
        ("Performance metrics updated", "line-chart-line"),
    ],
    ActivityType.ZONE: [
        ("Zone A priority increased", "arrow-up-line"),
        ("Zone B traffic density high", "roadmap-line"),
        ("Zone C automated inventory completed", "checkbox-circle-line"),
        ("New pickup station added to Zone B", "add-circle-line"),
        ("Zone A route optimization applied", "route-line"),
    ],
    ActivityType.USER: [
        ("New task created by Alex", "user-line"),
        ("Sarah updated warehouse layout", "edit-2-line"),
        ("John approved robot reassignment", "user-star-line"),
        ("Maria scheduled system maintenance", "calendar-line"),
        ("Tom added new delivery priority", "add-line"),
    ],
}

# Live events emitted while the simulation runs
LIVE_ACTIVITIES = {
    ActivityType.ROBOT: [
        ("AMR {id} completed pallet transport", "robot-line"),
        ("AMR {id} switched to inventory scanner", "tools-line"),
        ("AMR {id} docked for charging", "battery-charge-line"),
        ("AMR {id} resumed operations", "play-line"),
    ],
    ActivityType.SYSTEM: [
        ("System optimization in progress", "refresh-line"),
        ("Network performance optimized", "wifi-line"),
        ("Performance metrics updated", "line-chart-line"),
    ],
    ActivityType.ZONE: [
        ("Zone A traffic optimized", "route-line"),
        ("Zone B new task assigned", "add-circle-line"),
        ("Zone C automated inventory started", "checkbox-circle-line"),
    ],
}


class WarehouseSimulator:
    """
    Owns the live, mutable warehouse state.
    Call tick() periodically; hand snapshot() to anything that only reads.
    """

    def __init__(self, seed: Optional[int] = None, robot_count: int = 24):
        self.rng = random.Random(seed)
        self.robot_count = robot_count
        self.robots: dict[int, Robot] = {}
        self.zones: dict[str, Zone] = {}
        self.activities: deque[Activity] = deque(maxlen=ACTIVITY_RETENTION)
        self.overview = WarehouseOverview()
        self.tick_count: int = 0
        self._activity_counter: int = 0
        self._initialize_warehouse()

    # --- Seeding ---

    def _initialize_warehouse(self):
        for robot_id in range(1, self.robot_count + 1):
            x = round(self.rng.uniform(0, FLOOR_WIDTH), 1)
            y = round(self.rng.uniform(0, FLOOR_HEIGHT), 1)
            self.robots[robot_id] = Robot(
                id=robot_id,
                name=f"AMR {robot_id:02d}",
                status=self.rng.choice(STATUS_POOL),
                zone_id=get_zone_for_position(x, y),
                battery_level=self.rng.randint(50, 99),
                current_task=self.rng.choice(TASKS),
                current_tool=self.rng.choice(TOOLS),
                efficiency=self.rng.randint(80, 99),
                coordinates=Coordinates(x=x, y=y),
            )

        for zone_id in ZONE_IDS:
            profile = ZONE_PROFILES[zone_id]
            self.zones[zone_id] = Zone(
                id=zone_id,
                name=zone_id,
                priority=profile["priority"],
                tasks_pending=self.rng.randint(*profile["pending"]),
                tasks_completed=self.rng.randint(*profile["completed"]),
                efficiency=self.rng.randint(*profile["efficiency"]),
                traffic_density=profile["traffic"],
            )

        now = datetime.now()
        seeded = []
        for _ in range(ACTIVITY_RETENTION):
            activity_type = self.rng.choice(list(SEED_ACTIVITIES))
            message, icon = self.rng.choice(SEED_ACTIVITIES[activity_type])
            timestamp = now - timedelta(minutes=self.rng.randint(0, 179))
            seeded.append(self._make_activity(activity_type, message, icon, timestamp))
        seeded.sort(key=lambda a: a.timestamp, reverse=True)
        self.activities.extend(seeded)

        self._refresh_zone_counts()
        self._refresh_overview()

    def _make_activity(
        self,
        activity_type: ActivityType,
        message: str,
        icon: str,
        timestamp: datetime,
    ) -> Activity:
        self._activity_counter += 1
        if "{id}" in message:
            message = message.replace("{id}", f"{self.rng.randint(1, self.robot_count):02d}")
        return Activity(
            id=self._activity_counter,
            type=activity_type,
            icon_name=icon,
            message=message,
            timestamp=timestamp,
        )

    # --- Simulation ---

    def tick(self):
        """Advance the simulation: move active robots and refresh derived counts."""
        self.tick_count += 1

        for robot in self.robots.values():
            if robot.status != RobotStatus.ACTIVE:
                continue
            x, y = clamp_to_floor(
                robot.coordinates.x + self.rng.uniform(-1, 1),
                robot.coordinates.y + self.rng.uniform(-1, 1),
            )
            robot.coordinates = Coordinates(x=round(x, 1), y=round(y, 1))
            robot.zone_id = get_zone_for_position(x, y)

        self._refresh_zone_counts()
        self._refresh_overview()

    def maybe_add_activity(self, probability: float = 0.3) -> Optional[Activity]:
        """Occasionally push a new event to the front of the activity feed."""
        if self.rng.random() >= probability:
            return None
        activity_type = self.rng.choice(list(LIVE_ACTIVITIES))
        message, icon = self.rng.choice(LIVE_ACTIVITIES[activity_type])
        activity = self._make_activity(activity_type, message, icon, datetime.now())
        # deque(maxlen) drops the oldest entry from the right
        self.activities.appendleft(activity)
        return activity

    def _refresh_zone_counts(self):
        for zone in self.zones.values():
            zone.robot_count = sum(1 for r in self.robots.values() if r.zone_id == zone.id)

    def _refresh_overview(self):
        robots = list(self.robots.values())
        total = len(robots)
        batteries = [r.battery_level for r in robots]
        self.overview = WarehouseOverview(
            active_robots=sum(1 for r in robots if r.status == RobotStatus.ACTIVE),
            total_robots=total,
            tasks_completed=sum(z.tasks_completed for z in self.zones.values()),
            robot_efficiency=sum(r.efficiency for r in robots) // total if total else 0,
            battery_levels=BatteryBuckets(
                critical=sum(1 for b in batteries if b < 20),
                low=sum(1 for b in batteries if 20 <= b < 40),
                medium=sum(1 for b in batteries if 40 <= b < 70),
                high=sum(1 for b in batteries if b >= 70),
            ),
            alerts=AlertCounts(
                high=sum(1 for r in robots if r.status == RobotStatus.MAINTENANCE),
                medium=sum(1 for b in batteries if b < 30),
                low=sum(1 for z in self.zones.values() if z.traffic_density == Level.HIGH),
            ),
        )

    # --- Read access ---

    def snapshot(self) -> WarehouseSnapshot:
        """Deep-copied, frozen view of the current state."""
        return WarehouseSnapshot(
            robots=tuple(r.model_copy(deep=True) for r in self.robots.values()),
            zones=tuple(z.model_copy(deep=True) for z in self.zones.values()),
            activities=tuple(a.model_copy(deep=True) for a in self.activities),
            overview=self.overview.model_copy(deep=True),
            captured_at=datetime.now(),
        )

    def get_robot(self, robot_id: int) -> Optional[Robot]:
        return self.robots.get(robot_id)

    def get_zone(self, zone_id: str) -> Optional[Zone]:
        return self.zones.get(zone_id)
