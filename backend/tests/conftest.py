"""
Shared fixtures: hand-built warehouse snapshots with known contents so every
answer the engine gives can be checked exactly.
"""

from datetime import datetime

import pytest

from models import (
    Activity,
    ActivityType,
    Coordinates,
    Level,
    Robot,
    RobotStatus,
    WarehouseOverview,
    WarehouseSnapshot,
    Zone,
)
from tuning import EngineTuning

CAPTURED_AT = datetime(2024, 5, 1, 9, 0)


def robot(
    robot_id: int,
    status: RobotStatus,
    zone_id: str,
    battery: int,
    efficiency: int,
    tool: str = "Tote Carrier",
    task: str | None = None,
    x: float = 5.0,
    y: float = 5.0,
) -> Robot:
    return Robot(
        id=robot_id,
        name=f"AMR {robot_id:02d}",
        status=status,
        zone_id=zone_id,
        battery_level=battery,
        current_task=task,
        current_tool=tool,
        efficiency=efficiency,
        coordinates=Coordinates(x=x, y=y),
    )


def zone(
    letter: str,
    priority: Level,
    traffic: Level,
    pending: int,
    completed: int,
    efficiency: int,
) -> Zone:
    return Zone(
        id=f"Zone {letter}",
        name=f"Zone {letter}",
        priority=priority,
        tasks_pending=pending,
        tasks_completed=completed,
        efficiency=efficiency,
        traffic_density=traffic,
    )


def build_snapshot(robots, zones, activities=()) -> WarehouseSnapshot:
    """Fill in zone robot counts and the overview the way the simulator does."""
    robots = list(robots)
    zones = [
        z.model_copy(update={"robot_count": sum(1 for r in robots if r.zone_id == z.id)})
        for z in zones
    ]
    total = len(robots)
    overview = WarehouseOverview(
        active_robots=sum(1 for r in robots if r.status == RobotStatus.ACTIVE),
        total_robots=total,
        tasks_completed=sum(z.tasks_completed for z in zones),
        robot_efficiency=sum(r.efficiency for r in robots) // total if total else 0,
    )
    return WarehouseSnapshot(
        robots=tuple(robots),
        zones=tuple(zones),
        activities=tuple(activities),
        overview=overview,
        captured_at=CAPTURED_AT,
    )


def standard_zones():
    return [
        zone("A", Level.HIGH, Level.MEDIUM, pending=8, completed=60, efficiency=90),
        zone("B", Level.MEDIUM, Level.HIGH, pending=4, completed=50, efficiency=85),
        zone("C", Level.LOW, Level.LOW, pending=2, completed=30, efficiency=78),
    ]


@pytest.fixture
def tuning():
    return EngineTuning()


@pytest.fixture
def snapshot():
    """
    Six robots, two per zone:
      AMR 01 active      Zone A  85%  eff 90  Forklift Attachment
      AMR 02 charging    Zone A  25%  eff 70  Scanner Module
      AMR 03 active      Zone B  60%  eff 88  Gripper Arm       at (12, 7)
      AMR 04 idle        Zone B  95%  eff 82  Tote Carrier
      AMR 05 maintenance Zone C  15%  eff 65  Forklift Attachment
      AMR 06 idle        Zone C  40%  eff 60  Platform Lift
    """
    robots = [
        robot(1, RobotStatus.ACTIVE, "Zone A", 85, 90, "Forklift Attachment", "Pallet Transport"),
        robot(2, RobotStatus.CHARGING, "Zone A", 25, 70, "Scanner Module", x=8, y=10),
        robot(3, RobotStatus.ACTIVE, "Zone B", 60, 88, "Gripper Arm", "Box Sorting", x=12, y=7),
        robot(4, RobotStatus.IDLE, "Zone B", 95, 82, "Tote Carrier", x=35, y=12),
        robot(5, RobotStatus.MAINTENANCE, "Zone C", 15, 65, "Forklift Attachment", x=10, y=25),
        robot(6, RobotStatus.IDLE, "Zone C", 40, 60, "Platform Lift", "Inventory Scanning", x=15, y=22),
    ]
    activities = [
        Activity(
            id=2,
            type=ActivityType.ROBOT,
            icon_name="robot-line",
            message="AMR 03 completed pallet transport",
            timestamp=datetime(2024, 5, 1, 8, 45),
        ),
        Activity(
            id=1,
            type=ActivityType.ZONE,
            icon_name="roadmap-line",
            message="Zone B traffic density high",
            timestamp=datetime(2024, 5, 1, 8, 30),
        ),
    ]
    return build_snapshot(robots, standard_zones(), activities)


@pytest.fixture
def low_battery_snapshot():
    """Five active robots under 30% battery and nothing else worth flagging."""
    robots = [
        robot(1, RobotStatus.ACTIVE, "Zone A", 10, 85, "Forklift Attachment"),
        robot(2, RobotStatus.ACTIVE, "Zone A", 15, 85, "Scanner Module"),
        robot(3, RobotStatus.ACTIVE, "Zone B", 20, 85, "Gripper Arm"),
        robot(4, RobotStatus.ACTIVE, "Zone B", 25, 85, "Tote Carrier"),
        robot(5, RobotStatus.ACTIVE, "Zone C", 28, 85, "Platform Lift"),
        robot(6, RobotStatus.ACTIVE, "Zone C", 80, 85, "Forklift Attachment"),
    ]
    zones = [
        zone("A", Level.HIGH, Level.MEDIUM, pending=5, completed=40, efficiency=85),
        zone("B", Level.MEDIUM, Level.LOW, pending=3, completed=30, efficiency=85),
        zone("C", Level.LOW, Level.LOW, pending=1, completed=20, efficiency=85),
    ]
    return build_snapshot(robots, zones)


@pytest.fixture
def empty_snapshot():
    return build_snapshot([], [])


@pytest.fixture
def snapshot_factory():
    """Build a snapshot from robots with the standard three zones."""
    def factory(robots, zones=None):
        return build_snapshot(robots, zones if zones is not None else standard_zones())
    return factory


@pytest.fixture
def make_robot():
    return robot
