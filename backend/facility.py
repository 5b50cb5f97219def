"""
Facility layout for the warehouse simulation.
50x30 metre floor split into three zones, plus the task and tool catalogues
the simulated AMRs draw from.
"""

from models import Level

# Floor dimensions (metres)
FLOOR_WIDTH = 50
FLOOR_HEIGHT = 30

# Zone B is the east strip, Zone C the north-west block, Zone A the rest
ZONE_B_MIN_X = 30
ZONE_C_MIN_Y = 20

ZONE_IDS = ["Zone A", "Zone B", "Zone C"]

# --- Zone profiles ---
# pending/completed/efficiency are (min, max) ranges used when seeding
ZONE_PROFILES = {
    "Zone A": {
        "priority": Level.HIGH,
        "traffic": Level.MEDIUM,
        "pending": (5, 14),
        "completed": (50, 99),
        "efficiency": (85, 94),
    },
    "Zone B": {
        "priority": Level.MEDIUM,
        "traffic": Level.HIGH,
        "pending": (2, 11),
        "completed": (40, 79),
        "efficiency": (80, 89),
    },
    "Zone C": {
        "priority": Level.LOW,
        "traffic": Level.LOW,
        "pending": (1, 5),
        "completed": (30, 59),
        "efficiency": (75, 84),
    },
}

TASKS = [
    "Pallet Transport",
    "Inventory Scanning",
    "Pick and Place",
    "Delivering Packages",
    "Box Sorting",
]

TOOLS = [
    "Forklift Attachment",
    "Scanner Module",
    "Gripper Arm",
    "Tote Carrier",
    "Platform Lift",
]


def get_zone_for_position(x: float, y: float) -> str:
    """Determine which zone a position falls in."""
    if x > ZONE_B_MIN_X:
        return "Zone B"
    if y > ZONE_C_MIN_Y:
        return "Zone C"
    return "Zone A"


def clamp_to_floor(x: float, y: float) -> tuple[float, float]:
    return max(0.0, min(FLOOR_WIDTH, x)), max(0.0, min(FLOOR_HEIGHT, y))
