"""
Intent classification for operator queries.

classify() runs every keyword detector over the normalised query and records
what fired plus the captured ids and numbers. route() then picks one Intent:
a count-based complexity check first, then an ordered routing table where the
first matching predicate wins.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional


class Detector(str, Enum):
    MAINTENANCE = "maintenance"
    BATTERY = "battery"
    STATUS = "status"
    LOCATION = "location"
    EFFICIENCY = "efficiency"
    OVERVIEW = "overview"
    TOOL = "tool"
    HIGHEST = "highest"
    LOWEST = "lowest"
    IDLE = "idle"
    ACTIVE = "active"
    COMPARISON = "comparison"
    ALL_ROBOTS = "all_robots"
    ALL_ZONES = "all_zones"
    SORT = "sort"
    COUNT = "count"
    PRIORITY = "priority"
    TRAFFIC = "traffic"
    DEPLOYMENT = "deployment"
    REDISTRIBUTION = "redistribution"
    OPTIMIZATION = "optimization"
    FORECAST = "forecast"
    TREND = "trend"
    UTILIZATION = "utilization"
    CAPACITY = "capacity"
    SCHEDULE = "schedule"
    ACTIVITY = "activity"


def _words(*words: str) -> re.Pattern:
    return re.compile(r"\b(" + "|".join(words) + r")\b", re.IGNORECASE)


_COLLECTIVE = r"(all|every|list|show|display|each|present|total|full|entire)\s+"

DETECTORS: dict[Detector, re.Pattern] = {
    Detector.MAINTENANCE: _words("maintenance", "broken", "repair", "fix", "issue", "problem", "malfunction"),
    Detector.BATTERY: _words("battery", "charging", "energy", "power", "charge", "charged"),
    Detector.STATUS: _words("status", "state", "condition", "health", "operational", "functioning"),
    Detector.LOCATION: _words(
        "where", "location", "position", "find", "locate", "situated", "placed", "area",
        "coordinate", "coordinates",
    ),
    Detector.EFFICIENCY: _words(
        "efficiency", "performance", "productivity", "effective", "output", "throughput",
        "production", "optimization",
    ),
    Detector.OVERVIEW: _words(
        "overview", "summary", "dashboard", "stats", "statistics", "brief", "snapshot",
        "overall", "general",
    ),
    Detector.TOOL: _words(
        "tool", "equipment", "attachment", "device", "implement", "accessory", "apparatus",
        "instrument",
    ),
    Detector.HIGHEST: _words(
        "highest", "best", "most", "top", "maximum", "peak", "leading", "superior", "optimal",
        "greatest",
    ),
    Detector.LOWEST: _words(
        "lowest", "worst", "least", "bottom", "minimum", "poorest", "weakest", "inferior",
        "suboptimal",
    ),
    Detector.IDLE: _words("idle", "inactive", "available", "free", "unused", "standby", "waiting", "ready", "dormant"),
    Detector.ACTIVE: _words(
        "active", "busy", "working", "engaged", "occupied", "operating", "running",
        "functioning", "in use",
    ),
    Detector.COMPARISON: _words(
        "compare", "comparison", "versus", "vs", "contrast", "difference", "differential",
        "evaluate", "against", "between",
    ),
    Detector.ALL_ROBOTS: re.compile(
        r"\b" + _COLLECTIVE + r"(robots|amrs|machines|units|devices)\b", re.IGNORECASE
    ),
    Detector.ALL_ZONES: re.compile(
        r"\b" + _COLLECTIVE + r"(zones|areas|sections|sectors|regions|locations)\b", re.IGNORECASE
    ),
    Detector.SORT: _words(
        "sort", "order", "rank", "arrange", "categorize", "classify", "organize", "group",
        "sequence", "prioritize",
    ),
    Detector.COUNT: _words(
        "count", "how many", "total number", "quantity", "sum", "tally", "enumerate",
        "calculate", "measure",
    ),
    Detector.PRIORITY: _words(
        "priority", "important", "critical", "urgent", "crucial", "essential", "vital",
        "significance", "key", "main",
    ),
    Detector.TRAFFIC: _words(
        "traffic", "congestion", "flow", "movement", "density", "crowded", "busy", "passage",
        "circulation", "transit",
    ),
    Detector.DEPLOYMENT: _words(
        "deploy", "assign", "send", "allocate", "dispatch", "direct", "relocate", "move",
        "transfer",
    ),
    Detector.REDISTRIBUTION: _words(
        "redistribute", "reallocate", "reassign", "balance", "equilibrium", "even out",
        "rebalance",
    ),
    Detector.OPTIMIZATION: _words(
        "optimize", "improve", "enhance", "boost", "maximize", "augment", "upgrade",
        "streamline", "refine",
    ),
    Detector.FORECAST: _words(
        "forecast", "predict", "projection", "future", "anticipate", "estimate", "foresee",
        "outlook", "prospect",
    ),
    Detector.TREND: _words(
        "trend", "pattern", "tendency", "direction", "progression", "development",
        "evolution", "course",
    ),
    Detector.UTILIZATION: _words(
        "utilization", "usage", "consumption", "employ", "use", "application", "exploitation",
    ),
    Detector.CAPACITY: _words(
        "capacity", "capability", "potential", "volume", "throughput", "output",
        "productivity", "yield",
    ),
    Detector.SCHEDULE: _words(
        "schedule", "plan", "timetable", "agenda", "calendar", "program", "arrangement",
        "itinerary",
    ),
    Detector.ACTIVITY: _words("activity", "activities", "history", "recent", "log", "track", "monitor"),
}

ROBOT_ID_PATTERN = re.compile(r"\b(amr|robot)\s*(\d+)\b", re.IGNORECASE)
ZONE_ID_PATTERN = re.compile(r"\bzone\s*([a-c])\b", re.IGNORECASE)
PERCENT_PATTERN = re.compile(r"(\d+)%")
REQUESTED_COUNT_PATTERN = re.compile(r"(\d+)\s+(robots|amrs)", re.IGNORECASE)
DIGITS_PATTERN = re.compile(r"\b(\d+)\b")
# "zone d" and friends: looks like a zone reference but names no known zone
UNKNOWN_ZONE_PATTERN = re.compile(r"\bzone\s+([d-z])\b", re.IGNORECASE)

# Families that count toward the compound-query check; id extraction does not
COMPLEXITY_FAMILIES = frozenset({
    Detector.BATTERY,
    Detector.EFFICIENCY,
    Detector.MAINTENANCE,
    Detector.TOOL,
    Detector.STATUS,
    Detector.PRIORITY,
    Detector.TRAFFIC,
    Detector.COMPARISON,
})
COMPLEXITY_THRESHOLD = 3


@dataclass(frozen=True)
class MatchSet:
    """Everything the detectors found in one query."""

    query: str
    detectors: frozenset[Detector]
    robot_ids: tuple[int, ...] = ()
    zone_letters: tuple[str, ...] = ()
    unknown_zone_letters: tuple[str, ...] = ()
    percentages: tuple[int, ...] = ()
    requested_count: Optional[int] = None
    numbers: tuple[int, ...] = ()

    def has(self, *detectors: Detector) -> bool:
        return any(d in self.detectors for d in detectors)

    def mentions(self, *fragments: str) -> bool:
        return any(f in self.query for f in fragments)

    @property
    def robot_id(self) -> Optional[int]:
        return self.robot_ids[0] if self.robot_ids else None

    @property
    def zone_id(self) -> Optional[str]:
        if self.zone_letters:
            return f"Zone {self.zone_letters[0].upper()}"
        if self.unknown_zone_letters:
            return f"Zone {self.unknown_zone_letters[0].upper()}"
        return None

    @property
    def percentage(self) -> Optional[int]:
        return self.percentages[0] if self.percentages else None

    @property
    def complexity(self) -> int:
        return len(self.detectors & COMPLEXITY_FAMILIES)

    @property
    def is_complex(self) -> bool:
        return self.complexity >= COMPLEXITY_THRESHOLD

    def second_robot_id(self) -> Optional[int]:
        """Second robot referenced, falling back to any other bare number in the query."""
        first = self.robot_id
        for robot_id in self.robot_ids[1:]:
            if robot_id != first:
                return robot_id
        for number in self.numbers:
            if number != first:
                return number
        return None


def normalize_query(query: str) -> str:
    return " ".join(query.lower().split())


def classify(query: str) -> MatchSet:
    text = normalize_query(query)
    count_match = REQUESTED_COUNT_PATTERN.search(text)
    return MatchSet(
        query=text,
        detectors=frozenset(d for d, pattern in DETECTORS.items() if pattern.search(text)),
        robot_ids=tuple(int(m.group(2)) for m in ROBOT_ID_PATTERN.finditer(text)),
        zone_letters=tuple(m.group(1) for m in ZONE_ID_PATTERN.finditer(text)),
        unknown_zone_letters=tuple(m.group(1) for m in UNKNOWN_ZONE_PATTERN.finditer(text)),
        percentages=tuple(int(m.group(1)) for m in PERCENT_PATTERN.finditer(text)),
        requested_count=int(count_match.group(1)) if count_match else None,
        numbers=tuple(int(m.group(1)) for m in DIGITS_PATTERN.finditer(text)),
    )


# --- Routing ---

class Intent(str, Enum):
    COMPLEX = "complex"
    ROBOT = "robot"
    ZONE = "zone"
    DEPLOYMENT = "deployment"
    OPTIMIZATION = "optimization"
    FORECAST = "forecast"
    UTILIZATION = "utilization"
    ALL_ROBOTS = "all_robots"
    ALL_ZONES = "all_zones"
    COMPARISON = "comparison"
    COUNT = "count"
    PRIORITY = "priority"
    TRAFFIC = "traffic"
    OVERVIEW = "overview"
    EFFICIENCY = "efficiency"
    STATUS = "status"
    MAINTENANCE = "maintenance"
    BATTERY = "battery"
    MULTI_ROBOT_LOCATION = "multi_robot_location"
    SCHEDULE = "schedule"
    UNRECOGNIZED = "unrecognized"


# Evaluated top to bottom after the complexity check; first hit wins
ROUTING: list[tuple[Callable[[MatchSet], bool], Intent]] = [
    (lambda m: bool(m.robot_ids), Intent.ROBOT),
    (lambda m: m.zone_id is not None, Intent.ZONE),
    (lambda m: m.has(Detector.DEPLOYMENT, Detector.REDISTRIBUTION), Intent.DEPLOYMENT),
    (lambda m: m.has(Detector.OPTIMIZATION), Intent.OPTIMIZATION),
    (lambda m: m.has(Detector.FORECAST, Detector.TREND), Intent.FORECAST),
    (lambda m: m.has(Detector.UTILIZATION, Detector.CAPACITY), Intent.UTILIZATION),
    (lambda m: m.has(Detector.ALL_ROBOTS), Intent.ALL_ROBOTS),
    (lambda m: m.has(Detector.ALL_ZONES), Intent.ALL_ZONES),
    (lambda m: m.has(Detector.COMPARISON), Intent.COMPARISON),
    (lambda m: m.has(Detector.COUNT), Intent.COUNT),
    (lambda m: m.has(Detector.PRIORITY), Intent.PRIORITY),
    (lambda m: m.has(Detector.TRAFFIC), Intent.TRAFFIC),
    (lambda m: m.has(Detector.OVERVIEW), Intent.OVERVIEW),
    (lambda m: m.has(Detector.EFFICIENCY), Intent.EFFICIENCY),
    (lambda m: m.has(Detector.STATUS), Intent.STATUS),
    (lambda m: m.has(Detector.MAINTENANCE), Intent.MAINTENANCE),
    (lambda m: m.has(Detector.BATTERY), Intent.BATTERY),
    (lambda m: m.has(Detector.LOCATION) and m.mentions("robots", "amrs"), Intent.MULTI_ROBOT_LOCATION),
    (lambda m: m.has(Detector.SCHEDULE), Intent.SCHEDULE),
]


def route(match: MatchSet) -> Intent:
    if match.is_complex:
        return Intent.COMPLEX
    for predicate, intent in ROUTING:
        if predicate(match):
            return intent
    return Intent.UNRECOGNIZED
