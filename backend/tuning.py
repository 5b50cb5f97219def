"""
Heuristic constants for the local query engine.

The optimization, forecast, utilization and scheduling answers are canned
illustrations built from these values. Each one can be overridden with a
``FLEET_<NAME>`` environment variable, e.g. ``FLEET_BATTERY_DRAIN_PER_HOUR=4``.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace

from models import Level

logger = logging.getLogger(__name__)

# Used as divisors by the forecast
POSITIVE_FIELDS = {"battery_drain_per_hour", "operating_hours", "tasks_per_robot_hour"}


@dataclass(frozen=True)
class EngineTuning:
    # Battery
    low_battery_threshold: int = 30
    critical_battery_level: int = 20
    battery_drain_per_hour: float = 5.0
    charging_share: float = 0.2

    # Workload balancing
    redistribution_gap: int = 3
    max_robots_per_move: int = 3
    charging_rotation_trigger: int = 3
    default_deploy_count: int = 2
    busy_zone_pending_tasks: int = 5
    deploy_zone_count: int = 2
    robots_per_deploy_zone: int = 2

    # Fleet composition
    tool_skew_fraction: float = 1 / 3
    max_suggestions: int = 5

    # Forecast
    operating_hours: float = 8.0
    forecast_horizon_hours: int = 24
    maintenance_hours: int = 3
    tasks_per_robot_hour: int = 2
    efficiency_outlook_hours: int = 4
    maintenance_share: float = 0.1
    maintenance_recovery_boost: int = 5
    charging_recovery_boost: int = 3
    low_activity_percent: int = 70
    low_activity_penalty: int = 2

    # Capacity (concurrent robots a zone can absorb, by priority)
    high_zone_capacity: int = 10
    medium_zone_capacity: int = 8
    low_zone_capacity: int = 6

    # Scheduling
    schedule_slot_minutes: int = 30

    # Compound queries
    default_efficiency_threshold: int = 70
    default_tool_battery_threshold: int = 50

    @classmethod
    def from_env(cls) -> EngineTuning:
        """Build tuning from defaults overridden by FLEET_* environment variables."""
        base = cls()
        overrides: dict[str, float | int] = {}
        for f in fields(cls):
            raw = os.getenv(f"FLEET_{f.name.upper()}")
            if raw is None:
                continue
            caster = float if isinstance(getattr(base, f.name), float) else int
            try:
                value = caster(raw)
            except ValueError:
                logger.warning(f"Ignoring FLEET_{f.name.upper()}={raw!r}: not a number")
                continue
            if f.name in POSITIVE_FIELDS and value <= 0:
                logger.warning(f"Ignoring FLEET_{f.name.upper()}={raw!r}: must be positive")
                continue
            overrides[f.name] = value
        return replace(base, **overrides)

    def zone_capacity(self, priority: Level) -> int:
        return {
            Level.HIGH: self.high_zone_capacity,
            Level.MEDIUM: self.medium_zone_capacity,
        }.get(priority, self.low_zone_capacity)


DEFAULT_TUNING = EngineTuning()
