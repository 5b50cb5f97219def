"""
Pydantic models for the warehouse AMR fleet assistant.

Wire models serialise with camelCase aliases (``zoneId``, ``chartData``...)
because the dashboard renders those names directly.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# --- Enums ---

class RobotStatus(str, Enum):
    ACTIVE = "active"
    IDLE = "idle"
    CHARGING = "charging"
    MAINTENANCE = "maintenance"


class Level(str, Enum):
    """Shared scale for zone priority and traffic density."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ActivityType(str, Enum):
    ROBOT = "robot"
    SYSTEM = "system"
    USER = "user"
    ZONE = "zone"


class ResponseType(str, Enum):
    ROBOT = "robot"
    ZONE = "zone"
    MULTI_ROBOT = "multi-robot"
    MULTI_ZONE = "multi-zone"
    OVERVIEW = "overview"
    COMPARISON = "comparison"
    OPTIMIZATION = "optimization"
    ERROR = "error"
    TEXT = "text"


# --- Warehouse Entities ---

class Coordinates(BaseModel):
    x: float
    y: float


class Robot(CamelModel):
    id: int
    name: str
    status: RobotStatus
    zone_id: str
    battery_level: int  # 0-100
    current_task: Optional[str] = None
    current_tool: str
    efficiency: int  # 0-100
    coordinates: Coordinates


class Zone(CamelModel):
    id: str  # "Zone A"
    name: str
    priority: Level
    robot_count: int = 0
    tasks_pending: int = 0
    tasks_completed: int = 0
    efficiency: int = 0
    traffic_density: Level


class Activity(CamelModel):
    id: int
    type: ActivityType
    icon_name: str
    message: str
    timestamp: datetime


class BatteryBuckets(BaseModel):
    critical: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0


class AlertCounts(BaseModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class WarehouseOverview(CamelModel):
    active_robots: int = 0
    total_robots: int = 0
    tasks_completed: int = 0
    robot_efficiency: int = 0
    battery_levels: BatteryBuckets = Field(default_factory=BatteryBuckets)
    alerts: AlertCounts = Field(default_factory=AlertCounts)


class WarehouseSnapshot(CamelModel):
    """Point-in-time, read-only copy of the warehouse handed to the query engine."""

    model_config = ConfigDict(frozen=True)

    robots: tuple[Robot, ...] = ()
    zones: tuple[Zone, ...] = ()
    activities: tuple[Activity, ...] = ()
    overview: WarehouseOverview = Field(default_factory=WarehouseOverview)
    captured_at: datetime = Field(default_factory=datetime.now)

    def get_robot_by_id(self, robot_id: int) -> Optional[Robot]:
        return next((r for r in self.robots if r.id == robot_id), None)

    def get_zone_by_id(self, zone_id: str) -> Optional[Zone]:
        return next((z for z in self.zones if z.id == zone_id), None)


# --- Query Response Envelope ---

ChartValues = dict[str, Union[int, float]]


class ChartMetadata(CamelModel):
    kind: Literal["chart"] = "chart"
    metric_name: Optional[str] = None
    chart_data: ChartValues = Field(default_factory=dict)


class InsightMetadata(CamelModel):
    kind: Literal["insights"] = "insights"
    secondary_data: Union[list[str], dict[str, Union[int, str]]] = Field(default_factory=list)
    chart_data: Optional[ChartValues] = None


class ComparisonMetadata(CamelModel):
    kind: Literal["comparison"] = "comparison"
    comparison_type: str
    metric_name: Optional[str] = None
    # Either one series keyed by label or several series keyed by metric
    chart_data: Optional[Union[ChartValues, dict[str, ChartValues]]] = None


class ZoneWorkload(CamelModel):
    zone_id: str
    active_count: int
    idle_count: int
    low_battery_count: int
    traffic_score: int  # 1-3
    priority_score: int  # 1-3


class DeploymentMetadata(CamelModel):
    kind: Literal["deployment"] = "deployment"
    target_zone: Optional[str] = None
    secondary_data: list[str] = Field(default_factory=list)
    zone_workloads: Optional[list[ZoneWorkload]] = None


ResponseMetadata = Annotated[
    Union[ChartMetadata, InsightMetadata, ComparisonMetadata, DeploymentMetadata],
    Field(discriminator="kind"),
]

ResponseData = Union[
    Robot,
    Zone,
    WarehouseOverview,
    list[Robot],
    list[Zone],
    dict[str, Any],
    None,
]


class QueryResponse(CamelModel):
    title: str
    data: ResponseData = None
    type: ResponseType
    metadata: Optional[ResponseMetadata] = None


class QueryResult(CamelModel):
    message: str
    response: QueryResponse


# --- API Models ---

class QueryRequest(BaseModel):
    query: str = ""


class OptimizationSuggestions(BaseModel):
    suggestions: list[str]


class WarehouseUpdate(BaseModel):
    """WebSocket frame; ``type`` is robots, zones, activities or overview."""
    type: str
    payload: Any
