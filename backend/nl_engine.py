"""
Natural Language Engine for the warehouse assistant.

evaluate_query() is the local, deterministic engine: classify the query,
route it to one handler and answer from the snapshot. process_query() puts the
remote assistants in front of it, falling back link by link until the local
engine answers.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from models import QueryResult, WarehouseSnapshot
from intent_classifier import Intent, MatchSet, classify, route
from response_builder import error_result, unrecognized_result
from tuning import DEFAULT_TUNING, EngineTuning
from remote_ai import RemoteAIError, RemoteAssistant, default_assistants
import compound_queries
import planning_engine
import query_handlers

logger = logging.getLogger(__name__)

Handler = Callable[[MatchSet, WarehouseSnapshot, EngineTuning], QueryResult]

HANDLERS: dict[Intent, Handler] = {
    Intent.COMPLEX: compound_queries.handle_complex,
    Intent.ROBOT: query_handlers.handle_robot,
    Intent.ZONE: query_handlers.handle_zone,
    Intent.DEPLOYMENT: planning_engine.handle_deployment,
    Intent.OPTIMIZATION: planning_engine.handle_optimization,
    Intent.FORECAST: planning_engine.handle_forecast,
    Intent.UTILIZATION: planning_engine.handle_utilization,
    Intent.ALL_ROBOTS: query_handlers.handle_all_robots,
    Intent.ALL_ZONES: query_handlers.handle_all_zones,
    Intent.COMPARISON: query_handlers.handle_comparison,
    Intent.COUNT: query_handlers.handle_count,
    Intent.PRIORITY: query_handlers.handle_priority,
    Intent.TRAFFIC: query_handlers.handle_traffic,
    Intent.OVERVIEW: query_handlers.handle_overview,
    Intent.EFFICIENCY: query_handlers.handle_efficiency,
    Intent.STATUS: query_handlers.handle_status,
    Intent.MAINTENANCE: query_handlers.handle_maintenance,
    Intent.BATTERY: query_handlers.handle_battery,
    Intent.MULTI_ROBOT_LOCATION: query_handlers.handle_multi_robot_location,
    Intent.SCHEDULE: planning_engine.handle_schedule,
}

ENGINE_FAILURE_MESSAGE = (
    "I'm sorry, I encountered an error processing your request. Please try again with a specific "
    "question about AMR locations, zone activities, or warehouse operations."
)


def evaluate_query(
    query: str,
    snapshot: WarehouseSnapshot,
    tuning: Optional[EngineTuning] = None,
) -> QueryResult:
    """Answer a query from the snapshot alone. Never raises."""
    tuning = tuning or DEFAULT_TUNING
    match = classify(query)
    intent = route(match)
    handler = HANDLERS.get(intent)
    if handler is None:
        return unrecognized_result()

    try:
        return handler(match, snapshot, tuning)
    except Exception:
        logger.exception(f"Local engine failed on {intent.value} query {query!r}")
        return error_result(ENGINE_FAILURE_MESSAGE, "Error")


async def process_query(
    query: str,
    snapshot: WarehouseSnapshot,
    assistants: Optional[list[RemoteAssistant]] = None,
    tuning: Optional[EngineTuning] = None,
) -> QueryResult:
    """Try each configured remote assistant in turn, then the local engine."""
    if assistants is None:
        assistants = default_assistants()

    for assistant in assistants:
        if not assistant.configured:
            logger.debug(f"{assistant.name} not configured, skipping")
            continue
        try:
            return await assistant.answer(query, snapshot)
        except RemoteAIError as e:
            logger.warning(f"{assistant.name} failed, falling back: {e}")

    return evaluate_query(query, snapshot, tuning)


async def optimization_suggestions(
    snapshot: WarehouseSnapshot,
    assistants: Optional[list[RemoteAssistant]] = None,
    tuning: Optional[EngineTuning] = None,
) -> list[str]:
    """Remote optimization suggestions with the local heuristics as the last resort."""
    if assistants is None:
        assistants = default_assistants()

    for assistant in assistants:
        if not assistant.configured:
            continue
        try:
            return await assistant.suggest_optimizations(snapshot)
        except RemoteAIError as e:
            logger.warning(f"{assistant.name} optimization suggestions failed, falling back: {e}")

    return planning_engine.local_optimization_suggestions(snapshot, tuning or DEFAULT_TUNING)
