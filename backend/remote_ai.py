"""
Remote LLM assistants tried before the local query engine.
Both talk to chat-completions endpoints over httpx and raise RemoteAIError on
anything the caller should treat as "try the next assistant": missing key,
HTTP or transport failure, or a payload that cannot be parsed.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Optional

import httpx

from models import QueryResponse, QueryResult, ResponseType, WarehouseSnapshot
from response_builder import robot_label

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

SYSTEM_PROMPT = """You are the AI assistant for a warehouse automation dashboard.
You help warehouse managers monitor and control Autonomous Mobile Robots (AMRs).
Provide concise, specific answers about warehouse operations.

Here is the current warehouse state:
- Active Robots: {active}/{total}
- Tasks Completed Today: {completed}
- Overall Robot Efficiency: {efficiency}%

Respond in a helpful, informative manner focusing only on warehouse operations.
If you need to recommend showing data for a specific robot or zone, indicate this in your response."""

OPTIMIZATION_PROMPT = """You are an AI optimization expert for warehouse automation.
Based on the current warehouse metrics, suggest 3-5 specific, actionable
optimizations to improve efficiency. Focus on practical steps that could
be implemented immediately."""

RESPONSE_FUNCTION = {
    "name": "generate_warehouse_response",
    "description": "Generate a response to a warehouse query, optionally with specific data to display",
    "parameters": {
        "type": "object",
        "properties": {
            "message": {"type": "string", "description": "The text response to the query"},
            "display_type": {
                "type": "string",
                "enum": ["robot", "zone", "none"],
                "description": "The type of data to display",
            },
            "data_id": {"type": "string", "description": "The ID of the robot or zone to display"},
        },
        "required": ["message", "display_type"],
    },
}

ROBOT_REFERENCE = re.compile(r"\b(?:amr|robot)\s*(\d+)\b", re.IGNORECASE)
ZONE_REFERENCE = re.compile(r"\bzone\s*([a-c])\b", re.IGNORECASE)
BULLET_PREFIX = re.compile(r"^\s*(?:[-*•]|\d+[.)])?\s*")


class RemoteAIError(Exception):
    """A remote assistant could not produce an answer."""


def _env_timeout() -> float:
    raw = os.getenv("REMOTE_AI_TIMEOUT")
    if not raw:
        return DEFAULT_TIMEOUT
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring REMOTE_AI_TIMEOUT={raw!r}: not a number")
        return DEFAULT_TIMEOUT


def _system_prompt(snapshot: WarehouseSnapshot) -> str:
    overview = snapshot.overview
    return SYSTEM_PROMPT.format(
        active=overview.active_robots,
        total=overview.total_robots,
        completed=overview.tasks_completed,
        efficiency=overview.robot_efficiency,
    )


def _metrics_payload(snapshot: WarehouseSnapshot) -> str:
    """Fleet metrics sent with optimization requests."""
    return json.dumps({
        "zones": [z.model_dump(mode="json", by_alias=True) for z in snapshot.zones],
        "overview": snapshot.overview.model_dump(mode="json", by_alias=True),
        "robotStatuses": [
            {
                "id": r.id,
                "status": r.status.value,
                "batteryLevel": r.battery_level,
                "zoneId": r.zone_id,
                "efficiency": r.efficiency,
            }
            for r in snapshot.robots
        ],
    })


def _entity_result(message: str, snapshot: WarehouseSnapshot, robot_id: Optional[int], zone_id: Optional[str]) -> QueryResult:
    """Attach the referenced robot or zone when it exists, otherwise plain text."""
    if robot_id is not None:
        robot = snapshot.get_robot_by_id(robot_id)
        if robot:
            return QueryResult(
                message=message,
                response=QueryResponse(title=f"{robot_label(robot.id)} Status", data=robot, type=ResponseType.ROBOT),
            )
    if zone_id is not None:
        zone = snapshot.get_zone_by_id(zone_id)
        if zone:
            return QueryResult(
                message=message,
                response=QueryResponse(title=f"{zone.id} Status", data=zone, type=ResponseType.ZONE),
            )
    return QueryResult(
        message=message,
        response=QueryResponse(title="AI Response", data=None, type=ResponseType.TEXT),
    )


class RemoteAssistant:
    """Shared plumbing for bearer-token chat-completions APIs."""

    name = "remote"
    url = ""
    api_key_env = ""
    model_env = ""
    default_model = ""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else os.getenv(self.api_key_env, "")
        self.model = model or os.getenv(self.model_env, self.default_model)
        self.timeout = timeout if timeout is not None else _env_timeout()
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _chat(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise RemoteAIError(f"{self.api_key_env} not set")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.post(self.url, json={"model": self.model, **payload}, headers=headers)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            raise RemoteAIError(f"{self.name}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RemoteAIError(f"{self.name}: {type(e).__name__}: {e}") from e
        except ValueError as e:
            raise RemoteAIError(f"{self.name}: response was not JSON") from e

        logger.info(f"{self.name} ({self.model}): success")
        return data

    @staticmethod
    def _first_message(data: dict[str, Any]) -> dict[str, Any]:
        try:
            return data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise RemoteAIError("response had no choices") from e

    async def answer(self, query: str, snapshot: WarehouseSnapshot) -> QueryResult:
        raise NotImplementedError

    async def suggest_optimizations(self, snapshot: WarehouseSnapshot) -> list[str]:
        raise NotImplementedError


class OpenAIAssistant(RemoteAssistant):
    """OpenAI chat completions with a forced function call for structured answers."""

    name = "OpenAI"
    url = "https://api.openai.com/v1/chat/completions"
    api_key_env = "OPENAI_API_KEY"
    model_env = "OPENAI_MODEL"
    default_model = "gpt-4o"

    async def answer(self, query: str, snapshot: WarehouseSnapshot) -> QueryResult:
        data = await self._chat({
            "messages": [
                {"role": "system", "content": _system_prompt(snapshot)},
                {"role": "user", "content": query},
            ],
            "functions": [RESPONSE_FUNCTION],
            "function_call": {"name": RESPONSE_FUNCTION["name"]},
        })

        call = self._first_message(data).get("function_call") or {}
        try:
            result = json.loads(call["arguments"])
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            raise RemoteAIError("function call arguments missing or not JSON") from e

        message = result.get("message") if isinstance(result, dict) else None
        if not message:
            raise RemoteAIError("function call returned no message")

        display_type = result.get("display_type")
        data_id = str(result.get("data_id") or "")
        robot_id = int(data_id) if display_type == "robot" and data_id.isdigit() else None
        zone_id = data_id if display_type == "zone" and data_id else None
        return _entity_result(message, snapshot, robot_id, zone_id)

    async def suggest_optimizations(self, snapshot: WarehouseSnapshot) -> list[str]:
        data = await self._chat({
            "messages": [
                {
                    "role": "system",
                    "content": OPTIMIZATION_PROMPT + " Respond with a JSON object with a \"suggestions\" array of strings.",
                },
                {"role": "user", "content": _metrics_payload(snapshot)},
            ],
            "response_format": {"type": "json_object"},
        })

        content = self._first_message(data).get("content") or ""
        try:
            suggestions = json.loads(content).get("suggestions")
        except (json.JSONDecodeError, AttributeError) as e:
            raise RemoteAIError("optimization payload was not a JSON object") from e

        if not isinstance(suggestions, list) or not suggestions:
            raise RemoteAIError("optimization payload had no suggestions")
        return [str(s) for s in suggestions]


class PerplexityAssistant(RemoteAssistant):
    """Perplexity chat completions; entity references are recovered from the answer text."""

    name = "Perplexity"
    url = "https://api.perplexity.ai/chat/completions"
    api_key_env = "PERPLEXITY_API_KEY"
    model_env = "PERPLEXITY_MODEL"
    default_model = "sonar"

    async def _complete(self, system: str, user: str) -> str:
        data = await self._chat({
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": 0.2,
            "max_tokens": 500,
            "stream": False,
        })
        content = self._first_message(data).get("content")
        if not content:
            raise RemoteAIError("empty completion")
        return content

    async def answer(self, query: str, snapshot: WarehouseSnapshot) -> QueryResult:
        content = await self._complete(_system_prompt(snapshot), query)

        robot_match = ROBOT_REFERENCE.search(content)
        zone_match = ZONE_REFERENCE.search(content)
        return _entity_result(
            content,
            snapshot,
            int(robot_match.group(1)) if robot_match else None,
            f"Zone {zone_match.group(1).upper()}" if zone_match else None,
        )

    async def suggest_optimizations(self, snapshot: WarehouseSnapshot) -> list[str]:
        content = await self._complete(OPTIMIZATION_PROMPT, _metrics_payload(snapshot))
        suggestions = extract_suggestions(content)
        if not suggestions:
            raise RemoteAIError("no suggestions found in completion")
        return suggestions


def extract_suggestions(text: str) -> list[str]:
    """Split free text into suggestion lines, dropping bullets, numbering and preamble."""
    suggestions = []
    for line in text.splitlines():
        item = BULLET_PREFIX.sub("", line).strip()
        if not item or item.endswith(":"):
            continue
        if item.lower().startswith(("based on", "according to")):
            continue
        suggestions.append(item)
    return suggestions


def default_assistants() -> list[RemoteAssistant]:
    """The remote chain in the order it is tried."""
    return [OpenAIAssistant(), PerplexityAssistant()]
