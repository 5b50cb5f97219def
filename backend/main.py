"""
Warehouse Fleet Assistant API Server.
FastAPI app with REST endpoints, WebSocket for real-time updates,
background simulation loop and the natural-language query endpoint.
"""

from __future__ import annotations

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from models import (
    Activity,
    OptimizationSuggestions,
    QueryRequest,
    QueryResult,
    Robot,
    WarehouseOverview,
    WarehouseUpdate,
    Zone,
)
from simulator import WarehouseSimulator
from tuning import EngineTuning
from nl_engine import optimization_suggestions, process_query

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("main")

# --- Global State ---
simulator: Optional[WarehouseSimulator] = None
tuning: EngineTuning = EngineTuning()

# WebSocket connections
ws_connections: list[WebSocket] = []


def _env_int(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not an integer")
        return None


def _tick_seconds() -> float:
    raw = os.getenv("WAREHOUSE_TICK_SECONDS", "5")
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Ignoring WAREHOUSE_TICK_SECONDS={raw!r}: not a number")
        return 5.0


def _frame(frame_type: str, payload: Any) -> str:
    """Serialise one WebSocket frame; models are dumped with camelCase keys."""
    if isinstance(payload, list):
        payload = [item.model_dump(mode="json", by_alias=True) for item in payload]
    else:
        payload = payload.model_dump(mode="json", by_alias=True)
    return WarehouseUpdate(type=frame_type, payload=payload).model_dump_json()


async def broadcast(message: str):
    disconnected = []
    for ws in ws_connections:
        try:
            await ws.send_text(message)
        except Exception:
            disconnected.append(ws)

    for ws in disconnected:
        ws_connections.remove(ws)


async def simulation_loop():
    """Background loop: ticks the simulator, occasionally logs activity, broadcasts state."""
    interval = _tick_seconds()

    while True:
        try:
            if simulator is None:
                await asyncio.sleep(interval)
                continue

            simulator.tick()
            new_activity = simulator.maybe_add_activity()

            if ws_connections:
                await broadcast(_frame("robots", list(simulator.robots.values())))
                if new_activity is not None:
                    await broadcast(_frame("activities", list(simulator.activities)))

        except Exception as e:
            logger.warning(f"Simulation loop error: {e}")

        await asyncio.sleep(interval)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    global simulator, tuning

    # Initialize
    simulator = WarehouseSimulator(seed=_env_int("WAREHOUSE_SEED"))
    tuning = EngineTuning.from_env()

    # Start background simulation
    task = asyncio.create_task(simulation_loop())

    logger.info("Warehouse Fleet Assistant server started")
    logger.info(f"Fleet: {len(simulator.robots)} AMRs across {len(simulator.zones)} zones")
    logger.info(f"OpenAI: {'configured' if os.getenv('OPENAI_API_KEY') else 'not configured'}")
    logger.info(f"Perplexity: {'configured' if os.getenv('PERPLEXITY_API_KEY') else 'not configured'}")

    yield

    # Shutdown
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


# --- FastAPI App ---
app = FastAPI(
    title="Warehouse Fleet Assistant API",
    description="AMR fleet dashboard with a natural-language assistant",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- REST Endpoints ---

@app.get("/api/robots", response_model=list[Robot])
async def get_robots():
    """List all robots."""
    return list(simulator.robots.values())


@app.get("/api/robots/{robot_id}", response_model=Robot)
async def get_robot(robot_id: int):
    """Get a single robot's details."""
    robot = simulator.get_robot(robot_id)
    if not robot:
        raise HTTPException(status_code=404, detail=f"Robot {robot_id} not found")
    return robot


@app.get("/api/zones", response_model=list[Zone])
async def get_zones():
    return list(simulator.zones.values())


@app.get("/api/zones/{zone_id}", response_model=Zone)
async def get_zone(zone_id: str):
    zone = simulator.get_zone(zone_id)
    if not zone:
        raise HTTPException(status_code=404, detail=f"{zone_id} not found")
    return zone


@app.get("/api/activities", response_model=list[Activity])
async def get_activities():
    """Recent activity feed, newest first."""
    return list(simulator.activities)


@app.get("/api/overview", response_model=WarehouseOverview)
async def get_overview():
    return simulator.overview


# --- Assistant ---

@app.post("/api/query", response_model=QueryResult)
async def query(request: QueryRequest):
    """Answer a natural language question about the warehouse."""
    if not request.query.strip():
        raise HTTPException(status_code=400, detail="Query is required")
    return await process_query(request.query, simulator.snapshot(), tuning=tuning)


@app.get("/api/optimizations", response_model=OptimizationSuggestions)
async def get_optimizations():
    suggestions = await optimization_suggestions(simulator.snapshot(), tuning=tuning)
    return OptimizationSuggestions(suggestions=suggestions)


# --- WebSocket ---

@app.websocket("/ws")
async def websocket_warehouse(websocket: WebSocket):
    """Real-time warehouse state stream."""
    await websocket.accept()
    ws_connections.append(websocket)
    try:
        await websocket.send_text(_frame("robots", list(simulator.robots.values())))
        await websocket.send_text(_frame("zones", list(simulator.zones.values())))
        await websocket.send_text(_frame("activities", list(simulator.activities)))
        await websocket.send_text(_frame("overview", simulator.overview))

        while True:
            # Keep connection alive; clients only listen
            await websocket.receive_text()
    except WebSocketDisconnect:
        if websocket in ws_connections:
            ws_connections.remove(websocket)


# --- Health Check ---

@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "robots": len(simulator.robots) if simulator else 0,
        "tick_count": simulator.tick_count if simulator else 0,
        "ws_connections": len(ws_connections),
        "openai_configured": bool(os.getenv("OPENAI_API_KEY")),
        "perplexity_configured": bool(os.getenv("PERPLEXITY_API_KEY")),
    }
