"""
src/main.py
============================================
FastAPI Application for the Map Data Service
============================================

Entry point of the map data service. Stored device events, geozones and
points of interest are rendered into the MapData (XML) and JMapData (JSON)
documents consumed by the browser map client.

Architecture Overview:
---------------------
- REST API: /map_data/* renders device and fleet maps on demand
- WebSocket: Real-time service logs streamed via /logs
- Storage: PostGIS (devices, gps_data, geofences, points_of_interest)
"""

# Environment Configuration
from dotenv import load_dotenv
import os

load_dotenv()

# FastAPI Core
from fastapi import FastAPI, WebSocket
from contextlib import asynccontextmanager
import asyncio

from src.Core.config import settings
from src.Controller.Routes import map_data
from src.DB.database import create_all_tables

# WebSocket Management (system logs only)
from src.Core import log_ws

from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import RedirectResponse
from fastapi.middleware.cors import CORSMiddleware


# ============================================================
# ROOT PATH HANDLING
# ============================================================
# Extract root path for subdirectory deployment (e.g., /api/v1)
ROOT_PATH = os.getenv("ROOT_PATH", "").strip()
if ROOT_PATH:
    if not ROOT_PATH.startswith("/"):
        ROOT_PATH = "/" + ROOT_PATH
    if ROOT_PATH.endswith("/"):
        ROOT_PATH = ROOT_PATH[:-1]


class StripPrefixMiddleware(BaseHTTPMiddleware):
    """
    Middleware for removing ROOT_PATH prefix from incoming requests.

    Example:
        ROOT_PATH = "/dev/maps"
        Incoming request: /dev/maps/map_data/fleet
        FastAPI receives: /map_data/fleet
    """

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if self.prefix:
            path = request.url.path
            # Redirect bare prefix to prefix with trailing slash
            if path == self.prefix:
                return RedirectResponse(url=self.prefix + "/", status_code=307)
            # Remove prefix from path
            if path.startswith(self.prefix + "/"):
                request.scope["path"] = path[len(self.prefix):] or "/"
        return await call_next(request)


# ============================================================
# CORS CONFIGURATION
# ============================================================
def _parse_origins(csv_value: str):
    """
    Parse comma-separated origin values into a list for CORS configuration.

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])
    csv_value = csv_value.strip()
    if csv_value == "*":
        return (True, ["*"])
    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(
    os.getenv("HTTP_ALLOWED_ORIGINS", "*")
)
_ws_allow_all, _ws_origins = _parse_origins(
    os.getenv("WS_ALLOWED_ORIGINS", "*")
)


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: bind the log WebSocket manager to the running event loop so
    render calls (executed in the threadpool) can broadcast logs.
    """
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)

    if settings.DB_CREATE_TABLES:
        create_all_tables()

    print(f"[STARTUP] Default map format: {settings.MAP_DATA_FORMAT}, "
          f"nearby geozones: {settings.nearby_geozone_radius_m():.0f} m")
    print("[STARTUP] ✅ Application initialization complete")

    yield

    print("[SHUTDOWN] 🛑 Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)

# IMPORTANT: Middlewares are executed in REVERSE order of registration
if ROOT_PATH:
    app.add_middleware(StripPrefixMiddleware, prefix=ROOT_PATH)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(map_data.router, prefix="/map_data", tags=["map_data"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket connection handler with origin validation.

    Args:
        ws: WebSocket connection instance
        manager: WebSocket manager for this connection type
    """
    origin = ws.headers.get("origin")

    if (not _ws_allow_all) and (origin not in _ws_origins):
        print(f"[WS] ❌ Connection rejected - unauthorized origin: {origin}")
        await ws.close(code=403)
        return

    await manager.register(ws)
    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[WS] Connection closed: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    WebSocket endpoint for streaming service logs (rejected renders,
    geozone lookup failures).

    Message Format:
        {"msg_type": "log" | "error" | "warning", "message": "..."}
    """
    await socket_handler(ws, log_ws.log_ws_manager)


@app.get("/api")
def api_info():
    """API information and available endpoints."""
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "features": {
            "formats": ["xml", "json"],
            "default_format": settings.MAP_DATA_FORMAT,
            "websockets": ["/logs"],
        },
        "endpoints": {
            "device_map": "/map_data/device/{device_id}",
            "fleet_map": "/map_data/fleet",
            "decoder": "/map_data/decoder.js",
            "logs": "/logs (WebSocket)",
            "health": "/health"
        }
    }
