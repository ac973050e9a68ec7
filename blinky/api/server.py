"""
FastAPI server for the Blinky API. Run with run_api_server(app) (blocks until shutdown).
Central endpoints: GET /health, GET /api/tasks. Per-plugin routes are mounted
from blinky.plugins.<package>.api (get_router(blinky_app)) under /api/.
Docs: http://<host>:<port>/docs
"""
import importlib
import importlib.util
import logging
import pkgutil
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from blinky.api.schemas import _serialize_datetime
from blinky.core.errors import BlinkyError
from blinky.core.models import get_all_task_schedules

logger = logging.getLogger(__name__)

# Request fields whose validation failures get a fixed message
_FIELD_MESSAGES = {
    "email": "Email is required",
    "enabled": "Enabled must be a boolean",
    "assignments": "Assignments array is required",
    "appUsage": "appUsage array is required",
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part != "body"]
    if len(loc) == 1 and loc[0] in _FIELD_MESSAGES:
        return _FIELD_MESSAGES[loc[0]]
    if first.get("type") == "json_invalid":
        return "Malformed JSON body"
    field = ".".join(loc)
    return f"{field}: {first.get('msg')}" if field else str(first.get("msg") or "Invalid request")


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(BlinkyError)
    def handle_blinky_error(request: Request, exc: BlinkyError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    def handle_http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return _error(500, "Internal server error")


def _mount_plugin_routers(app: FastAPI, blinky_app: Any) -> None:
    """Mount routers from blinky.plugins.<name>.api (get_router(blinky_app)) under /api."""
    plugins_pkg = importlib.import_module("blinky.plugins")
    for _mod, name, is_pkg in pkgutil.iter_modules(plugins_pkg.__path__):
        if not is_pkg:
            continue
        if importlib.util.find_spec(f"blinky.plugins.{name}.api") is None:
            continue
        api_module = importlib.import_module(f"blinky.plugins.{name}.api")
        if not callable(getattr(api_module, "get_router", None)):
            continue
        router = api_module.get_router(blinky_app)
        if router is not None:
            app.include_router(router, prefix="/api")
            logger.debug(f"Mounted API router for plugin {name}")


def create_app(blinky_app: Any) -> FastAPI:
    """Create FastAPI app with routes that use the given BlinkyApp instance."""
    app = FastAPI(title="Blinky API", description="Assignment sync, screen time, friends and reminders")

    server_config = blinky_app.config.get_section("server")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_config.get("cors_origins") or ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _register_error_handlers(app)

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.get("/api/tasks")
    def list_tasks() -> Dict[str, Any]:
        """List scheduled tasks: DB schedules, active in-memory timers and the last tick summaries."""
        db_schedules = get_all_task_schedules()
        for row in db_schedules:
            row["next_run_at"] = _serialize_datetime(row.get("next_run_at"))
            row["last_run_at"] = _serialize_datetime(row.get("last_run_at"))

        active_list = [
            {"name": t["name"], "next_run_at": _serialize_datetime(t["next_run_at"])}
            for t in blinky_app.task_manager.get_active_timers()
        ]
        return {
            "db_schedules": db_schedules,
            "active_timers": active_list,
            "last_results": dict(blinky_app.task_manager.last_results),
        }

    _mount_plugin_routers(app, blinky_app)
    return app


def run_api_server(blinky_app: Any) -> None:
    """Serve the API with uvicorn on server.host/server.port; returns when the server stops."""
    import uvicorn

    server_config = blinky_app.config.get_section("server")
    host = server_config.get("host", "0.0.0.0")
    port = int(server_config.get("port", 4000))
    fastapi_app = create_app(blinky_app)
    logger.info(f"API server listening at http://{host}:{port} (docs at /docs)")
    uvicorn.run(fastapi_app, host=host, port=port, log_config=None)
