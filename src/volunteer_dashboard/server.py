"""FastAPI server for the volunteer event admin dashboard."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from .configuration import MediaStorageConfig
from .dependencies import settings
from .repository import BackendError, RecordNotFoundError
from .routers import chat, events, insights, notifications, tasks, uploads, volunteers

logger = logging.getLogger(__name__)

logging.getLogger("volunteer_dashboard").setLevel(settings.log_level)

app = FastAPI(title="Volunteer Event Dashboard API", version="0.1.0")

# The admin front end is served from a different origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (events, tasks, volunteers, insights, chat, notifications, uploads):
    app.include_router(module.router)


@app.exception_handler(RecordNotFoundError)
async def record_not_found_handler(request: Request, exc: RecordNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError) -> JSONResponse:
    logger.warning("Backend call failed for %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


def _mount_local_media_directory(target_app: FastAPI, media_cfg: MediaStorageConfig) -> None:
    """Expose uploaded images when local_fs storage is enabled."""
    if not (media_cfg.enable and media_cfg.provider == "local_fs"):
        return

    media_root = Path(media_cfg.local_directory).expanduser()
    media_root.mkdir(parents=True, exist_ok=True)

    public_path = "/" + media_cfg.public_path.strip("/")
    already_mounted = any(getattr(route, "path", None) == public_path for route in target_app.routes)
    if not already_mounted:
        target_app.mount(public_path, StaticFiles(directory=str(media_root)), name="media")


_mount_local_media_directory(app, settings.media)


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}
