from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from ..configuration import DashboardSettings
from ..dependencies import get_media_storage, get_optional_repository, get_settings
from ..repository import SQLDashboardRepository
from ..storage import MediaStorage, MediaStorageError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["uploads"])


@router.post("/uploads/images")
async def upload_image(
    file: UploadFile = File(...),
    event_id: Optional[int] = Form(default=None),
    storage: Optional[MediaStorage] = Depends(get_media_storage),
    repository: Optional[SQLDashboardRepository] = Depends(get_optional_repository),
    settings: DashboardSettings = Depends(get_settings),
) -> Dict[str, str]:
    if storage is None:
        raise HTTPException(status_code=503, detail="Media storage is not enabled.")
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(status_code=400, detail="Only image uploads are supported.")

    limit = settings.media.max_bytes
    data = await file.read(limit + 1)
    if len(data) > limit:
        raise HTTPException(status_code=413, detail="Image exceeds the upload size limit.")

    if event_id is not None:
        if repository is None:
            raise HTTPException(status_code=503, detail="DASHBOARD_DATABASE_URL is not configured.")
        await asyncio.to_thread(repository.get_event, event_id)

    try:
        url = await asyncio.to_thread(storage.upload_image, data, file.filename, file.content_type)
    except MediaStorageError as exc:
        logger.warning("Image upload failed: %s", exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc

    if event_id is not None:
        await asyncio.to_thread(repository.update_event, event_id, {"thumbnail_image": url})
    return {"url": url}
