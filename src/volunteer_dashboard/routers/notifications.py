from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..dependencies import get_email_dispatcher
from ..notifications import EmailDispatcher
from ..schemas import EmailDispatchRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["notifications"])


@router.post("/api/send-event-emails")
async def send_event_emails(
    request: EmailDispatchRequest,
    dispatcher: EmailDispatcher = Depends(get_email_dispatcher),
):
    if not request.is_complete():
        return JSONResponse(status_code=400, content={"error": "Missing required fields"})
    try:
        return await dispatcher.dispatch(request)
    except Exception:
        logger.exception("Error sending emails for event %s", request.event_id)
        return JSONResponse(status_code=500, content={"error": "Failed to send emails"})
