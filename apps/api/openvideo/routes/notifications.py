"""Inbound notification webhook."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from openvideo.routes.dependencies import get_notification_router
from openvideo.services.notifications import NotificationRouter

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.post("/sns", response_class=PlainTextResponse)
async def receive_notification(
    request: Request,
    notification_router: Annotated[NotificationRouter, Depends(get_notification_router)],
) -> PlainTextResponse:
    # Always 200; the sender redelivers on anything else.
    outcome = await notification_router.route(await request.body())
    return PlainTextResponse(outcome.value, status_code=200)
