from __future__ import annotations

from fastapi import APIRouter

from ..services.session import get_session_manager

router = APIRouter()


@router.get("")
async def list_notifications():
    return [n.__dict__ for n in get_session_manager().notifier.active()]


@router.delete("/{notification_id}")
async def dismiss_notification(notification_id: int):
    return {"dismissed": get_session_manager().notifier.dismiss(notification_id)}
