# bakeryops/routes/notifications.py
from __future__ import annotations
from fastapi import APIRouter, Depends

from ..deps import get_poller
from ..services.notifications import PendingOrderPoller

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def notification_status(poller: PendingOrderPoller = Depends(get_poller)):
    """Dashboard mirrors this: loop `sound_url` while `is_playing` is true."""
    return poller.status()


@router.post("/stop")
def stop_notification(poller: PendingOrderPoller = Depends(get_poller)):
    poller.alert.stop()
    return poller.status()


@router.post("/play")
async def play_notification(poller: PendingOrderPoller = Depends(get_poller)):
    """Manual retry, e.g. after the browser blocked autoplay."""
    await poller.alert.manual_play()
    return poller.status()


@router.post("/check")
async def check_now(poller: PendingOrderPoller = Depends(get_poller)):
    await poller.poll_once()
    return poller.status()
