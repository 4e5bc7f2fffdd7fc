# bakeryops/services/notifications.py
"""
Pending-order alert.

Three pieces, wired together by `build_poller`:

- PendingOrderWatcher turns a stream of pending-order counts into
  `started` / `stopped` transitions and tells its observers.
- AlertController owns the sound and is one such observer.
- PendingOrderPoller asks the store for pending orders on a fixed period
  and feeds the count to the watcher.
"""
from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Union

from ..db import Gateway
from ..errors import PlaybackError
from ..settings import settings
from .workflow import OrderStatus

logger = logging.getLogger(__name__)


class PendingTransition(str, Enum):
    STARTED = "started"
    STOPPED = "stopped"


Observer = Callable[[PendingTransition, int], Union[None, Awaitable[None]]]


class AlertSound(Protocol):
    def load(self, url: str) -> None: ...

    async def play(self) -> None:
        """Start looping playback. May raise PlaybackError (autoplay policy etc.)."""

    def pause(self) -> None: ...

    def reset_position(self) -> None: ...


class HostedAlertSound:
    """
    The ring the dashboard plays.

    The server only tracks playback state; the admin UI reads it from
    GET /notifications and loops `url` in the browser while `playing` is set.
    """

    def __init__(self, volume: float = 0.7):
        self.url: Optional[str] = None
        self.loop = True
        self.volume = volume
        self.playing = False
        self.position = 0.0

    def load(self, url: str) -> None:
        self.url = url
        self.position = 0.0

    async def play(self) -> None:
        if not self.url:
            raise PlaybackError("no alert sound loaded")
        self.playing = True

    def pause(self) -> None:
        self.playing = False

    def reset_position(self) -> None:
        self.position = 0.0


class PendingOrderWatcher:
    """Edge detector over pending-order counts; repeated equal readings emit nothing."""

    def __init__(self):
        self.has_pending = False
        self.pending_count = 0
        self._observers: List[Observer] = []

    def subscribe(self, observer: Observer) -> None:
        self._observers.append(observer)

    async def observe(self, count: int) -> Optional[PendingTransition]:
        self.pending_count = count
        transition: Optional[PendingTransition] = None
        if count > 0 and not self.has_pending:
            self.has_pending = True
            transition = PendingTransition.STARTED
        elif count == 0 and self.has_pending:
            self.has_pending = False
            transition = PendingTransition.STOPPED
        if transition is not None:
            logger.info("Pending orders %s (count=%d)", transition.value, count)
            for observer in self._observers:
                result = observer(transition, count)
                if inspect.isawaitable(result):
                    await result
        return transition


class AlertController:
    """Starts/stops the sound. start() and stop() are idempotent; playback failures never escape."""

    def __init__(self, sound: AlertSound, watcher: PendingOrderWatcher, sound_url: Optional[str] = None):
        self.sound = sound
        self.watcher = watcher
        self.is_playing = False
        self.sound_url = sound_url or settings.alert_sound_url
        self.sound.load(self.sound_url)
        watcher.subscribe(self.on_transition)

    async def on_transition(self, transition: PendingTransition, count: int) -> None:
        if transition is PendingTransition.STARTED:
            await self.start()
        else:
            self.stop()

    async def start(self) -> bool:
        if self.is_playing:
            return True
        try:
            await self.sound.play()
        except PlaybackError as e:
            # usually autoplay policy; an operator can retry with manual_play()
            logger.warning("Could not play notification sound: %s", e)
            self.is_playing = False
            return False
        except Exception as e:
            logger.error("Notification sound failed: %s", e, exc_info=True)
            self.is_playing = False
            return False
        self.is_playing = True
        logger.info("Notification sound started")
        return True

    def stop(self) -> None:
        """Silence the alert. Leaves the pending flag alone."""
        if not self.is_playing:
            return
        self.sound.pause()
        self.sound.reset_position()
        self.is_playing = False
        logger.info("Notification sound stopped")

    async def manual_play(self) -> bool:
        """Operator retry; only plays while there are pending orders."""
        if not self.watcher.has_pending:
            return False
        return await self.start()


class PendingOrderPoller:
    def __init__(
        self,
        gateway: Gateway,
        watcher: PendingOrderWatcher,
        alert: AlertController,
        interval: Optional[float] = None,
        on_pending: Optional[Callable[[List[Dict[str, Any]]], None]] = None,
    ):
        self.gateway = gateway
        self.watcher = watcher
        self.alert = alert
        self.interval = settings.poll_interval_seconds if interval is None else interval
        self.on_pending = on_pending
        self.pending_orders: List[Dict[str, Any]] = []
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def poll_once(self) -> Optional[PendingTransition]:
        try:
            orders = await self.gateway.list_orders(status=OrderStatus.PENDING.value)
        except Exception as e:
            # transient; the next tick tries again and state is left as it was
            logger.error("Error checking for pending orders: %s", e, exc_info=True)
            return None
        logger.debug("Checking for pending orders... Found: %d", len(orders))
        self.pending_orders = orders
        transition = await self.watcher.observe(len(orders))
        if orders and self.on_pending:
            self.on_pending(orders)
        return transition

    async def run(self) -> None:
        while True:
            try:
                await self.poll_once()
            except Exception as e:
                # an alert or on_pending failure must not end the timer
                logger.error("Pending-order poll failed: %s", e, exc_info=True)
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="pending-order-poller")
        logger.info("Pending-order poller started (every %ss)", self.interval)

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Pending-order poller stopped")

    async def settle_after_confirm(self) -> None:
        """Called after an order is confirmed: silence the alert once nothing is pending."""
        try:
            pending = await self.gateway.list_orders(status=OrderStatus.PENDING.value)
        except Exception as e:
            logger.error("Error re-checking pending orders: %s", e, exc_info=True)
            return
        self.pending_orders = pending
        if not pending:
            await self.watcher.observe(0)
            self.alert.stop()

    def status(self) -> Dict[str, Any]:
        return {
            "has_pending_orders": self.watcher.has_pending,
            "pending_count": self.watcher.pending_count,
            "is_playing": self.alert.is_playing,
            "sound_url": self.alert.sound_url,
            "polling": self.running,
        }


def build_poller(gateway: Gateway, sound: Optional[AlertSound] = None, interval: Optional[float] = None) -> PendingOrderPoller:
    watcher = PendingOrderWatcher()
    alert = AlertController(sound or HostedAlertSound(), watcher)
    return PendingOrderPoller(gateway, watcher, alert, interval=interval)
