"""Tests for the pending-order watcher, alert controller and poller."""
from __future__ import annotations

import asyncio

from bakeryops.db.memory import MemoryGateway
from bakeryops.services.notifications import (
    AlertController,
    HostedAlertSound,
    PendingOrderPoller,
    PendingOrderWatcher,
    PendingTransition,
    build_poller,
)
from tests.conftest import FlakyGateway, RecordingSound, run


class CountingGateway(MemoryGateway):
    """Replays a fixed sequence of pending counts, one per poll."""

    def __init__(self, counts):
        super().__init__()
        self.counts = list(counts)

    async def list_orders(self, status=None):
        n = self.counts.pop(0)
        return [{"id": f"o{i}", "status": "pending"} for i in range(n)]


def _poller(gateway, sound=None):
    sound = sound or RecordingSound()
    return build_poller(gateway, sound=sound, interval=0.01), sound


# ---------- watcher ----------

def test_watcher_emits_only_on_edges():
    watcher = PendingOrderWatcher()
    seen = []
    watcher.subscribe(lambda t, n: seen.append((t, n)))

    async def feed():
        return [await watcher.observe(n) for n in [0, 0, 3, 3, 0, 2]]

    transitions = run(feed())
    assert transitions == [
        None, None, PendingTransition.STARTED, None, PendingTransition.STOPPED, PendingTransition.STARTED,
    ]
    assert seen == [
        (PendingTransition.STARTED, 3), (PendingTransition.STOPPED, 0), (PendingTransition.STARTED, 2),
    ]


# ---------- poller + alert ----------

def test_poll_sequence_starts_and_stops_alert_once_per_edge():
    poller, sound = _poller(CountingGateway([0, 0, 3, 3, 0, 2]))
    log = []

    async def drive():
        for step in range(1, 7):
            before = list(sound.events)
            await poller.poll_once()
            for ev in sound.events[len(before):]:
                if ev in ("play", "pause"):
                    log.append((ev, step))

    run(drive())
    assert log == [("play", 3), ("pause", 5), ("play", 6)]
    assert poller.alert.is_playing is True
    assert poller.watcher.has_pending is True


def test_failed_poll_keeps_flag_and_running_alert():
    gw = FlakyGateway()
    run(gw.insert("orders", {"status": "pending", "total_amount": 100}))
    poller, sound = _poller(gw)

    run(poller.poll_once())
    assert poller.watcher.has_pending is True
    assert poller.alert.is_playing is True

    gw.fail.add("list")
    assert run(poller.poll_once()) is None
    assert poller.watcher.has_pending is True
    assert poller.alert.is_playing is True
    assert sound.events == ["play"]


def test_stop_twice_is_noop():
    poller, sound = _poller(CountingGateway([1]))
    run(poller.poll_once())
    poller.alert.stop()
    poller.alert.stop()
    assert sound.events == ["play", "pause", "reset"]
    assert poller.alert.is_playing is False
    # silencing does not clear the pending flag
    assert poller.watcher.has_pending is True


def test_blocked_autoplay_leaves_manual_retry():
    sound = RecordingSound(blocked=True)
    poller, _ = _poller(CountingGateway([2, 2]), sound)

    run(poller.poll_once())
    assert poller.watcher.has_pending is True
    assert poller.alert.is_playing is False

    sound.blocked = False
    assert run(poller.alert.manual_play()) is True
    assert poller.alert.is_playing is True
    # a repeat poll with the same count does not restart the sound
    run(poller.poll_once())
    assert sound.events == ["play"]


def test_manual_play_needs_pending_orders():
    poller, sound = _poller(CountingGateway([0]))
    run(poller.poll_once())
    assert run(poller.alert.manual_play()) is False
    assert sound.events == []


def test_hosted_sound_without_url_fails_softly():
    watcher = PendingOrderWatcher()
    sound = HostedAlertSound()
    alert = AlertController(sound, watcher, sound_url="")
    sound.url = None
    run(watcher.observe(1))
    assert alert.is_playing is False
    assert watcher.has_pending is True


def test_poller_task_runs_and_stops_cleanly():
    gw = CountingGateway([1] * 1000)
    poller, sound = _poller(gw)

    async def scenario():
        poller.start()
        poller.start()  # second start is ignored
        await asyncio.sleep(0.05)
        assert poller.running
        await poller.stop()
        polled = len(gw.counts)
        await asyncio.sleep(0.05)
        return polled

    remaining = run(scenario())
    assert not poller.running
    assert remaining == len(gw.counts)  # no polls after stop()
    assert remaining < 1000
    assert sound.events == ["play"]


def test_settle_after_confirm_stops_when_queue_empty():
    gw = MemoryGateway()
    order = run(gw.insert("orders", {"status": "pending", "total_amount": 50}))
    poller, sound = _poller(gw)
    run(poller.poll_once())
    assert poller.alert.is_playing

    run(gw.update("orders", order["id"], {"status": "confirmed"}))
    run(poller.settle_after_confirm())
    assert poller.alert.is_playing is False
    assert poller.watcher.has_pending is False
    assert sound.events == ["play", "pause", "reset"]


def test_status_shape():
    poller, _ = _poller(CountingGateway([2]))
    run(poller.poll_once())
    status = poller.status()
    assert status["has_pending_orders"] is True
    assert status["pending_count"] == 2
    assert status["is_playing"] is True
    assert isinstance(poller, PendingOrderPoller)


class BrokenSound(RecordingSound):
    """Audio backend that fails with its own error type."""

    async def play(self):
        self.events.append("play-attempt")
        raise RuntimeError("NotAllowedError: play() rejected")


def test_unexpected_playback_error_keeps_poller_alive():
    gw = CountingGateway([1] * 1000)
    sound = BrokenSound()
    poller, _ = _poller(gw, sound)

    async def scenario():
        poller.start()
        await asyncio.sleep(0.1)
        alive = poller.running
        await poller.stop()
        return alive

    assert run(scenario()) is True
    assert len(gw.counts) < 999  # kept polling after the failed play
    assert poller.alert.is_playing is False
    assert poller.watcher.has_pending is True


def test_failing_on_pending_hook_does_not_end_loop():
    gw = CountingGateway([2] * 1000)
    calls = []

    def hook(orders):
        calls.append(len(orders))
        raise ValueError("hook blew up")

    poller = build_poller(gw, sound=RecordingSound(), interval=0.01)
    poller.on_pending = hook

    async def scenario():
        poller.start()
        await asyncio.sleep(0.1)
        alive = poller.running
        await poller.stop()
        return alive

    assert run(scenario()) is True
    assert len(calls) > 1
    assert poller.alert.is_playing is True
