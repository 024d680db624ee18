from __future__ import annotations

import asyncio
import datetime as dt
import threading

import pytest
from dateutil.tz import tzutc

from matchcast.config import ProbeConfig
from matchcast.failover import FailoverEngine
from matchcast.prober import ProbeResult
from matchcast.store import ChannelStore

FIXED_NOW = dt.datetime(2024, 5, 4, 18, 30, tzinfo=tzutc())


class FakeProber:
    """Canned probe outcomes per URL: a ProbeResult, an exception to raise, or "hang"."""

    def __init__(self, outcomes=None):
        self.outcomes = outcomes or {}
        self.calls = []

    async def probe(self, url, timeout):
        self.calls.append((url, timeout))
        outcome = self.outcomes.get(url, ProbeResult(ok=True, status_code=200))
        if outcome == "hang":
            await asyncio.sleep(timeout * 20)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class RecordingNotifier:
    def __init__(self):
        self.alerts = []
        self.threads = []

    def channel_down(self, channel, reason):
        self.alerts.append((channel.id, reason))
        self.threads.append(threading.current_thread())


@pytest.fixture
def store():
    return ChannelStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def prober_factory():
    return FakeProber


@pytest.fixture
def make_engine():
    def build(store, prober=None, notifier=None, timeout=5.0):
        return FailoverEngine(
            store,
            prober or FakeProber(),
            config=ProbeConfig(timeout=timeout),
            notifier=notifier,
            clock=lambda: FIXED_NOW,
        )

    return build
