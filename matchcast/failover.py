"""Failover decisions for channel stream URLs: ranking, failure reports and health checks."""

from __future__ import annotations

import asyncio
import dataclasses
import datetime as dt
import logging
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from dateutil.tz import tzutc

from .config import ProbeConfig
from .errors import InvalidArgumentError, MatchcastError, StorageError
from .models import Channel, FailureOutcome, HealthCheckOutcome, HealthSummary, RankedUrl, UrlEntry
from .notifier import Notifier
from .prober import ProbeResult
from .ranking import next_candidate, rank_urls
from .store import ChannelStore

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_MESSAGE = "Player reported failure"


class Prober(Protocol):
    async def probe(self, url: str, timeout: float) -> ProbeResult: ...


def _utcnow() -> dt.datetime:
    return dt.datetime.now(tz=tzutc())


class FailoverEngine:
    """Stateless per call: every operation re-reads the channel from the store.

    Writes go back as a whole URL sequence together with the revision that was
    read, so two overlapping read-modify-write cycles cannot silently drop one
    another's update; the later writer gets a ``ConflictError`` instead.
    """

    def __init__(
        self,
        store: ChannelStore,
        prober: Prober,
        config: ProbeConfig | None = None,
        notifier: Notifier | None = None,
        clock: Callable[[], dt.datetime] = _utcnow,
    ):
        self.store = store
        self.prober = prober
        self.config = config or ProbeConfig()
        self.notifier = notifier
        self.clock = clock

    def ranked_urls(self, channel_id: str) -> Tuple[Channel, List[RankedUrl]]:
        channel = self._read(channel_id)
        return channel, rank_urls(channel.urls)

    def report_failure(self, channel_id: str, url_index: object, error: Optional[str] = None) -> FailureOutcome:
        channel = self._read(channel_id)
        if isinstance(url_index, bool) or not isinstance(url_index, int) or not 0 <= url_index < len(channel.urls):
            raise InvalidArgumentError("Invalid URL index")

        entries = list(channel.urls)
        entries[url_index] = dataclasses.replace(
            entries[url_index],
            is_healthy=False,
            last_checked=self.clock(),
            last_error=error or DEFAULT_FAILURE_MESSAGE,
        )
        updated = self._write(channel, entries)
        logger.info("Channel %s: URL %d marked unhealthy (%s)", channel_id, url_index, error or DEFAULT_FAILURE_MESSAGE)

        next_index, next_entry, remaining = next_candidate(updated.urls, url_index)
        if remaining == 0:
            self._alert(updated, "player reported failure on the last healthy URL")
        return FailureOutcome(
            channel=updated, next_url=next_entry, next_index=next_index, remaining_healthy=remaining
        )

    async def check_health(self, channel_id: str) -> HealthCheckOutcome:
        """Probe every URL of the channel concurrently and persist the results in one write.

        A failing probe only marks its own entry unhealthy. Read and write errors
        propagate, and nothing is written if the caller is cancelled mid-batch.
        """
        channel = self._read(channel_id)
        entries = await asyncio.gather(*(self._probe_entry(entry) for entry in channel.urls))
        updated = self._write(channel, list(entries))

        summary = HealthSummary.from_entries(updated.urls)
        logger.info(
            "Health check for channel %s: %d/%d healthy", channel_id, summary.healthy, summary.total
        )
        if summary.total and not summary.healthy:
            await asyncio.to_thread(self._alert, updated, "health check found no reachable URL")
        return HealthCheckOutcome(channel=updated, summary=summary)

    async def check_all(self) -> Dict[str, HealthSummary]:
        results: Dict[str, HealthSummary] = {}
        for channel in self.store.list_channels():
            try:
                outcome = await self.check_health(channel.id)
            except MatchcastError as exc:
                logger.error("Health check for channel %s failed: %s", channel.id, exc)
                continue
            results[channel.id] = outcome.summary
        return results

    async def _probe_entry(self, entry: UrlEntry) -> UrlEntry:
        timeout = self.config.timeout
        try:
            result = await asyncio.wait_for(self.prober.probe(entry.url, timeout), timeout=timeout)
        except asyncio.TimeoutError:
            result = ProbeResult(ok=False, error_message=f"Probe timed out after {timeout:g}s")
        except Exception as exc:  # noqa: BLE001
            result = ProbeResult(ok=False, error_message=str(exc) or exc.__class__.__name__)

        if not result.ok:
            logger.warning("Probe of %s failed: %s", entry.url, result.error_message or result.status_code)
        checked = dataclasses.replace(entry, is_healthy=result.ok, last_checked=self.clock())
        if result.status_code is not None:
            checked.status_code = result.status_code
        if result.error_message is not None:
            checked.error = result.error_message
        return checked

    def _read(self, channel_id: str) -> Channel:
        try:
            return self.store.get_channel(channel_id)
        except MatchcastError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to read channel {channel_id}: {exc}") from exc

    def _write(self, channel: Channel, entries: List[UrlEntry]) -> Channel:
        try:
            return self.store.replace_channel_urls(channel.id, entries, expected_revision=channel.revision)
        except MatchcastError:
            raise
        except Exception as exc:
            raise StorageError(f"Failed to update channel {channel.id}: {exc}") from exc

    def _alert(self, channel: Channel, reason: str) -> None:
        logger.warning("Channel %s has no healthy URLs left", channel.id)
        if self.notifier is not None:
            self.notifier.channel_down(channel, reason)
