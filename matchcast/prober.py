"""Liveness probes for stream URLs."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional

import requests

from .config import ProbeConfig

logger = logging.getLogger(__name__)


@dataclass
class ProbeResult:
    ok: bool
    status_code: Optional[int] = None
    error_message: Optional[str] = None


def is_healthy_status(status_code: int) -> bool:
    return 200 <= status_code < 400


class HttpProber:
    """Issue a single HEAD request per URL; 2xx and 3xx count as alive.

    Each probe runs on a worker thread of its own; its timeout covers the request only.
    """

    def __init__(self, config: ProbeConfig | None = None):
        self.config = config or ProbeConfig()
        self.session = requests.Session()
        self.session.headers.update({"User-Agent": self.config.user_agent})

    async def probe(self, url: str, timeout: float) -> ProbeResult:
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="probe")
        try:
            return await asyncio.get_running_loop().run_in_executor(executor, self._head, url, timeout)
        finally:
            executor.shutdown(wait=False)

    def _head(self, url: str, timeout: float) -> ProbeResult:
        try:
            response = self.session.head(url, timeout=timeout, allow_redirects=True)
        except requests.Timeout:
            return ProbeResult(ok=False, error_message=f"Timed out after {timeout:g}s")
        except requests.RequestException as exc:
            logger.debug("Probe of %s failed: %s", url, exc)
            return ProbeResult(ok=False, error_message=str(exc))
        return ProbeResult(ok=is_healthy_status(response.status_code), status_code=response.status_code)

    def close(self) -> None:
        self.session.close()
