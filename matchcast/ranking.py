"""Ranking of a channel's stream URLs for playback."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .models import RankedUrl, UrlEntry


def derive(entry: UrlEntry, index: int) -> RankedUrl:
    """Apply read-time defaults: priority falls back to the index, health to ``True``."""
    return RankedUrl(
        entry=entry,
        index=index,
        priority=entry.priority if entry.priority is not None else index,
        is_healthy=entry.is_healthy is not False,
        last_checked=entry.last_checked or None,
    )


def rank_urls(entries: Sequence[UrlEntry]) -> List[RankedUrl]:
    """Healthy entries first, then ascending priority. ``sorted`` is stable, so ties keep storage order."""
    derived = [derive(entry, index) for index, entry in enumerate(entries)]
    return sorted(derived, key=lambda item: (not item.is_healthy, item.priority))


def next_candidate(entries: Sequence[UrlEntry], failed_index: int) -> Tuple[Optional[int], Optional[UrlEntry], int]:
    """Scan storage order for the first entry other than ``failed_index`` not known to be unhealthy.

    Returns ``(index, entry, remaining)`` where ``remaining`` counts every such entry.
    Priorities are ignored here; see :func:`rank_urls` for the playback order.
    """
    candidates = [
        (index, entry)
        for index, entry in enumerate(entries)
        if index != failed_index and entry.is_healthy is not False
    ]
    if not candidates:
        return None, None, 0
    index, entry = candidates[0]
    return index, entry, len(candidates)
