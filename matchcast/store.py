"""In-process channel and match stores."""

from __future__ import annotations

import copy
import datetime as dt
import logging
import threading
import uuid
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import ConflictError, InvalidArgumentError, NotFoundError
from .models import Channel, Match, UrlEntry, parse_entries

logger = logging.getLogger(__name__)


class ChannelStore:
    """Channel records keyed by id.

    Every write bumps the channel's ``revision``. ``replace_channel_urls`` accepts
    the revision the caller read and refuses the write if the record moved on.
    Returned channels are copies; mutating them does not touch the store.
    """

    def __init__(self) -> None:
        self._channels: Dict[str, Channel] = {}
        self._lock = threading.Lock()

    def list_channels(self) -> List[Channel]:
        with self._lock:
            channels = [copy.deepcopy(channel) for channel in self._channels.values()]
        return sorted(channels, key=lambda channel: channel.name)

    def get_channel(self, channel_id: str) -> Channel:
        with self._lock:
            channel = self._channels.get(channel_id)
            if channel is None:
                raise NotFoundError("Channel not found")
            return copy.deepcopy(channel)

    def create_channel(self, data: Mapping[str, Any]) -> Channel:
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgumentError("Channel name is required")
        channel = Channel(
            id=str(data.get("id") or uuid.uuid4().hex),
            name=name,
            category=data.get("category"),
            logo=data.get("logo"),
            urls=parse_entries(data.get("urls")),
        )
        with self._lock:
            if channel.id in self._channels:
                raise ConflictError(f"Channel {channel.id} already exists")
            self._channels[channel.id] = channel
            logger.info("Created channel %s (%s)", channel.id, channel.name)
            return copy.deepcopy(channel)

    def update_channel(self, channel_id: str, data: Mapping[str, Any]) -> Channel:
        """Apply an administrator edit. Fields missing from ``data`` are left as they are."""
        urls = parse_entries(data["urls"]) if "urls" in data else None
        if "name" in data and (not isinstance(data["name"], str) or not data["name"].strip()):
            raise InvalidArgumentError("Channel name is required")
        with self._lock:
            channel = self._channels.get(channel_id)
            if channel is None:
                raise NotFoundError("Channel not found")
            for key in ("name", "category", "logo"):
                if key in data:
                    setattr(channel, key, data[key])
            if urls is not None:
                channel.urls = urls
            channel.revision += 1
            return copy.deepcopy(channel)

    def delete_channel(self, channel_id: str) -> None:
        with self._lock:
            if self._channels.pop(channel_id, None) is None:
                raise NotFoundError("Channel not found")
        logger.info("Deleted channel %s", channel_id)

    def replace_channel_urls(
        self,
        channel_id: str,
        urls: Sequence[UrlEntry],
        expected_revision: Optional[int] = None,
    ) -> Channel:
        with self._lock:
            channel = self._channels.get(channel_id)
            if channel is None:
                raise NotFoundError("Channel not found")
            if expected_revision is not None and channel.revision != expected_revision:
                raise ConflictError(
                    f"Channel {channel_id} changed since it was read "
                    f"(revision {expected_revision}, now {channel.revision})"
                )
            channel.urls = copy.deepcopy(list(urls))
            channel.revision += 1
            return copy.deepcopy(channel)


class MatchStore:
    """Matches keyed by ``match_id`` with the channels linked to them."""

    def __init__(self, channels: ChannelStore) -> None:
        self._channels = channels
        self._matches: Dict[str, Match] = {}
        self._lock = threading.Lock()

    def upsert(self, match: Match) -> Match:
        with self._lock:
            existing = self._matches.get(match.match_id)
            if existing is not None and not match.broadcast_channels:
                match.broadcast_channels = list(existing.broadcast_channels)
            self._matches[match.match_id] = copy.deepcopy(match)
            return copy.deepcopy(match)

    def list_matches(self) -> List[Match]:
        with self._lock:
            matches = [copy.deepcopy(match) for match in self._matches.values()]
        return sorted(matches, key=lambda match: match.kickoff_time.astimezone(dt.timezone.utc))

    def link_channels(self, match_id: str, channel_ids: Sequence[str]) -> Match:
        if not isinstance(channel_ids, (list, tuple)):
            raise InvalidArgumentError("channelIds must be a list")
        for channel_id in channel_ids:
            self._channels.get_channel(channel_id)
        with self._lock:
            match = self._matches.get(match_id)
            if match is None:
                raise NotFoundError("Match not found")
            match.broadcast_channels = list(channel_ids)
            logger.info("Linked %d channel(s) to match %s", len(channel_ids), match_id)
            return copy.deepcopy(match)
