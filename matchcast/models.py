"""Domain models for channels, their stream URLs and matches."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from dateutil.parser import isoparse

from .errors import InvalidArgumentError

# Wire name -> attribute name for the URL entry fields the engine knows about.
_ENTRY_FIELDS = {
    "url": "url",
    "quality": "quality",
    "priority": "priority",
    "isHealthy": "is_healthy",
    "lastChecked": "last_checked",
    "lastError": "last_error",
    "error": "error",
    "statusCode": "status_code",
}


class Quality(str, Enum):
    SD = "SD"
    HD = "HD"
    FHD = "FHD"
    UHD = "4K"
    MULTI = "Multi"


def _parse_timestamp(value: Any) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, str):
        try:
            return isoparse(value)
        except ValueError as exc:
            raise InvalidArgumentError(f"Invalid lastChecked timestamp: {value!r}") from exc
    raise InvalidArgumentError(f"Invalid lastChecked timestamp: {value!r}")


def _format_timestamp(value: Optional[dt.datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass
class UrlEntry:
    url: str
    quality: Optional[Quality] = None
    priority: Optional[int] = None
    is_healthy: Optional[bool] = None
    last_checked: Optional[dt.datetime] = None
    last_error: Optional[str] = None
    error: Optional[str] = None
    status_code: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UrlEntry":
        """Validate a raw entry as stored or submitted by an administrator.

        Optional fields stay ``None`` when absent; defaults are derived at read
        time by :mod:`matchcast.ranking` and never written back.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError("URL entry must be an object")

        url = data.get("url")
        if not isinstance(url, str) or not url.strip():
            raise InvalidArgumentError("URL entry requires a non-empty url")

        quality = data.get("quality")
        if quality is not None:
            try:
                quality = Quality(quality)
            except ValueError as exc:
                raise InvalidArgumentError(f"Unknown quality label: {quality!r}") from exc

        priority = data.get("priority")
        if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
            raise InvalidArgumentError("priority must be an integer")

        is_healthy = data.get("isHealthy")
        if is_healthy is not None and not isinstance(is_healthy, bool):
            raise InvalidArgumentError("isHealthy must be a boolean")

        status_code = data.get("statusCode")
        if status_code is not None and (isinstance(status_code, bool) or not isinstance(status_code, int)):
            raise InvalidArgumentError("statusCode must be an integer")

        return cls(
            url=url,
            quality=quality,
            priority=priority,
            is_healthy=is_healthy,
            last_checked=_parse_timestamp(data.get("lastChecked")),
            last_error=data.get("lastError"),
            error=data.get("error"),
            status_code=status_code,
            extra={key: value for key, value in data.items() if key not in _ENTRY_FIELDS},
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(self.extra)
        payload["url"] = self.url
        if self.quality is not None:
            payload["quality"] = self.quality.value
        if self.priority is not None:
            payload["priority"] = self.priority
        if self.is_healthy is not None:
            payload["isHealthy"] = self.is_healthy
        if self.last_checked is not None:
            payload["lastChecked"] = _format_timestamp(self.last_checked)
        if self.last_error is not None:
            payload["lastError"] = self.last_error
        if self.error is not None:
            payload["error"] = self.error
        if self.status_code is not None:
            payload["statusCode"] = self.status_code
        return payload


def parse_entries(raw: Any) -> List[UrlEntry]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise InvalidArgumentError("urls must be a list")
    return [UrlEntry.from_dict(item) for item in raw]


@dataclass
class Channel:
    id: str
    name: str
    category: Optional[str] = None
    logo: Optional[str] = None
    urls: List[UrlEntry] = field(default_factory=list)
    revision: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "logo": self.logo,
            "urls": [entry.to_dict() for entry in self.urls],
            "revision": self.revision,
        }


@dataclass
class RankedUrl:
    """An entry as presented to players, with defaults applied and its storage index."""

    entry: UrlEntry
    index: int
    priority: int
    is_healthy: bool
    last_checked: Optional[dt.datetime]

    def to_dict(self) -> Dict[str, Any]:
        payload = self.entry.to_dict()
        payload.update(
            {
                "priority": self.priority,
                "isHealthy": self.is_healthy,
                "lastChecked": _format_timestamp(self.last_checked),
                "index": self.index,
            }
        )
        return payload


@dataclass
class HealthSummary:
    total: int = 0
    healthy: int = 0
    unhealthy: int = 0

    @classmethod
    def from_entries(cls, entries: List[UrlEntry]) -> "HealthSummary":
        healthy = sum(1 for entry in entries if entry.is_healthy is not False)
        return cls(total=len(entries), healthy=healthy, unhealthy=len(entries) - healthy)


@dataclass
class FailureOutcome:
    channel: Channel
    next_url: Optional[UrlEntry]
    next_index: Optional[int]
    remaining_healthy: int


@dataclass
class HealthCheckOutcome:
    channel: Channel
    summary: HealthSummary


@dataclass
class Match:
    match_id: str
    home_team: str
    away_team: str
    kickoff_time: dt.datetime
    competition: Optional[str] = None
    status: str = "NS"
    broadcast_channels: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "matchId": self.match_id,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "kickoffTime": self.kickoff_time.isoformat(),
            "competition": self.competition,
            "status": self.status,
            "broadcastChannels": list(self.broadcast_channels),
        }
