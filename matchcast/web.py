"""FastAPI application exposing channels, matches and stream failover to players and admin tools."""

from __future__ import annotations

import dataclasses
import datetime as dt
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .config import AppConfig, load_config
from .errors import MatchcastError
from .failover import FailoverEngine, Prober
from .models import Match
from .monitor import HealthMonitor
from .notifier import Notifier
from .prober import HttpProber
from .store import ChannelStore, MatchStore

logger = logging.getLogger(__name__)


class ChannelPayload(BaseModel):
    name: str = Field(..., description="Display name of the broadcast channel.")
    category: Optional[str] = None
    logo: Optional[str] = None
    urls: List[Dict[str, Any]] = Field(default_factory=list, description="Candidate stream URLs in storage order.")


class ChannelUpdatePayload(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    logo: Optional[str] = None
    urls: Optional[List[Dict[str, Any]]] = None


class ReportFailurePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url_index: Optional[StrictInt] = Field(None, alias="urlIndex", description="Storage index of the URL that failed.")
    error: Optional[str] = None


class MatchPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: str = Field(..., alias="matchId")
    home_team: str = Field(..., alias="homeTeam")
    away_team: str = Field(..., alias="awayTeam")
    kickoff_time: dt.datetime = Field(..., alias="kickoffTime")
    competition: Optional[str] = None
    status: str = "NS"


class LinkPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: str = Field(..., alias="matchId")
    channel_ids: List[str] = Field(default_factory=list, alias="channelIds")


def create_app(
    config: AppConfig | None = None,
    store: ChannelStore | None = None,
    prober: Prober | None = None,
    notifier: Notifier | None = None,
) -> FastAPI:
    config = config or load_config()
    channels = store or ChannelStore()
    matches = MatchStore(channels)
    http_prober = HttpProber(config.probe) if prober is None else None
    engine = FailoverEngine(
        channels,
        prober if prober is not None else http_prober,
        config=config.probe,
        notifier=notifier or Notifier(config.notifier),
    )
    monitor = HealthMonitor(engine, config.health_check_interval_minutes)
    app = FastAPI(title=config.project_name)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "X-Admin-Passkey"],
    )
    app.state.engine = engine
    app.state.matches = matches

    @app.exception_handler(MatchcastError)
    async def matchcast_error(request: Request, exc: MatchcastError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}" for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": details or "Invalid request"})

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/channels")
    async def list_channels() -> List[Dict[str, Any]]:
        return [channel.to_dict() for channel in channels.list_channels()]

    @app.post("/api/channels", status_code=201)
    async def create_channel(payload: ChannelPayload):
        return channels.create_channel(payload.model_dump()).to_dict()

    @app.post("/api/channels/check-health")
    async def check_all_channels():
        results = await engine.check_all()
        return {
            "message": "Health check completed",
            "channels": {channel_id: dataclasses.asdict(summary) for channel_id, summary in results.items()},
        }

    @app.get("/api/channels/{channel_id}")
    async def get_channel(channel_id: str):
        return channels.get_channel(channel_id).to_dict()

    @app.put("/api/channels/{channel_id}")
    async def update_channel(channel_id: str, payload: ChannelUpdatePayload):
        return channels.update_channel(channel_id, payload.model_dump(exclude_unset=True)).to_dict()

    @app.delete("/api/channels/{channel_id}")
    async def delete_channel(channel_id: str):
        channels.delete_channel(channel_id)
        return {"message": "Channel deleted."}

    @app.get("/api/channels/{channel_id}/urls")
    async def channel_urls(channel_id: str):
        channel, ranked = engine.ranked_urls(channel_id)
        return {
            "channelId": channel.id,
            "channelName": channel.name,
            "urls": [item.to_dict() for item in ranked],
        }

    @app.post("/api/channels/{channel_id}/check-health")
    async def check_health(channel_id: str):
        outcome = await engine.check_health(channel_id)
        return {
            "message": "Health check completed",
            "channel": outcome.channel.to_dict(),
            "healthySummary": dataclasses.asdict(outcome.summary),
        }

    @app.post("/api/channels/{channel_id}/report-failure")
    def report_failure(channel_id: str, payload: ReportFailurePayload):
        outcome = engine.report_failure(channel_id, payload.url_index, payload.error)
        next_url = None
        if outcome.next_url is not None:
            next_url = {**outcome.next_url.to_dict(), "index": outcome.next_index}
        return {
            "message": "Failure reported and URL marked as unhealthy",
            "nextUrl": next_url,
            "remainingHealthyUrls": outcome.remaining_healthy,
        }

    @app.get("/api/matches")
    async def list_matches() -> List[Dict[str, Any]]:
        return [match.to_dict() for match in matches.list_matches()]

    @app.post("/api/matches", status_code=201)
    async def upsert_match(payload: MatchPayload):
        return matches.upsert(Match(**payload.model_dump())).to_dict()

    @app.post("/api/link")
    async def link_channels(payload: LinkPayload):
        match = matches.link_channels(payload.match_id, payload.channel_ids)
        return {"message": "Channels linked.", "data": match.to_dict()}

    @app.on_event("startup")
    async def startup_event() -> None:
        monitor.start()
        logger.info("Matchcast started.")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        monitor.stop()
        if http_prober is not None:
            http_prober.close()

    return app


app = create_app()
