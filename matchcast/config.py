"""Configuration helpers for the matchcast service."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class ProbeConfig:
    timeout: float = 5.0
    user_agent: str = "Mozilla/5.0 (compatible; HealthChecker/1.0)"


@dataclass
class NotifierConfig:
    webhook_url: Optional[str] = None
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    email_from: Optional[str] = None
    email_to: Optional[str] = None
    timeout: float = 10.0


@dataclass
class AppConfig:
    project_name: str = "Matchcast"
    health_check_interval_minutes: int = 0
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    probe: ProbeConfig = field(default_factory=ProbeConfig)
    notifier: NotifierConfig | None = None


def load_config() -> AppConfig:
    """Load configuration from environment variables."""
    probe = ProbeConfig(
        timeout=float(os.getenv("PROBE_TIMEOUT_SEC", "5")),
        user_agent=os.getenv("PROBE_USER_AGENT", "Mozilla/5.0 (compatible; HealthChecker/1.0)"),
    )

    notifier = NotifierConfig(
        webhook_url=os.getenv("NOTIFY_WEBHOOK_URL"),
        smtp_host=os.getenv("SMTP_HOST"),
        smtp_port=int(os.getenv("SMTP_PORT", "587")),
        smtp_username=os.getenv("SMTP_USERNAME"),
        smtp_password=os.getenv("SMTP_PASSWORD"),
        email_from=os.getenv("NOTIFY_EMAIL_FROM"),
        email_to=os.getenv("NOTIFY_EMAIL_TO"),
        timeout=float(os.getenv("NOTIFY_TIMEOUT_SEC", "10")),
    )

    return AppConfig(
        project_name=os.getenv("PROJECT_NAME", "Matchcast"),
        health_check_interval_minutes=int(os.getenv("HEALTH_CHECK_INTERVAL_MIN", "0")),
        cors_origins=[origin.strip() for origin in os.getenv("CORS_ORIGINS", "*").split(",") if origin.strip()],
        probe=probe,
        notifier=notifier,
    )
