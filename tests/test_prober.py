import asyncio

import pytest
import requests

from matchcast.config import ProbeConfig
from matchcast.prober import HttpProber, is_healthy_status


class _Response:
    def __init__(self, status_code):
        self.status_code = status_code


@pytest.mark.parametrize(
    "status, healthy",
    [(200, True), (204, True), (301, True), (399, True), (400, False), (404, False), (503, False), (199, False)],
)
def test_status_classification(status, healthy):
    assert is_healthy_status(status) is healthy


def test_probe_issues_head_request(monkeypatch):
    prober = HttpProber(ProbeConfig(user_agent="matchcast-test"))
    seen = {}

    def fake_head(url, timeout, allow_redirects):
        seen.update(url=url, timeout=timeout, allow_redirects=allow_redirects)
        return _Response(302)

    monkeypatch.setattr(prober.session, "head", fake_head)

    result = asyncio.run(prober.probe("https://cdn.example/live.m3u8", 5))

    assert result.ok is True
    assert result.status_code == 302
    assert seen == {"url": "https://cdn.example/live.m3u8", "timeout": 5, "allow_redirects": True}
    assert prober.session.headers["User-Agent"] == "matchcast-test"


def test_probe_reports_http_errors_as_unhealthy(monkeypatch):
    prober = HttpProber()
    monkeypatch.setattr(prober.session, "head", lambda url, **kwargs: _Response(404))

    result = asyncio.run(prober.probe("https://cdn.example/gone", 5))

    assert (result.ok, result.status_code, result.error_message) == (False, 404, None)


@pytest.mark.parametrize(
    "exc, message",
    [
        (requests.Timeout("slow"), "Timed out after 5s"),
        (requests.ConnectionError("refused"), "refused"),
    ],
)
def test_probe_converts_network_errors(monkeypatch, exc, message):
    prober = HttpProber()

    def fake_head(url, **kwargs):
        raise exc

    monkeypatch.setattr(prober.session, "head", fake_head)

    result = asyncio.run(prober.probe("https://cdn.example/live", 5))

    assert result.ok is False
    assert result.status_code is None
    assert result.error_message == message
