from __future__ import annotations

import inspect
import sys
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import httpx
import pytest

from app.core.config import Settings

FIXED_NOW = datetime(2024, 3, 6, 12, 0, tzinfo=timezone.utc)  # a Wednesday


def _route_key(request: httpx.Request) -> str:
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def route_transport() -> Callable[[Mapping[str, Any]], httpx.MockTransport]:
    """Build a mock transport from ``{url: outcome}`` routes.

    An outcome is a JSON payload, an ``httpx.Response``, or a callable taking
    the request and returning (or awaiting to) either of those. Callables may
    raise to simulate transport failures. Unknown URLs answer 404.
    """

    def _build(routes: Mapping[str, Any]) -> httpx.MockTransport:
        async def handler(request: httpx.Request) -> httpx.Response:
            key = _route_key(request)
            if key not in routes:
                return httpx.Response(404, json={"error": f"no route for {key}"})
            outcome = routes[key]
            if callable(outcome):
                outcome = outcome(request)
                if inspect.isawaitable(outcome):
                    outcome = await outcome
            if isinstance(outcome, httpx.Response):
                return outcome
            return httpx.Response(200, json=outcome)

        return httpx.MockTransport(handler)

    return _build


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Settings:
    settings = Settings(
        database_url=f"sqlite:///{tmp_path/'devfolio.db'}",
        http_timeout_seconds=2,
        profile_timeout_seconds=2,
        coding_handles={},
        profile_baselines={},
    )
    monkeypatch.setattr("app.core.config.get_settings", lambda: settings)
    monkeypatch.setattr("app.core.config.settings", settings)
    return settings
