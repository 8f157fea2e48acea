from __future__ import annotations

from typing import Callable

import httpx
import pytest

from adapters.http_client import HttpDispatcher, build_async_client
from core.config import AppSettings

# ─── TEST COMMAND ──────────────────────────────────────────────────────────
# Run the whole suite with: pytest


Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture()
def settings() -> AppSettings:
    """
    Settings isolated from any `.env` file on the machine.

    Returns:
        AppSettings: Defaults with a zero poll interval.
    """
    return AppSettings(_env_file=None, poll_interval_seconds=0, http_timeout_seconds=5)


@pytest.fixture()
def make_dispatcher(settings: AppSettings):
    """
    Factory for an `HttpDispatcher` backed by `httpx.MockTransport`.

    Args:
        settings (AppSettings): Isolated settings fixture.

    Returns:
        Callable: `handler -> (dispatcher, seen_requests)`.
    """

    def _factory(handler: Handler) -> tuple[HttpDispatcher, list[httpx.Request]]:
        seen: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        client = build_async_client(settings, transport=httpx.MockTransport(_record))
        return HttpDispatcher(settings, client=client), seen

    return _factory
