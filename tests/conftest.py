"""Shared pytest fixtures and test helpers for uc_intg_apod tests."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer, unused_port

from uc_intg_apod.config import Config
from uc_intg_apod.models import HttpResponse, HttpResult

IMAGE_ENTRY: dict[str, Any] = {
    "title": "The Horsehead Nebula",
    "date": "2025-10-19",
    "media_type": "image",
    "url": "https://apod.nasa.gov/apod/image/2510/horsehead.jpg",
    "hdurl": "https://apod.nasa.gov/apod/image/2510/horsehead_big.jpg",
    "explanation": "One of the most identifiable nebulae in the sky. It is part of a dark cloud.",
    "copyright": "Jane Astronomer",
    "service_version": "v1",
}

VIDEO_ENTRY: dict[str, Any] = {
    "title": "Flight Over Mars",
    "date": "2025-10-18",
    "media_type": "video",
    "url": "https://www.youtube.com/embed/abc123",
    "explanation": "What would it look like to fly over Mars?",
}


def ok_response(entry: dict[str, Any] | None = None) -> HttpResponse:
    return HttpResponse(status=200, body=json.dumps(entry or IMAGE_ENTRY))


class FakeClient:
    """Stands in for ApodClient; returns queued results in order."""

    def __init__(self, *results: HttpResult | BaseException) -> None:
        self.results = list(results)
        self.calls = 0
        self.gate: asyncio.Event | None = None

    async def get_apod(self) -> HttpResult:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class FakeApodServer:
    """Local APOD endpoint whose response the test controls."""

    def __init__(self) -> None:
        self.status = 200
        self.body = json.dumps(IMAGE_ENTRY)
        self.delay = 0.0
        self.queries: list[dict[str, str]] = []
        self.url = ""

    async def handle(self, request: web.Request) -> web.Response:
        self.queries.append(dict(request.query))
        if self.delay:
            await asyncio.sleep(self.delay)
        return web.Response(status=self.status, text=self.body, content_type="application/json")


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config on a temp file with no API key in the environment."""
    return Config(str(tmp_path / "config.json"), environ={})


@pytest.fixture
async def apod_server():
    fake = FakeApodServer()
    app = web.Application()
    app.router.add_get("/planetary/apod", fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.url = str(server.make_url("/planetary/apod"))
    try:
        yield fake
    finally:
        await server.close()


@pytest.fixture
def closed_url() -> str:
    """URL on a local port nothing listens on."""
    return f"http://127.0.0.1:{unused_port()}/planetary/apod"
