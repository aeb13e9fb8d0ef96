"""
Pytest configuration and fixtures for tplink tests.
"""

import logging
from typing import Dict, List, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from tplink.client import ClientConfig


USER = "user"
PASSWORD = "password"


class FakeRouter:
    """Plays the router's web interface for end-to-end tests.

    Set ``responses[path] = (status, body)``; every request received is
    recorded in ``requests``.
    """

    def __init__(self):
        self.url = ""
        self.responses: Dict[str, Tuple[int, bytes]] = {}
        self.requests: List[dict] = []

    async def handle(self, request: web.Request) -> web.Response:
        self.requests.append({
            "method": request.method,
            "path": request.path,
            "query": dict(request.query),
            "headers": dict(request.headers),
            "body": await request.read(),
        })
        status, body = self.responses.get(request.path, (404, b"Not Found"))
        return web.Response(status=status, body=body)


@pytest_asyncio.fixture
async def fake_router():
    """Start a fake router on a local port."""
    router = FakeRouter()
    app = web.Application()
    app.router.add_route("*", "/{tail:.*}", router.handle)

    async with TestServer(app) as server:
        router.url = str(server.make_url("/"))
        yield router


@pytest.fixture
def test_logger() -> logging.Logger:
    return logging.getLogger("tplink.tests")


@pytest.fixture
def router_config(fake_router, test_logger) -> ClientConfig:
    """Client config pointing at the fake router, default transport."""
    return ClientConfig.create(USER, PASSWORD, fake_router.url, logger=test_logger)
