"""
Shared pytest fixtures for the Cassette client test suite.

Provides:
- A test configuration pointing at a fake server
- A CassetteAPIClient bound to that configuration (mocked with respx)
- A recording httpx.MockTransport for tests that need full control over
  the transport's behaviour
"""

from collections.abc import AsyncGenerator, Callable

import httpx
import pytest

from cassette_client.api.client import CassetteAPIClient
from cassette_client.config import Config

TEST_SERVER_URL = "http://test-server:8080"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it was asked to send."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(record)


@pytest.fixture
def config() -> Config:
    """Create a test configuration."""
    return Config(server_url=TEST_SERVER_URL, timeout=10.0)


@pytest.fixture
async def client(config: Config) -> AsyncGenerator[CassetteAPIClient, None]:
    """Create an API client for testing."""
    async with CassetteAPIClient(config) as client:
        yield client


ClientFactory = Callable[..., tuple[CassetteAPIClient, RecordingTransport]]


@pytest.fixture
async def make_client(config: Config) -> AsyncGenerator[ClientFactory, None]:
    """
    Factory for clients running on a RecordingTransport.

    The handler decides what the fake server answers (or raises). A
    different Config can be passed as the second argument. Every
    client created through the factory is closed after the test.
    """
    created: list[CassetteAPIClient] = []

    def factory(
        handler: Callable[[httpx.Request], httpx.Response],
        client_config: Config | None = None,
    ) -> tuple[CassetteAPIClient, RecordingTransport]:
        transport = RecordingTransport(handler)
        api_client = CassetteAPIClient(client_config or config, transport=transport)
        created.append(api_client)
        return api_client, transport

    yield factory

    for api_client in created:
        await api_client.aclose()
