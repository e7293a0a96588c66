"""
API client modules for the Cassette service.

This package contains the HTTP client implementation for talking to the
Cassette REST API. It uses httpx for async HTTP requests.

The main class is CassetteAPIClient. Failures are never wrapped: callers
see the httpx exceptions exactly as the transport raised them.

Example:
    from cassette_client.api import CassetteAPIClient

    async with CassetteAPIClient(config) as client:
        await client.refresh_csrf_token()
        states = await client.fetch_player_states()
"""

from cassette_client.api.client import (
    API_PATH,
    CSRF_HEADER_NAME,
    URL_ACTIVE_DEVICES,
    URL_CSRF_TOKEN,
    URL_DATA,
    URL_PLAYER_STATES,
    CassetteAPIClient,
    restore_path,
)
from cassette_client.api.types import ActiveDevice, PlayerState, PlayerStatesEnvelope

__all__ = [
    "API_PATH",
    "CSRF_HEADER_NAME",
    "URL_ACTIVE_DEVICES",
    "URL_CSRF_TOKEN",
    "URL_DATA",
    "URL_PLAYER_STATES",
    "ActiveDevice",
    "CassetteAPIClient",
    "PlayerState",
    "PlayerStatesEnvelope",
    "restore_path",
]
