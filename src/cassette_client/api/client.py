"""
HTTP API client for the Cassette service.

This module provides an async HTTP client for the Cassette REST API. It
covers the CSRF token handshake and the fixed set of player-state, device
and user-data endpoints.

The client is a thin proxy over httpx. It never retries, never wraps
exceptions and never interprets status codes itself; a response hook makes
the transport raise ``httpx.HTTPStatusError`` for any non-2xx response, and
everything else the transport raises reaches the caller untouched.

    async with CassetteAPIClient(config) as client:
        client.set_csrf_token(await client.fetch_csrf_token())
        await client.store_player_state()

Key Features:
    - Async HTTP requests using httpx
    - CSRF token kept in the transport's default headers
    - Per-endpoint response unwrapping
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from cassette_client.api.types import ActiveDevice, PlayerState
from cassette_client.config import Config

logger = logging.getLogger(__name__)

# =============================================================================
# ENDPOINTS
# =============================================================================

# Header the server reads the CSRF token from, and writes it to on the
# handshake response. Sent verbatim.
CSRF_HEADER_NAME = "cassette_csrf_token"

API_PATH = "/api"
URL_DATA = API_PATH + "/you"
URL_CSRF_TOKEN = API_PATH + "/csrfToken"
URL_PLAYER_STATES = API_PATH + "/playerStates"
URL_ACTIVE_DEVICES = API_PATH + "/activeDevices"


def player_state_path(slot_number: int | str) -> str:
    """Path of a single player-state slot."""
    return f"{URL_PLAYER_STATES}/{slot_number}"


def restore_path(slot_number: int | str, device_id: str | None = None) -> str:
    """
    Build the restore URL for a slot.

    The ``deviceID`` query parameter is only present when a device id is
    given; otherwise the URL has no query string at all and the server
    picks a device itself. The device id is percent-encoded so reserved
    characters stay inside the parameter value.

    Example:
        restore_path(5)          # "/api/playerStates/5/restore"
        restore_path(5, "abc")   # "/api/playerStates/5/restore?deviceID=abc"
    """
    url = f"{player_state_path(slot_number)}/restore"
    if device_id:
        url += f"?deviceID={quote(device_id, safe='')}"
    return url


# =============================================================================
# TRANSPORT HOOKS
# =============================================================================


async def _log_request(request: httpx.Request) -> None:
    logger.debug("%s %s", request.method, request.url)


async def _raise_on_error_status(response: httpx.Response) -> None:
    # Non-2xx responses reject like a network failure would.
    response.raise_for_status()


# =============================================================================
# API CLIENT
# =============================================================================


@dataclass
class CassetteAPIClient:
    """
    Async HTTP client for the Cassette API.

    Construction creates the underlying httpx.AsyncClient but performs no
    network I/O and presets no CSRF token. Use it as an async context
    manager (or call aclose()) to release the connection pool.

    Attributes:
        config: Server URL, timeout and session cookies. Defaults to Config().
        transport: Optional httpx transport, mainly for tests.

    Example:
        async with CassetteAPIClient(Config()) as client:
            await client.refresh_csrf_token()

            for slot, state in enumerate(await client.fetch_player_states() or []):
                print(slot, state)

            await client.restore_from_player_state(0, device_id="abc")
    """

    config: Config | None = None
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)

    _http_client: httpx.AsyncClient = field(init=False, repr=False)

    CSRF_HEADER_NAME = CSRF_HEADER_NAME
    API_PATH = API_PATH
    # Raw identity endpoint path, for collaborators that link to it directly
    # (the user-data export is served from the same URL).
    URL_DATA = URL_DATA
    URL_CSRF_TOKEN = URL_CSRF_TOKEN
    URL_PLAYER_STATES = URL_PLAYER_STATES
    URL_ACTIVE_DEVICES = URL_ACTIVE_DEVICES

    def __post_init__(self) -> None:
        if self.config is None:
            self.config = Config()

        self._http_client = httpx.AsyncClient(
            base_url=self.config.server_url,
            timeout=self.config.timeout,
            cookies=self.config.cookies,
            transport=self.transport,
            event_hooks={
                "request": [_log_request],
                "response": [_raise_on_error_status],
            },
        )

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    async def __aenter__(self) -> CassetteAPIClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http_client.aclose()

    @property
    def http_client(self) -> httpx.AsyncClient:
        """The single httpx.AsyncClient every operation goes through."""
        return self._http_client

    # -------------------------------------------------------------------------
    # CSRF Token Handshake
    # -------------------------------------------------------------------------

    async def fetch_csrf_token(self) -> str | None:
        """
        Ask the server for a CSRF token.

        Sends a HEAD request to the token endpoint and reads the token from
        the response header. Does not install the token; pass the result to
        set_csrf_token().

        Returns:
            The token, or None if the server did not send the header.

        Raises:
            httpx.HTTPError: Whatever the transport raised, unchanged.
        """
        response = await self._http_client.head(URL_CSRF_TOKEN)
        token = response.headers.get(CSRF_HEADER_NAME)
        if token is None:
            logger.warning("CSRF handshake response carried no %s header", CSRF_HEADER_NAME)
        return token

    def set_csrf_token(self, csrf_token: str | None) -> None:
        """
        Install the CSRF token sent with every later request.

        The token lives in this client's default headers only. Installing a
        new value overwrites the old one; installing None removes the header.

        Args:
            csrf_token: Token from fetch_csrf_token(), or None to clear it.
        """
        if csrf_token is None:
            self._http_client.headers.pop(CSRF_HEADER_NAME, None)
            logger.debug("CSRF token cleared")
            return

        self._http_client.headers[CSRF_HEADER_NAME] = csrf_token
        logger.debug("CSRF token installed")

    @property
    def csrf_token(self) -> str | None:
        """Currently installed CSRF token, if any."""
        return self._http_client.headers.get(CSRF_HEADER_NAME)

    async def refresh_csrf_token(self) -> str | None:
        """
        Run the full handshake: fetch a token and install it.

        If the fetch fails the previously installed token is kept.

        Returns:
            The token that is now installed (None if the server sent none).
        """
        csrf_token = await self.fetch_csrf_token()
        self.set_csrf_token(csrf_token)
        return csrf_token

    # -------------------------------------------------------------------------
    # Read Operations
    # -------------------------------------------------------------------------

    async def fetch_identity(self) -> Any:
        """Return the whole identity payload of the current user."""
        response = await self._http_client.get(URL_DATA)
        return response.json()

    async def fetch_active_devices(self) -> list[ActiveDevice]:
        """Return the active devices exactly as the server sent them."""
        response = await self._http_client.get(URL_ACTIVE_DEVICES)
        return response.json()

    async def fetch_player_states(self) -> list[PlayerState] | None:
        """
        Return the stored player states.

        The server wraps the list in an envelope; only its ``states`` field
        is returned. A body without that field yields None.
        """
        response = await self._http_client.get(URL_PLAYER_STATES)
        data = response.json()
        if not isinstance(data, dict):
            return None
        return data.get("states")

    # -------------------------------------------------------------------------
    # Mutating Operations
    #
    # These are triggers: the server reads the current playback itself, so
    # none of them sends a request body. The raw response is returned.
    # -------------------------------------------------------------------------

    async def store_player_state(self) -> httpx.Response:
        """Save what is currently playing into a new slot."""
        return await self._http_client.post(URL_PLAYER_STATES)

    async def update_player_state(self, slot_number: int | str) -> httpx.Response:
        """Overwrite an existing slot with what is currently playing."""
        return await self._http_client.put(player_state_path(slot_number))

    async def delete_player_state(self, slot_number: int | str) -> httpx.Response:
        """Remove a slot."""
        return await self._http_client.delete(player_state_path(slot_number))

    async def restore_from_player_state(
        self, slot_number: int | str, device_id: str | None = None
    ) -> httpx.Response:
        """
        Resume playback from a stored slot.

        Args:
            slot_number: Slot to restore.
            device_id: Device to play on. When omitted the server chooses.
        """
        return await self._http_client.post(restore_path(slot_number, device_id))

    async def delete_your_data(self) -> httpx.Response:
        """Delete everything the server stores for the current user."""
        return await self._http_client.delete(URL_DATA)
