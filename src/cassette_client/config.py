"""
Connection settings for talking to a Cassette server.

A Config says where the server is, how long the transport may wait, how
chatty logging should be, and which browser session to act as. The
Cassette server only answers ``/api`` requests that belong to a logged-in
session, so the CLI has to be handed the session cookie of a browser that
went through the login flow.

Each setting is looked up in order: command-line flag, ``CASSETTE_*``
environment variable, built-in default.

Example:
    config = Config.from_args(["--cookie", "cassette_session=MTY0..."])
    async with CassetteAPIClient(config) as client:
        ...
"""

from __future__ import annotations

import argparse
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass

# =============================================================================
# DEFAULT CONFIGURATION VALUES
# =============================================================================

# The Cassette server listens on 8080 unless told otherwise.
# Only the origin belongs here; every endpoint path already carries the /api root.
DEFAULT_SERVER_URL = "http://localhost:8080"

# Transport-level timeout in seconds, handed straight to httpx.
DEFAULT_TIMEOUT = 30.0

DEFAULT_LOG_LEVEL = "WARNING"

ENV_SERVER_URL = "CASSETTE_SERVER_URL"
ENV_TIMEOUT = "CASSETTE_REQUEST_TIMEOUT"
ENV_LOG_LEVEL = "CASSETTE_LOG_LEVEL"
ENV_SESSION_COOKIE = "CASSETTE_SESSION_COOKIE"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def parse_cookie_string(raw: str) -> dict[str, str]:
    """
    Split a ``Cookie`` header value into name/value pairs.

    Accepts exactly what a browser's devtools show for the request header,
    e.g. ``"cassette_session=abc; _gorilla_csrf=def"``. Blank segments are
    skipped.

    Raises:
        ValueError: If a segment has no ``=`` or an empty name.
    """
    cookies: dict[str, str] = {}
    for segment in raw.split(";"):
        segment = segment.strip()
        if not segment:
            continue
        name, sep, value = segment.partition("=")
        name = name.strip()
        if not sep or not name:
            raise ValueError(f"session_cookie segment {segment!r} is not name=value")
        cookies[name] = value.strip()
    return cookies


# =============================================================================
# CONFIGURATION DATACLASS
# =============================================================================


@dataclass(frozen=True)
class Config:
    """
    Where and how to reach a Cassette server.

    Attributes:
        server_url: Server origin without trailing slash or /api root.
        timeout: httpx transport timeout in seconds.
        log_level: Logging level name for the command line tool.
        session_cookie: ``Cookie`` header value of a logged-in browser
                        session, or None to start with an empty cookie jar.
    """

    server_url: str = DEFAULT_SERVER_URL
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL
    session_cookie: str | None = None

    def __post_init__(self) -> None:
        """
        Reject settings the client could not work with.

        Raises:
            ValueError: On an empty server_url, a non-positive timeout, an
                        unknown log_level or a malformed session_cookie.
        """
        if not self.server_url:
            raise ValueError("server_url cannot be empty")

        if self.timeout <= 0:
            raise ValueError("timeout must be a positive number")

        # Frozen dataclass: normalise through object.__setattr__
        level = self.log_level.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}")
        object.__setattr__(self, "log_level", level)

        if self.session_cookie is not None:
            parse_cookie_string(self.session_cookie)

    @property
    def logging_level(self) -> int:
        """Numeric logging level for ``logging.basicConfig``."""
        return logging.getLevelNamesMapping()[self.log_level]

    @property
    def cookies(self) -> dict[str, str]:
        """Session cookies to seed the client's cookie jar with."""
        if not self.session_cookie:
            return {}
        return parse_cookie_string(self.session_cookie)

    @staticmethod
    def add_arguments(parser: argparse.ArgumentParser) -> None:
        """
        Register the connection flags on ``parser``.

        Every flag defaults to None so from_namespace() can tell "not given"
        apart from an explicit value and fall back to the environment.
        """
        parser.add_argument(
            "--server",
            "-s",
            dest="server_url",
            default=None,
            help=f"Cassette server URL (default: {DEFAULT_SERVER_URL})",
        )
        parser.add_argument(
            "--timeout",
            "-t",
            type=float,
            default=None,
            help=f"Request timeout in seconds (default: {DEFAULT_TIMEOUT})",
        )
        parser.add_argument(
            "--log-level",
            dest="log_level",
            default=None,
            help=f"Logging level (default: {DEFAULT_LOG_LEVEL})",
        )
        parser.add_argument(
            "--cookie",
            "-c",
            dest="session_cookie",
            default=None,
            help=f"Cookie header of a logged-in browser session (or {ENV_SESSION_COOKIE})",
        )

    @classmethod
    def from_namespace(cls, parsed: argparse.Namespace) -> Config:
        """Build a Config from flags, falling back to CASSETTE_* variables, then defaults."""
        server_url = parsed.server_url or os.environ.get(ENV_SERVER_URL) or DEFAULT_SERVER_URL

        if parsed.timeout is not None:
            timeout = parsed.timeout
        elif ENV_TIMEOUT in os.environ:
            timeout = float(os.environ[ENV_TIMEOUT])
        else:
            timeout = DEFAULT_TIMEOUT

        return cls(
            server_url=server_url.rstrip("/"),
            timeout=timeout,
            log_level=parsed.log_level or os.environ.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL,
            session_cookie=parsed.session_cookie or os.environ.get(ENV_SESSION_COOKIE),
        )

    @classmethod
    def from_args(cls, args: Sequence[str] | None = None) -> Config:
        """Parse connection flags alone, for callers that have no parser of their own."""
        parser = argparse.ArgumentParser(prog="cassette")
        cls.add_arguments(parser)
        return cls.from_namespace(parser.parse_args(args))
