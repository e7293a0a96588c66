"""Cassette client: async access layer for the Cassette player-state service.

The service stores per-user snapshots of what is currently playing ("player
states"), restores them onto a playback device, and lets a user wipe their
stored data. This package wraps its small REST surface in a single typed
client and ships a ``cassette`` command line tool on top of it.

Version Management
------------------
``__version__`` is read from the installed package metadata at import time.
The single source of truth is the ``version`` field in ``pyproject.toml``.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from cassette_client.api import CassetteAPIClient
from cassette_client.config import Config

try:
    __version__: str = version("cassette-client")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "CassetteAPIClient",
    "Config",
    "__version__",
]
