"""
Payload shapes returned by the Cassette API.

These are descriptive only. The client never validates responses against
them; every field may be missing and unknown fields are passed through.
"""

from __future__ import annotations

from typing import Any, TypedDict

# Slot contents are owned by the server and treated as opaque.
PlayerState = dict[str, Any]


class PlayerStatesEnvelope(TypedDict, total=False):
    """Body of ``GET /api/playerStates``."""

    states: list[PlayerState]


class ActiveDevice(TypedDict, total=False):
    """A playback device currently known to the streaming account."""

    id: str
    name: str
    active: bool
