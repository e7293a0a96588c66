"""
Command-line interface for the Cassette client.

Provides one subcommand per API operation:
- whoami: Show the identity payload of the current user
- devices: List active playback devices
- states: List stored player states
- store / update / delete / restore: Manage player-state slots
- delete-data: Delete everything the server stores for the user
- token: Print a fresh CSRF token

Mutating commands run the CSRF handshake first.

Usage:
    cassette states
    cassette restore 2 --device 1a2b3c
    cassette --server http://cassette.local:8080 devices
    cassette --cookie "$(cat session.txt)" store

Environment Variables:
    CASSETTE_SERVER_URL: Server URL (default: http://localhost:8080)
    CASSETTE_REQUEST_TIMEOUT: Request timeout in seconds (default: 30)
    CASSETTE_LOG_LEVEL: Logging level (default: WARNING)
    CASSETTE_SESSION_COOKIE: Cookie header of a logged-in browser session
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

import httpx

from cassette_client.api import CassetteAPIClient
from cassette_client.config import Config

logger = logging.getLogger(__name__)

Command = Callable[[CassetteAPIClient, argparse.Namespace], Awaitable[None]]


# ============================================================================
# OUTPUT HELPERS
# ============================================================================


def format_devices(devices: Sequence[Any]) -> list[str]:
    """Render active devices as one line each, marking the active one."""
    if not devices:
        return ["No active devices."]

    lines = []
    for device in devices:
        if not isinstance(device, dict):
            lines.append(f"  {device}")
            continue
        marker = "*" if device.get("active") else " "
        lines.append(f"{marker} {device.get('name', '?'):<30} {device.get('id', '')}")
    return lines


def format_states(states: Sequence[Any] | None) -> list[str]:
    """Render player states with the slot number they are addressed by."""
    if not states:
        return ["No stored player states."]
    return [f"[{slot}] {json.dumps(state, sort_keys=True)}" for slot, state in enumerate(states)]


# ============================================================================
# COMMANDS
# ============================================================================


async def cmd_whoami(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Print the identity payload."""
    print(json.dumps(await client.fetch_identity(), indent=2, sort_keys=True))


async def cmd_devices(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Print active devices."""
    for line in format_devices(await client.fetch_active_devices()):
        print(line)


async def cmd_states(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Print stored player states."""
    for line in format_states(await client.fetch_player_states()):
        print(line)


async def cmd_token(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Print a freshly issued CSRF token."""
    token = await client.fetch_csrf_token()
    print(token if token is not None else "(no token issued)")


async def cmd_store(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Store the current playback in a new slot."""
    await client.refresh_csrf_token()
    await client.store_player_state()
    print("Stored current player state.")


async def cmd_update(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Overwrite a slot with the current playback."""
    await client.refresh_csrf_token()
    await client.update_player_state(args.slot)
    print(f"Updated slot {args.slot}.")


async def cmd_delete(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Delete a slot."""
    await client.refresh_csrf_token()
    await client.delete_player_state(args.slot)
    print(f"Deleted slot {args.slot}.")


async def cmd_restore(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Restore playback from a slot."""
    await client.refresh_csrf_token()
    await client.restore_from_player_state(args.slot, args.device)
    target = f"device {args.device}" if args.device else "the active device"
    print(f"Restored slot {args.slot} on {target}.")


async def cmd_delete_data(client: CassetteAPIClient, args: argparse.Namespace) -> None:
    """Delete all stored user data."""
    await client.refresh_csrf_token()
    await client.delete_your_data()
    print("All stored data deleted.")


async def run_command(config: Config, command: Command, args: argparse.Namespace) -> None:
    """Open a client for the configured server and run one command with it."""
    async with CassetteAPIClient(config) as client:
        await command(client, args)


# ============================================================================
# ARGUMENT PARSING
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="cassette",
        description="Save and restore what you are listening to with a Cassette server",
    )
    Config.add_arguments(parser)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("whoami", help="Show your stored identity data").set_defaults(
        func=cmd_whoami
    )
    subparsers.add_parser("devices", help="List active playback devices").set_defaults(
        func=cmd_devices
    )
    subparsers.add_parser("states", help="List stored player states").set_defaults(
        func=cmd_states
    )
    subparsers.add_parser("token", help="Fetch and print a CSRF token").set_defaults(
        func=cmd_token
    )
    subparsers.add_parser(
        "store", help="Store what is currently playing in a new slot"
    ).set_defaults(func=cmd_store)

    update_parser = subparsers.add_parser(
        "update", help="Overwrite a slot with what is currently playing"
    )
    update_parser.add_argument("slot", type=int, help="Slot number")
    update_parser.set_defaults(func=cmd_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a slot")
    delete_parser.add_argument("slot", type=int, help="Slot number")
    delete_parser.set_defaults(func=cmd_delete)

    restore_parser = subparsers.add_parser("restore", help="Resume playback from a slot")
    restore_parser.add_argument("slot", type=int, help="Slot number")
    restore_parser.add_argument(
        "--device",
        "-d",
        default=None,
        help="Device id to play on (default: let the server pick)",
    )
    restore_parser.set_defaults(func=cmd_restore)

    delete_data_parser = subparsers.add_parser(
        "delete-data",
        help="Delete all data the server stores for you",
        description="Delete all player states and user data. Requires --yes.",
    )
    delete_data_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm that all stored data should be deleted",
    )
    delete_data_parser.set_defaults(func=cmd_delete_data)

    return parser


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Returns:
        Exit code: 0 on success, 1 when the server rejected the request
        or sent an unreadable body, 2 when it could not be reached,
        130 on Ctrl+C.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        config = Config.from_namespace(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.logging_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "delete-data" and not args.yes:
        print("Refusing to delete all data without --yes.", file=sys.stderr)
        return 1

    try:
        asyncio.run(run_command(config, args.func, args))
    except KeyboardInterrupt:
        return 130
    except httpx.HTTPStatusError as e:
        logger.debug("Request rejected", exc_info=True)
        print(
            f"Error: server answered {e.response.status_code} for {e.request.method} "
            f"{e.request.url}",
            file=sys.stderr,
        )
        return 1
    except httpx.HTTPError as e:
        print(f"Error: cannot reach {config.server_url}: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        # json.JSONDecodeError from a body that is not JSON
        print(f"Error: unexpected response from server: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
