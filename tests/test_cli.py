"""
Unit tests for CLI module (cassette_client/cli.py).

Tests cover:
- Command parsing
- Output rendering for devices and player states
- CSRF handshake before mutating commands
- Exit codes for server errors and unreachable servers
"""

import os
from unittest.mock import patch

import httpx
import pytest
import respx
from httpx import Response

from cassette_client import cli
from cassette_client.api.client import CSRF_HEADER_NAME

BASE = "http://test-server:8080"


@pytest.fixture(autouse=True)
def clean_env():
    """Keep CASSETTE_* variables from the developer's shell out of the tests."""
    with patch.dict(os.environ, {}, clear=True):
        yield


def run(*argv: str) -> int:
    return cli.main(["--server", BASE, *argv])


def mock_handshake(token: str = "tok") -> respx.Route:
    return respx.head(f"{BASE}/api/csrfToken").mock(
        return_value=Response(200, headers={CSRF_HEADER_NAME: token})
    )


# ============================================================================
# PARSER TESTS
# ============================================================================


@pytest.mark.unit
def test_no_command_prints_help(capsys):
    """Test running without a command shows help and succeeds."""
    assert cli.main([]) == 0
    assert "usage: cassette" in capsys.readouterr().out


@pytest.mark.unit
def test_restore_parses_device():
    """Test restore takes a slot and an optional device."""
    args = cli.build_parser().parse_args(["restore", "3", "--device", "abc"])

    assert args.slot == 3
    assert args.device == "abc"
    assert args.func is cli.cmd_restore


@pytest.mark.unit
def test_slot_must_be_integer():
    """Test a non-numeric slot is rejected by the parser."""
    with pytest.raises(SystemExit):
        cli.build_parser().parse_args(["update", "first"])


@pytest.mark.unit
def test_invalid_log_level_exits(capsys):
    """Test a bad --log-level is reported instead of raising."""
    assert run("--log-level", "chatty", "states") == 2
    assert "log_level" in capsys.readouterr().err


# ============================================================================
# FORMATTING TESTS
# ============================================================================


@pytest.mark.unit
def test_format_devices_marks_active():
    """Test the active device is starred."""
    lines = cli.format_devices(
        [
            {"id": "d1", "name": "Kitchen", "active": False},
            {"id": "d2", "name": "Desk", "active": True},
        ]
    )

    assert lines[0].startswith("  Kitchen")
    assert lines[1].startswith("* Desk")
    assert lines[1].endswith("d2")


@pytest.mark.unit
def test_format_devices_empty():
    """Test an empty device list gets a friendly line."""
    assert cli.format_devices([]) == ["No active devices."]


@pytest.mark.unit
def test_format_states_numbers_slots():
    """Test states are listed with their slot numbers."""
    lines = cli.format_states([{"id": 1}, {"id": 2}])

    assert lines == ['[0] {"id": 1}', '[1] {"id": 2}']


@pytest.mark.unit
def test_format_states_none():
    """Test a missing states list is rendered as empty."""
    assert cli.format_states(None) == ["No stored player states."]


# ============================================================================
# READ COMMAND TESTS
# ============================================================================


@pytest.mark.unit
@respx.mock
def test_states_command(capsys):
    """Test states prints the unwrapped list."""
    respx.get(f"{BASE}/api/playerStates").mock(
        return_value=Response(200, json={"states": [{"id": 1}]})
    )

    assert run("states") == 0
    assert '[0] {"id": 1}' in capsys.readouterr().out


@pytest.mark.unit
@respx.mock
def test_devices_command(capsys):
    """Test devices prints one line per device."""
    respx.get(f"{BASE}/api/activeDevices").mock(
        return_value=Response(200, json=[{"id": "d1", "name": "Desk", "active": True}])
    )

    assert run("devices") == 0
    assert "* Desk" in capsys.readouterr().out


@pytest.mark.unit
@respx.mock
def test_whoami_command(capsys):
    """Test whoami prints the identity payload as JSON."""
    respx.get(f"{BASE}/api/you").mock(return_value=Response(200, json={"id": "user-1"}))

    assert run("whoami") == 0
    assert '"id": "user-1"' in capsys.readouterr().out


@pytest.mark.unit
@respx.mock
def test_token_command(capsys):
    """Test token prints the fetched token."""
    mock_handshake("tok123")

    assert run("token") == 0
    assert capsys.readouterr().out.strip() == "tok123"


# ============================================================================
# MUTATING COMMAND TESTS
# ============================================================================


@pytest.mark.unit
@respx.mock
def test_store_runs_handshake_first():
    """Test store fetches a token and sends it with the POST."""
    handshake = mock_handshake("tok")
    store = respx.post(f"{BASE}/api/playerStates").mock(return_value=Response(201))

    assert run("store") == 0
    assert handshake.called
    assert store.calls.last.request.headers[CSRF_HEADER_NAME] == "tok"


@pytest.mark.unit
@respx.mock
def test_restore_command_with_device(capsys):
    """Test restore forwards the device id."""
    mock_handshake()
    route = respx.post(host="test-server", path="/api/playerStates/2/restore").mock(
        return_value=Response(200)
    )

    assert run("restore", "2", "--device", "abc") == 0
    assert route.calls.last.request.url.query == b"deviceID=abc"
    assert "device abc" in capsys.readouterr().out


@pytest.mark.unit
@respx.mock
def test_update_and_delete_commands():
    """Test update and delete address the given slot."""
    mock_handshake()
    update = respx.put(f"{BASE}/api/playerStates/1").mock(return_value=Response(200))
    delete = respx.delete(f"{BASE}/api/playerStates/1").mock(return_value=Response(200))

    assert run("update", "1") == 0
    assert run("delete", "1") == 0
    assert update.called
    assert delete.called


@pytest.mark.unit
def test_delete_data_requires_confirmation(capsys):
    """Test delete-data refuses to run without --yes."""
    assert run("delete-data") == 1
    assert "--yes" in capsys.readouterr().err


@pytest.mark.unit
@respx.mock
def test_delete_data_with_confirmation():
    """Test delete-data --yes deletes the user's data."""
    mock_handshake()
    route = respx.delete(f"{BASE}/api/you").mock(return_value=Response(200))

    assert run("delete-data", "--yes") == 0
    assert route.called


# ============================================================================
# ERROR HANDLING TESTS
# ============================================================================


@pytest.mark.unit
@respx.mock
def test_server_error_exit_code(capsys):
    """Test an error status is reported with exit code 1."""
    respx.get(f"{BASE}/api/playerStates").mock(return_value=Response(500))

    assert run("states") == 1
    err = capsys.readouterr().err
    assert "500" in err
    assert "/api/playerStates" in err


@pytest.mark.unit
@respx.mock
def test_unreachable_server_exit_code(capsys):
    """Test a connection failure is reported with exit code 2."""
    respx.get(f"{BASE}/api/activeDevices").mock(side_effect=httpx.ConnectError)

    assert run("devices") == 2
    assert f"cannot reach {BASE}" in capsys.readouterr().err


@pytest.mark.unit
@respx.mock
def test_unreadable_body_exit_code(capsys):
    """Test a body that is not JSON is reported with exit code 1."""
    respx.get(f"{BASE}/api/you").mock(return_value=Response(200, text="<html>"))

    assert run("whoami") == 1
    assert "unexpected response" in capsys.readouterr().err


@pytest.mark.unit
@respx.mock(assert_all_called=False)
def test_failed_handshake_skips_mutation(respx_mock):
    """Test no mutating request is sent when the handshake fails."""
    respx_mock.head(f"{BASE}/api/csrfToken").mock(return_value=Response(403))
    store = respx_mock.post(f"{BASE}/api/playerStates").mock(return_value=Response(201))

    assert run("store") == 1
    assert not store.called


@pytest.mark.unit
@respx.mock
def test_cookie_option_sent_with_every_request():
    """Test --cookie makes the handshake and the mutation act as that session."""
    handshake = mock_handshake()
    store = respx.post(f"{BASE}/api/playerStates").mock(return_value=Response(201))

    assert run("--cookie", "cassette_session=abc", "store") == 0
    assert "cassette_session=abc" in handshake.calls.last.request.headers["cookie"]
    assert "cassette_session=abc" in store.calls.last.request.headers["cookie"]


@pytest.mark.unit
def test_malformed_cookie_exits(capsys):
    """Test a cookie string that is not name=value is reported instead of raising."""
    assert run("--cookie", "garbage", "states") == 2
    assert "session_cookie" in capsys.readouterr().err
