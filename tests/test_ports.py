"""Tests for port probing and validation."""

from __future__ import annotations

import socket
from unittest.mock import patch

from conftest import free_port

from mcp_manager.outcome import OutcomeKind
from mcp_manager.runtime.ports import probe_port, validate_port


def _listener() -> socket.socket:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    s.listen(1)
    return s


class TestValidatePort:
    def test_privileged_port_rejected_without_bind(self) -> None:
        with patch("mcp_manager.runtime.ports.socket.socket") as mock_socket:
            outcome = validate_port(80)
        mock_socket.assert_not_called()
        assert not outcome.success
        assert outcome.kind is OutcomeKind.INVALID_PORT
        assert outcome.message == "Port must be between 1024 and 65535"

    def test_out_of_range_rejected(self) -> None:
        assert validate_port(70000).kind is OutcomeKind.INVALID_PORT

    def test_bound_port_unavailable(self) -> None:
        s = _listener()
        try:
            port = s.getsockname()[1]
            outcome = validate_port(port)
        finally:
            s.close()
        assert outcome.kind is OutcomeKind.PORT_UNAVAILABLE
        assert outcome.message == f"Port {port} is already in use"

    def test_free_port_available_and_released(self) -> None:
        port = free_port()
        outcome = validate_port(port)
        assert outcome.success
        assert outcome.message == f"Port {port} is available"
        s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            s.bind(("127.0.0.1", port))
        finally:
            s.close()


class TestProbePort:
    def test_probe(self) -> None:
        s = _listener()
        try:
            assert probe_port(s.getsockname()[1]) is False
        finally:
            s.close()
        assert probe_port(free_port()) is True
