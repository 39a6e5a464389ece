"""Best-effort TCP port availability checks.

A probe opens a listener socket and closes it immediately.  Another process
can still grab the port between the probe and the real bind, so a positive
answer is a hint, not a guarantee.
"""

import logging
import os
import socket

from mcp_manager.constants import DEFAULT_HOST, MAX_PORT, MIN_PORT
from mcp_manager.outcome import Outcome, OutcomeKind

logger = logging.getLogger(__name__)


def probe_port(port: int, host: str = DEFAULT_HOST) -> bool:
    """Return *True* if *host*:*port* could be bound right now."""
    probe = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        if os.name == "posix":
            # Matches the real listener, so TIME_WAIT leftovers do not count as busy.
            probe.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        probe.bind((host, port))
        return True
    except OSError as e_bind:
        logger.debug("Port %s on %s is not available: %s", port, host, e_bind)
        return False
    finally:
        probe.close()


def validate_port(port: int, host: str = DEFAULT_HOST) -> Outcome:
    """Check a candidate server port.  Privileged ports are rejected unprobed."""
    if port < MIN_PORT or port > MAX_PORT:
        return Outcome.fail(
            OutcomeKind.INVALID_PORT,
            f"Port must be between {MIN_PORT} and {MAX_PORT}",
        )
    if probe_port(port, host):
        return Outcome.ok(f"Port {port} is available")
    return Outcome.fail(OutcomeKind.PORT_UNAVAILABLE, f"Port {port} is already in use")
