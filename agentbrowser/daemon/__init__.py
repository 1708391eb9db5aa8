"""Client side of the daemon architecture.

The browser automation engine runs in a long-lived daemon, one per
session, listening on a Unix socket. This package finds or starts that
daemon and exchanges JSON-line requests with it:

- SessionAddress: socket and PID file paths for a session name
- DaemonSupervisor: liveness check, detached launch, readiness poll
- DaemonClient: one request/response exchange per connection
- BatchExecutor: ordered requests with stop-on-first-failure
"""

from agentbrowser.daemon.batch import BatchExecutor, BatchResult
from agentbrowser.daemon.client import DaemonClient
from agentbrowser.daemon.protocol import (
    Request,
    Response,
    serialize_request,
    deserialize_request,
    serialize_response,
    deserialize_response,
)
from agentbrowser.daemon.session import SessionAddress
from agentbrowser.daemon.supervisor import DaemonSupervisor, DetachedProcessLauncher

__all__ = [
    "BatchExecutor",
    "BatchResult",
    "DaemonClient",
    "DaemonSupervisor",
    "DetachedProcessLauncher",
    "Request",
    "Response",
    "SessionAddress",
    "serialize_request",
    "deserialize_request",
    "serialize_response",
    "deserialize_response",
]
