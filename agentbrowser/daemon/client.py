"""Lightweight client for daemon communication.

Each exchange opens a fresh Unix socket connection, writes one request
line and reads back one response line. Only the stdlib socket module is
used so CLI startup stays fast.

Usage:
    client = DaemonClient(SessionAddress.for_session("default"))
    response = client.exchange(parse_command(["open", "example.com"]))
"""

import enum
import logging
import socket
import time
from typing import Optional, Union

from agentbrowser.daemon.protocol import (
    Request,
    Response,
    deserialize_response,
    serialize_request,
)
from agentbrowser.daemon.session import SessionAddress
from agentbrowser.errors import (
    ExchangeTimeoutError,
    ProtocolError,
    TransportError,
)

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
RECV_SIZE = 65536


class ExchangeState(enum.Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


class _Exchange:
    """
    Outcome holder for one request/response round trip.

    Whichever event settles first wins: a complete line, an error, the
    peer closing, or the deadline. The transition out of PENDING closes
    the socket, so it happens exactly once.
    """

    def __init__(self, sock: socket.socket):
        self._sock = sock
        self._buffer = b""
        self._outcome: Union[Response, TransportError, None] = None
        self.state = ExchangeState.PENDING

    @property
    def resolved(self) -> bool:
        return self.state is ExchangeState.RESOLVED

    def settle(self, outcome: Union[Response, TransportError]) -> bool:
        """Record the outcome if still pending. Returns True if this call won."""
        if self.state is ExchangeState.RESOLVED:
            return False
        self.state = ExchangeState.RESOLVED
        self._outcome = outcome
        self._sock.close()
        return True

    def on_data(self, chunk: bytes) -> None:
        self._buffer += chunk
        line, newline, _ = self._buffer.partition(b"\n")
        if not newline:
            return
        # Anything after the first line is ignored.
        try:
            self.settle(deserialize_response(line))
        except ProtocolError as e:
            self.settle(e)

    def on_close(self) -> None:
        remainder = self._buffer.strip()
        if remainder:
            try:
                self.settle(deserialize_response(remainder))
                return
            except ProtocolError:
                pass
        self.settle(TransportError("Connection closed"))

    def on_error(self, error: OSError) -> None:
        self.settle(TransportError(f"Connection error: {error}"))

    def on_timeout(self, timeout: float) -> None:
        self.settle(ExchangeTimeoutError(f"Timeout: no response after {timeout:g}s"))

    def result(self) -> Response:
        if isinstance(self._outcome, Response):
            return self._outcome
        if self._outcome is None:
            raise TransportError("Exchange did not complete")
        raise self._outcome


class DaemonClient:
    """
    Transport for a single daemon endpoint.

    No connection is reused; one request is in flight per connection.
    """

    def __init__(self, address: SessionAddress, timeout: float = DEFAULT_TIMEOUT):
        """
        Initialize client.

        Args:
            address: Session address holding the socket path
            timeout: Deadline for a whole exchange, in seconds
        """
        self.address = address
        self.timeout = timeout

    def exchange(self, request: Request, timeout: Optional[float] = None) -> Response:
        """
        Send one request and wait for its response.

        Raises:
            ExchangeTimeoutError: If no response arrives before the deadline
            ProtocolError: If the response line is not valid JSON
            TransportError: On connect/write/read failure or early close
        """
        timeout = self.timeout if timeout is None else timeout
        payload = serialize_request(request)
        started = time.monotonic()
        deadline = started + timeout

        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        exchange = _Exchange(sock)
        try:
            self._drive(exchange, sock, payload, deadline, timeout)
        finally:
            exchange.settle(TransportError("Exchange aborted"))

        logger.debug(
            "Exchange %s (%s) finished in %.3fs",
            request.id,
            request.action,
            time.monotonic() - started,
        )
        response = exchange.result()
        if response.id and response.id != request.id:
            logger.debug("Response id %s does not match request %s", response.id, request.id)
        return response

    def _drive(
        self,
        exchange: _Exchange,
        sock: socket.socket,
        payload: bytes,
        deadline: float,
        timeout: float,
    ) -> None:
        try:
            sock.settimeout(_remaining(deadline))
            sock.connect(str(self.address.socket_path))
            sock.sendall(payload)
            while not exchange.resolved:
                sock.settimeout(_remaining(deadline))
                chunk = sock.recv(RECV_SIZE)
                if not chunk:
                    exchange.on_close()
                    break
                exchange.on_data(chunk)
        except socket.timeout:
            exchange.on_timeout(timeout)
        except OSError as e:
            exchange.on_error(e)


def _remaining(deadline: float) -> float:
    """Seconds left before `deadline`; raises socket.timeout once it has passed."""
    left = deadline - time.monotonic()
    if left <= 0:
        raise socket.timeout("deadline exceeded")
    return left
