"""JSON-lines protocol for daemon IPC.

Exactly one request is written per connection and exactly one response
is read back. Both are single JSON objects terminated by a newline.

Request format:
    {
        "id": str,              # Random client-side token
        "action": str,          # navigate, click, fill, snapshot, ...
        ...                     # Action-specific fields (url, selector, ...)
    }

Response format:
    {
        "id": str,              # Echo of the request id
        "success": bool,
        "data": Any,            # Present on success
        "error": str,           # Present on failure
    }
"""

import json
import secrets
import string
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from agentbrowser.errors import ProtocolError

_ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 8


def new_request_id() -> str:
    """Return a random base-36 token used to correlate a request."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH))


@dataclass
class Request:
    """One encoded command."""

    action: str
    fields: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=new_request_id)

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to wire shape; fields set to None are omitted."""
        payload: Dict[str, Any] = {"id": self.id, "action": self.action}
        for key, value in self.fields.items():
            if value is not None:
                payload[key] = value
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Request":
        fields = {k: v for k, v in data.items() if k not in ("id", "action")}
        return cls(action=data["action"], fields=fields, id=str(data.get("id", "")))


@dataclass
class Response:
    """Daemon reply to a single request."""

    id: str
    success: bool
    data: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id, "success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload

    @classmethod
    def failure(cls, request_id: str, error: str) -> "Response":
        """Build a synthetic failed response for a request that never got one."""
        return cls(id=request_id, success=False, error=error)


def serialize_request(request: Request) -> bytes:
    """
    Serialize request to bytes for socket transmission.

    Returns:
        UTF-8 encoded JSON bytes terminated by a newline
    """
    return (json.dumps(request.to_dict(), separators=(",", ":")) + "\n").encode("utf-8")


def deserialize_request(data: bytes) -> Request:
    """
    Deserialize request from bytes.

    Raises:
        ProtocolError: If data is not a JSON object with an action
    """
    payload = _decode_object(data, "request")
    if not isinstance(payload.get("action"), str):
        raise ProtocolError("Request is missing 'action'")
    return Request.from_dict(payload)


def serialize_response(response: Response) -> bytes:
    """Serialize response to newline-terminated UTF-8 JSON bytes."""
    return (json.dumps(response.to_dict(), separators=(",", ":")) + "\n").encode("utf-8")


def deserialize_response(data: bytes) -> Response:
    """
    Deserialize response from bytes.

    A missing `success` key reads as a failure and a missing `id` as "".

    Raises:
        ProtocolError: If data is not a JSON object
    """
    payload = _decode_object(data, "response")
    error = payload.get("error")
    return Response(
        id=str(payload.get("id", "")),
        success=payload.get("success") is True,
        data=payload.get("data"),
        error=None if error is None else str(error),
    )


def _decode_object(data: bytes, kind: str) -> Dict[str, Any]:
    try:
        payload = json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Invalid JSON {kind}: {e}") from e
    if not isinstance(payload, dict):
        raise ProtocolError(f"Invalid JSON {kind}: expected an object")
    return payload
