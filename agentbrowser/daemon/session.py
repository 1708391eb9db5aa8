"""Session addressing.

A session name maps deterministically to the daemon's socket path and
its PID file, both in the platform temp directory:

    <tmp>/agent-browser-<session>.sock
    <tmp>/agent-browser-<session>.pid

No I/O happens here; every client process computing the address for the
same session name gets the same paths.
"""

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from agentbrowser.errors import ConfigError

DEFAULT_SESSION = "default"
FILE_PREFIX = "agent-browser-"


def validate_session_name(name: str) -> str:
    """Return `name` unchanged, or raise ConfigError if it cannot name a file."""
    if not name:
        raise ConfigError("Session name must not be empty")
    if "/" in name or "\\" in name or "\0" in name or name in (".", ".."):
        raise ConfigError(f"Invalid session name: {name!r}")
    return name


@dataclass(frozen=True)
class SessionAddress:
    """Filesystem resources owned by the daemon of one session."""

    name: str
    socket_path: Path
    pid_path: Path
    log_path: Path

    @classmethod
    def for_session(
        cls,
        name: str = DEFAULT_SESSION,
        tmp_dir: Optional[Union[str, Path]] = None,
    ) -> "SessionAddress":
        """
        Compute the address for a session.

        Args:
            name: Session name
            tmp_dir: Base directory (default: tempfile.gettempdir())

        Returns:
            SessionAddress for the session
        """
        validate_session_name(name)
        base = Path(tmp_dir) if tmp_dir is not None else Path(tempfile.gettempdir())
        stem = f"{FILE_PREFIX}{name}"
        return cls(
            name=name,
            socket_path=base / f"{stem}.sock",
            pid_path=base / f"{stem}.pid",
            log_path=base / f"{stem}.log",
        )
