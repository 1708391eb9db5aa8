"""Daemon lifecycle: liveness check, detached launch, readiness poll.

The supervisor guarantees that before a command is sent, a daemon for the
active session is running and its socket exists. It never stops a daemon;
the daemon owns its lifetime (the `close` verb asks it to quit).

Known gap: the check-then-spawn sequence takes no cross-process lock, so
two clients starting at the same moment may both launch a daemon. The
daemon is expected to cope with a duplicate bind on the same socket.
"""

import logging
import os
import subprocess
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Sequence

from agentbrowser.daemon.session import SessionAddress
from agentbrowser.errors import DaemonUnavailableError

logger = logging.getLogger(__name__)

DAEMON_FLAG_ENV = "AGENT_BROWSER_DAEMON"
SESSION_ENV = "AGENT_BROWSER_SESSION"

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_POLL_ATTEMPTS = 50


class ProcessLauncher(Protocol):
    """Starts the daemon entry point so that it outlives the caller."""

    def launch(self, entry_point: Path, env: Mapping[str, str]) -> Any:
        ...


def build_daemon_command(entry_point: Path) -> List[str]:
    """Pick an interpreter for the entry point based on its suffix."""
    suffix = entry_point.suffix.lower()
    if suffix in (".js", ".mjs", ".cjs"):
        return ["node", str(entry_point)]
    if suffix == ".py":
        return [sys.executable, str(entry_point)]
    return [str(entry_point)]


class DetachedProcessLauncher:
    """
    Launch the daemon in its own session with no terminal attached.

    Output goes to `log_path` when given, otherwise to /dev/null.
    """

    def __init__(self, log_path: Optional[Path] = None):
        self.log_path = log_path

    def launch(self, entry_point: Path, env: Mapping[str, str]) -> subprocess.Popen:
        cmd = build_daemon_command(entry_point)
        logger.debug("Launching daemon: %s", " ".join(cmd))

        if self.log_path is None:
            return self._popen(cmd, env, subprocess.DEVNULL)

        with open(self.log_path, "ab") as log_file:
            return self._popen(cmd, env, log_file)

    def _popen(self, cmd: List[str], env: Mapping[str, str], output: Any) -> subprocess.Popen:
        if sys.platform == "win32":
            return subprocess.Popen(
                cmd,
                env=dict(env),
                stdin=subprocess.DEVNULL,
                stdout=output,
                stderr=output,
                creationflags=subprocess.CREATE_NEW_PROCESS_GROUP | subprocess.DETACHED_PROCESS,
            )
        return subprocess.Popen(
            cmd,
            env=dict(env),
            stdin=subprocess.DEVNULL,
            stdout=output,
            stderr=output,
            start_new_session=True,
        )


def default_search_dirs(script_path: Optional[str] = None, cwd: Optional[Path] = None) -> List[Path]:
    """
    Candidate daemon locations, in search order.

    Relative to the invoking script: ./daemon.js, ../dist/daemon.js;
    then relative to the working directory: ./dist/daemon.js.
    """
    script = Path(script_path if script_path is not None else sys.argv[0]).resolve()
    script_dir = script.parent
    cwd = cwd if cwd is not None else Path.cwd()
    return [
        script_dir / "daemon.js",
        script_dir.parent / "dist" / "daemon.js",
        cwd / "dist" / "daemon.js",
    ]


def read_pid(pid_path: Path) -> Optional[int]:
    """Return the PID recorded in `pid_path`, or None if missing or unparsable."""
    try:
        return int(pid_path.read_text().strip())
    except (OSError, ValueError):
        return None


def process_exists(pid: int) -> bool:
    """Probe a process with signal 0; any failure counts as not running."""
    if pid <= 0:
        return False
    try:
        os.kill(pid, 0)
    except OSError:
        return False
    return True


@dataclass
class DaemonStatus:
    """Snapshot of a session's daemon resources."""

    session: str
    pid: Optional[int]
    running: bool
    socket_exists: bool

    @property
    def ready(self) -> bool:
        return self.running and self.socket_exists

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session": self.session,
            "pid": self.pid,
            "running": self.running,
            "socket": self.socket_exists,
            "ready": self.ready,
        }


class DaemonSupervisor:
    """Ensure a daemon is reachable for one session."""

    def __init__(
        self,
        address: SessionAddress,
        launcher: ProcessLauncher,
        candidates: Sequence[Path],
        env: Optional[Mapping[str, str]] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_attempts: int = DEFAULT_POLL_ATTEMPTS,
        sleep: Callable[[float], None] = time.sleep,
        pid_probe: Callable[[int], bool] = process_exists,
    ):
        """
        Initialize supervisor.

        Args:
            address: Session address (socket and PID file)
            launcher: Starts the daemon detached
            candidates: Entry point paths tried in order
            env: Base environment for the daemon (default: os.environ)
            poll_interval: Seconds between readiness checks
            poll_attempts: Readiness checks before giving up
            sleep: Sleep function used while polling
            pid_probe: Existence check for a PID
        """
        self.address = address
        self.launcher = launcher
        self.candidates = list(candidates)
        self.env = dict(os.environ if env is None else env)
        self.poll_interval = poll_interval
        self.poll_attempts = poll_attempts
        self._sleep = sleep
        self._pid_probe = pid_probe

    def is_running(self) -> bool:
        """True if the PID file names a live process."""
        pid = read_pid(self.address.pid_path)
        return pid is not None and self._pid_probe(pid)

    def is_ready(self) -> bool:
        """True if the daemon process is alive and its socket exists."""
        return self.is_running() and self.address.socket_path.exists()

    def status(self) -> DaemonStatus:
        pid = read_pid(self.address.pid_path)
        return DaemonStatus(
            session=self.address.name,
            pid=pid,
            running=pid is not None and self._pid_probe(pid),
            socket_exists=self.address.socket_path.exists(),
        )

    def find_entry_point(self) -> Path:
        """
        Return the first existing candidate.

        Raises:
            DaemonUnavailableError: If no candidate exists
        """
        for candidate in self.candidates:
            if candidate.exists():
                return candidate
        looked = ", ".join(str(c) for c in self.candidates) or "(no candidates)"
        raise DaemonUnavailableError(f"Daemon not found. Looked in: {looked}")

    def ensure_running(self) -> bool:
        """
        Start the daemon unless it is already ready.

        Returns:
            True if a daemon was launched, False if one was already ready

        Raises:
            DaemonUnavailableError: If the entry point is missing, cannot
                be launched, or the socket never appears
        """
        if self.is_ready():
            logger.debug("Daemon for session %s already running", self.address.name)
            return False

        entry_point = self.find_entry_point()
        env = dict(self.env)
        env[DAEMON_FLAG_ENV] = "1"
        env[SESSION_ENV] = self.address.name

        try:
            self.launcher.launch(entry_point, env)
        except OSError as e:
            raise DaemonUnavailableError(f"Failed to launch daemon {entry_point}: {e}") from e

        for attempt in range(self.poll_attempts):
            if self.address.socket_path.exists():
                logger.debug(
                    "Daemon socket %s ready after %d checks",
                    self.address.socket_path,
                    attempt + 1,
                )
                return True
            self._sleep(self.poll_interval)

        raise DaemonUnavailableError(
            f"Failed to start daemon: {self.address.socket_path} did not appear "
            f"within {self.poll_attempts * self.poll_interval:g}s"
        )
