"""Tests for session addressing."""

import tempfile
import unittest
from pathlib import Path

from agentbrowser.daemon.session import SessionAddress, validate_session_name
from agentbrowser.errors import ConfigError


class TestSessionAddress(unittest.TestCase):

    def test_default_layout(self):
        address = SessionAddress.for_session("default", "/tmp/x")
        self.assertEqual(address.socket_path, Path("/tmp/x/agent-browser-default.sock"))
        self.assertEqual(address.pid_path, Path("/tmp/x/agent-browser-default.pid"))
        self.assertEqual(address.log_path, Path("/tmp/x/agent-browser-default.log"))

    def test_uses_system_temp_dir(self):
        address = SessionAddress.for_session("work")
        self.assertEqual(address.socket_path.parent, Path(tempfile.gettempdir()))

    def test_deterministic(self):
        self.assertEqual(SessionAddress.for_session("a"), SessionAddress.for_session("a"))

    def test_distinct_sessions_do_not_collide(self):
        a = SessionAddress.for_session("a")
        b = SessionAddress.for_session("b")
        paths = {a.socket_path, a.pid_path, b.socket_path, b.pid_path}
        self.assertEqual(len(paths), 4)

    def test_invalid_names(self):
        for name in ("", "../etc", "a/b", "a\\b", "..", "a\0b"):
            with self.assertRaises(ConfigError):
                validate_session_name(name)
        with self.assertRaises(ConfigError):
            SessionAddress.for_session("x/y")


if __name__ == "__main__":
    unittest.main()
