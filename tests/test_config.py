"""
Tests for config loading and validation.
"""

import configparser
import shutil
import tempfile
import unittest
from pathlib import Path

from agentbrowser.core.configs import (
    ClientConfig,
    get_client_config,
    load_client_config,
    load_env_values,
    load_raw_config,
)
from agentbrowser.errors import ConfigError


class TestClientConfig(unittest.TestCase):
    """Test cases for configuration helpers."""

    def setUp(self):
        """Set up test environment with temporary directories."""
        self.temp_dir = tempfile.mkdtemp()
        self.config_file = Path(self.temp_dir) / "config.cfg"
        self.env_file = Path(self.temp_dir) / ".env"

    def tearDown(self):
        """Clean up temporary files."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def _write_config(self, defaults: dict) -> None:
        cfg = configparser.ConfigParser()
        cfg["DEFAULT"] = defaults
        with open(self.config_file, "w") as handle:
            cfg.write(handle)

    def test_load_raw_config_lowercases_keys(self):
        self._write_config({"SESSION": "work", "TIMEOUT": "12"})
        raw = load_raw_config(self.config_file)
        self.assertEqual(raw, {"session": "work", "timeout": "12"})

    def test_load_raw_config_missing_file_returns_empty_dict(self):
        self.assertEqual(load_raw_config(self.config_file), {})

    def test_defaults(self):
        config = get_client_config({})
        self.assertEqual(config, ClientConfig())
        self.assertEqual(config.session, "default")
        self.assertEqual(config.timeout, 30.0)
        self.assertEqual(config.poll_attempts, 50)
        self.assertIsNone(config.daemon_path)

    def test_env_values_strip_prefix(self):
        values = load_env_values({"AGENT_BROWSER_SESSION": "s1", "HOME": "/root"})
        self.assertEqual(values, {"session": "s1"})

    def test_precedence_env_over_dotenv_over_file(self):
        self._write_config({"SESSION": "from-file", "TIMEOUT": "5", "STARTUP_ATTEMPTS": "7"})
        self.env_file.write_text("AGENT_BROWSER_SESSION=from-dotenv\nAGENT_BROWSER_TIMEOUT=9\n")

        config = load_client_config(
            {"AGENT_BROWSER_SESSION": "from-env"},
            config_path=self.config_file,
            env_file=self.env_file,
        )

        self.assertEqual(config.session, "from-env")
        self.assertEqual(config.timeout, 9.0)
        self.assertEqual(config.poll_attempts, 7)

    def test_daemon_path_and_debug(self):
        config = get_client_config({"daemon_path": "/opt/d/daemon.js", "debug": "yes"})
        self.assertEqual(config.daemon_path, Path("/opt/d/daemon.js"))
        self.assertTrue(config.debug)

    def test_invalid_numbers_raise(self):
        with self.assertRaises(ConfigError) as ctx:
            get_client_config({"timeout": "soon"})
        self.assertIn("timeout", str(ctx.exception))
        with self.assertRaises(ConfigError):
            get_client_config({"startup_attempts": "0"})
        with self.assertRaises(ConfigError):
            get_client_config({"startup_interval": "-1"})

    def test_invalid_session_raises(self):
        with self.assertRaises(ConfigError):
            get_client_config({"session": "../x"})

    def test_with_overrides(self):
        config = ClientConfig().with_overrides(session="cli", timeout=None)
        self.assertEqual(config.session, "cli")
        self.assertEqual(config.timeout, 30.0)
        with self.assertRaises(ConfigError):
            ClientConfig().with_overrides(timeout=0)
        with self.assertRaises(ConfigError):
            ClientConfig().with_overrides(session="a/b")


if __name__ == "__main__":
    unittest.main()
