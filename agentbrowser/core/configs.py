"""Configuration management for agent-browser.

Sources, highest precedence first:
1. CLI flags (applied by the caller as overrides)
2. Process environment (AGENT_BROWSER_*)
3. A .env file in the working directory
4. ~/.config/agent-browser/config.cfg ([DEFAULT] section)

Everything is resolved once into a ClientConfig that is passed explicitly
to the components; nothing below the CLI reads the environment.
"""

import configparser
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import dotenv_values

from agentbrowser.daemon.session import DEFAULT_SESSION, validate_session_name
from agentbrowser.errors import ConfigError

CONFIG_PATH = Path.home() / ".config" / "agent-browser" / "config.cfg"
ENV_FILE = ".env"
ENV_PREFIX = "AGENT_BROWSER_"


@dataclass(frozen=True)
class ClientConfig:
    session: str = DEFAULT_SESSION
    timeout: float = 30.0
    poll_interval: float = 0.1
    poll_attempts: int = 50
    daemon_path: Optional[Path] = None
    tmp_dir: Optional[Path] = None
    debug: bool = False

    def with_overrides(self, **overrides: Any) -> "ClientConfig":
        """Return a copy with every non-None override applied."""
        values = {k: v for k, v in overrides.items() if v is not None}
        if "session" in values:
            validate_session_name(values["session"])
        if values.get("timeout", 1) <= 0:
            raise ConfigError(f"Timeout must be positive, got {values['timeout']}")
        return replace(self, **values)


def load_raw_config(path: Path = CONFIG_PATH) -> Dict[str, str]:
    """
    Load configuration values from the config file.
    Values are returned with lowercase keys for convenience.
    """
    cfg = configparser.ConfigParser()
    data: Dict[str, str] = {}

    if path.exists():
        try:
            cfg.read(path)
        except configparser.Error as e:
            raise ConfigError(f"Cannot parse {path}: {e}") from e
        if "DEFAULT" in cfg:
            data.update({k.lower(): v for k, v in cfg["DEFAULT"].items()})

    return data


def load_env_values(
    environ: Mapping[str, str],
    env_file: Optional[Path] = None,
) -> Dict[str, str]:
    """
    Collect AGENT_BROWSER_* values from a .env file and the environment.

    Keys are returned lowercased without the prefix; the environment wins
    over the .env file.
    """
    merged: Dict[str, Optional[str]] = {}
    if env_file is not None and env_file.is_file():
        merged.update(dotenv_values(env_file))
    merged.update(environ)

    values: Dict[str, str] = {}
    for key, value in merged.items():
        if key.startswith(ENV_PREFIX) and value is not None:
            values[key[len(ENV_PREFIX):].lower()] = value
    return values


def _get_bool(raw: Mapping[str, str], key: str, default: bool = False) -> bool:
    value = raw.get(key)
    if value is None:
        return default
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_float(raw: Mapping[str, str], key: str, default: float) -> float:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        number = float(value)
    except ValueError:
        raise ConfigError(f"Invalid number for '{key}': {value!r}") from None
    if number <= 0:
        raise ConfigError(f"'{key}' must be positive, got {value!r}")
    return number


def _get_int(raw: Mapping[str, str], key: str, default: int) -> int:
    value = raw.get(key)
    if value is None or str(value).strip() == "":
        return default
    try:
        number = int(value)
    except ValueError:
        raise ConfigError(f"Invalid integer for '{key}': {value!r}") from None
    if number <= 0:
        raise ConfigError(f"'{key}' must be positive, got {value!r}")
    return number


def get_client_config(raw: Mapping[str, str]) -> ClientConfig:
    """
    Build a ClientConfig from merged raw values.

    Recognized keys: session, timeout, startup_interval, startup_attempts,
    daemon_path, tmp_dir, debug.

    Raises:
        ConfigError: On malformed numbers or an invalid session name
    """
    session = raw.get("session", "").strip() or DEFAULT_SESSION
    validate_session_name(session)

    daemon_path = raw.get("daemon_path", "").strip()
    tmp_dir = raw.get("tmp_dir", "").strip()

    return ClientConfig(
        session=session,
        timeout=_get_float(raw, "timeout", 30.0),
        poll_interval=_get_float(raw, "startup_interval", 0.1),
        poll_attempts=_get_int(raw, "startup_attempts", 50),
        daemon_path=Path(daemon_path).expanduser() if daemon_path else None,
        tmp_dir=Path(tmp_dir).expanduser() if tmp_dir else None,
        debug=_get_bool(raw, "debug"),
    )


def load_client_config(
    environ: Mapping[str, str],
    config_path: Path = CONFIG_PATH,
    env_file: Optional[Path] = None,
) -> ClientConfig:
    """Resolve the config file, .env file and environment into a ClientConfig."""
    raw = load_raw_config(config_path)
    raw.update(load_env_values(environ, env_file))
    return get_client_config(raw)
