"""Error taxonomy for the agent-browser client.

Every failure that can reach the top-level invocation derives from
AgentBrowserError so the CLI can turn it into a message and exit code 1.
"""


class AgentBrowserError(Exception):
    """Base class for all client-side failures."""


class ConfigError(AgentBrowserError):
    """Invalid configuration value or session name."""


class EncodingError(AgentBrowserError):
    """A command could not be encoded into a request."""


class DaemonUnavailableError(AgentBrowserError):
    """The daemon could not be found, launched, or reached in time."""


class TransportError(AgentBrowserError):
    """A request/response exchange with the daemon failed."""


class ExchangeTimeoutError(TransportError):
    """No response arrived before the exchange deadline."""


class ProtocolError(TransportError):
    """The daemon sent bytes that are not a valid JSON response."""
