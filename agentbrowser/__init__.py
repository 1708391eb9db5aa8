"""agent-browser: command-line client for the browser automation daemon."""

__version__ = "0.1.0"
