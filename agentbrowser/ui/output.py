"""
Terminal rendering of daemon responses.

Each successful response is classified once into a ResponseKind from the
fields of its data, and each kind has one renderer.
"""

import enum
import json
import sys
from typing import Any, Callable, Dict, Optional, TextIO

from agentbrowser.daemon.batch import BatchResult
from agentbrowser.daemon.protocol import Response


TEXT_COLOR_MAPPING = {
    "green": "32",
    "red": "31",
    "cyan": "36",
    "bold": "1",
    "dim": "2",
}

CHECK = "✓"
CROSS = "✗"
RULE = "─" * 37


def get_colored_text(text: str, color: str) -> str:
    """
    Wrap `text` in ANSI codes.

    Raises:
        ValueError: If the specified color is not supported
    """
    if color not in TEXT_COLOR_MAPPING:
        raise ValueError(
            f"Unsupported color: {color}. Available colors: {', '.join(TEXT_COLOR_MAPPING.keys())}"
        )
    return f"\x1b[{TEXT_COLOR_MAPPING[color]}m{text}\x1b[0m"


class ResponseKind(enum.Enum):
    NAVIGATION = "navigation"
    SNAPSHOT = "snapshot"
    TEXT = "text"
    URL = "url"
    TITLE = "title"
    RESULT = "result"
    CLOSED = "closed"
    DONE = "done"


def response_kind(data: Any) -> ResponseKind:
    """Classify response data by the fields it carries."""
    if not isinstance(data, dict):
        return ResponseKind.DONE
    if data.get("url") and data.get("title"):
        return ResponseKind.NAVIGATION
    if data.get("snapshot"):
        return ResponseKind.SNAPSHOT
    if "text" in data:
        return ResponseKind.TEXT
    if data.get("url"):
        return ResponseKind.URL
    if data.get("title"):
        return ResponseKind.TITLE
    if "result" in data:
        return ResponseKind.RESULT
    if data.get("closed"):
        return ResponseKind.CLOSED
    return ResponseKind.DONE


def _plain(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2)
    return json.dumps(value)


class ResponseFormatter:
    """Render responses as human-readable text, optionally colored."""

    def __init__(self, color: bool = True):
        self.color = color
        self._renderers: Dict[ResponseKind, Callable[[Dict[str, Any]], str]] = {
            ResponseKind.NAVIGATION: self._navigation,
            ResponseKind.SNAPSHOT: lambda data: _plain(data["snapshot"]),
            ResponseKind.TEXT: lambda data: _plain(data["text"]),
            ResponseKind.URL: lambda data: _plain(data["url"]),
            ResponseKind.TITLE: lambda data: _plain(data["title"]),
            ResponseKind.RESULT: lambda data: _plain(data["result"]),
            ResponseKind.CLOSED: lambda data: f"{self.paint(CHECK, 'green')} Browser closed",
            ResponseKind.DONE: lambda data: f"{self.paint(CHECK, 'green')} Done",
        }

    def paint(self, text: str, color: str) -> str:
        return get_colored_text(text, color) if self.color else text

    def error(self, message: Optional[str]) -> str:
        return f"{self.paint(CROSS + ' Error:', 'red')} {message}"

    def format(self, response: Response) -> str:
        if not response.success:
            return self.error(response.error)
        return self._renderers[response_kind(response.data)](response.data)

    def _navigation(self, data: Dict[str, Any]) -> str:
        title = self.paint(str(data["title"]), "bold")
        url = self.paint(f"  {data['url']}", "dim")
        return f"{self.paint(CHECK, 'green')} {title}\n{url}"

    def batch_header(self, action: str) -> str:
        return self.paint(f"[{action}]", "cyan")

    def batch_summary(self, result: BatchResult) -> str:
        return f"{self.paint(RULE, 'dim')}\nCompleted {result.completed}/{result.total} commands"


def format_response(response: Response, color: bool = True) -> str:
    """Render one response as human-readable text."""
    return ResponseFormatter(color=color).format(response)


class UIManager:
    """Prints formatted output for the CLI."""

    def __init__(
        self,
        json_output: bool = False,
        color: bool = True,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
    ):
        self.json_output = json_output
        self.formatter = ResponseFormatter(color=color)
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def emit_json(self, payload: Any) -> None:
        print(json.dumps(payload), file=self.stdout)

    def response(self, response: Response) -> None:
        """Print a single-command response."""
        if self.json_output:
            self.emit_json(response.to_dict())
        else:
            print(self.formatter.format(response), file=self.stdout)

    def batch_step(self, action: str, response: Response) -> None:
        """Print one batch step as it completes (human mode only)."""
        if self.json_output:
            return
        print(self.formatter.batch_header(action), file=self.stdout)
        print(self.formatter.format(response), file=self.stdout)
        print(file=self.stdout)

    def batch_result(self, result: BatchResult) -> None:
        if self.json_output:
            self.emit_json(result.to_dict())
        else:
            print(self.formatter.batch_summary(result), file=self.stdout)

    def failure(self, message: str) -> None:
        """Report a top-level failure."""
        if self.json_output:
            self.emit_json({"success": False, "error": message})
        else:
            print(self.formatter.error(message), file=self.stderr)

    def message(self, text: str, color: Optional[str] = None, err: bool = False) -> None:
        if color:
            text = self.formatter.paint(text, color)
        print(text, file=self.stderr if err else self.stdout)
