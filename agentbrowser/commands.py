"""Command encoder: CLI tokens to daemon requests.

Each verb of the fixed vocabulary maps its trailing tokens onto request
fields. Unknown verbs encode to None; the caller decides how to report
them.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from agentbrowser.daemon.protocol import Request

logger = logging.getLogger(__name__)

# Runs of non-space characters and double-quoted strings; a quoted string
# may contain spaces.
_TOKEN_RE = re.compile(r'(?:[^\s"]+|"[^"]*")+')
_QUOTE_EDGES_RE = re.compile(r'^"|"$')
_DIGITS_RE = re.compile(r"^[0-9]+$")

NAVIGATE_VERBS = ("open", "goto", "navigate")
CLOSE_VERBS = ("close", "quit")


def _arg(rest: Sequence[str], index: int) -> Optional[str]:
    return rest[index] if len(rest) > index else None


def _normalize_url(url: Optional[str]) -> Optional[str]:
    """Prefix bare hosts with https://."""
    if url is None:
        return None
    return url if url.startswith("http") else f"https://{url}"


def _parse_snapshot_options(rest: Sequence[str]) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    i = 0
    while i < len(rest):
        arg = rest[i]
        if arg in ("-i", "--interactive"):
            options["interactive"] = True
        elif arg in ("-c", "--compact"):
            options["compact"] = True
        elif arg in ("-d", "--depth"):
            i += 1
            value = _arg(rest, i)
            if value is not None and _DIGITS_RE.match(value):
                options["maxDepth"] = int(value)
        elif arg in ("-s", "--selector"):
            i += 1
            options["selector"] = _arg(rest, i)
        i += 1
    return options


def _parse_get(rest: Sequence[str]) -> Optional[Request]:
    what = _arg(rest, 0)
    if what == "text":
        return Request("gettext", {"selector": _arg(rest, 1)})
    if what == "url":
        return Request("url")
    if what == "title":
        return Request("title")
    return None


def _parse_wait(rest: Sequence[str]) -> Request:
    target = _arg(rest, 0)
    if target is not None and _DIGITS_RE.match(target):
        return Request("wait", {"timeout": int(target)})
    return Request("wait", {"selector": target})


def parse_command(tokens: Sequence[str]) -> Optional[Request]:
    """
    Encode one tokenized command.

    Args:
        tokens: Verb followed by its arguments, e.g. ["fill", "@e3", "hello"]

    Returns:
        Request with a fresh id, or None if the verb is unknown
    """
    if not tokens:
        return None

    verb, rest = tokens[0], list(tokens[1:])

    if verb in NAVIGATE_VERBS:
        return Request("navigate", {"url": _normalize_url(_arg(rest, 0))})
    if verb == "click":
        return Request("click", {"selector": _arg(rest, 0)})
    if verb == "fill":
        return Request("fill", {"selector": _arg(rest, 0), "value": " ".join(rest[1:])})
    if verb == "type":
        return Request("type", {"selector": _arg(rest, 0), "text": " ".join(rest[1:])})
    if verb == "hover":
        return Request("hover", {"selector": _arg(rest, 0)})
    if verb == "snapshot":
        return Request("snapshot", _parse_snapshot_options(rest))
    if verb == "screenshot":
        return Request("screenshot", {"path": _arg(rest, 0)})
    if verb in CLOSE_VERBS:
        return Request("close")
    if verb == "get":
        return _parse_get(rest)
    if verb == "press":
        return Request("press", {"key": _arg(rest, 0)})
    if verb == "wait":
        return _parse_wait(rest)
    if verb in ("back", "forward", "reload"):
        return Request(verb)
    if verb == "eval":
        return Request("evaluate", {"script": " ".join(rest)})

    return None


def split_command_string(command: str) -> List[str]:
    """
    Split a command string into tokens, shell style.

    Double-quoted substrings stay together as one token and lose their
    surrounding quotes: 'fill "a b" c' -> ["fill", "a b", "c"].
    """
    return [_QUOTE_EDGES_RE.sub("", part) for part in _TOKEN_RE.findall(command)]


def parse_batch_commands(commands: Sequence[str]) -> List[Request]:
    """
    Encode every command string of a batch invocation.

    Strings that do not encode (unknown verb, empty) are dropped; the
    remaining requests keep their relative order.
    """
    requests: List[Request] = []
    for command in commands:
        request = parse_command(split_command_string(command))
        if request is None:
            logger.debug("Dropping unparseable batch command: %r", command)
            continue
        requests.append(request)
    return requests
