"""One NoteEntry <-> one line of JSON.

Line format (keys after ``text`` are omitted when absent):
    {"id": "<uuid4>", "timestamp": "<iso8601>", "text": "...", "file": "...", "kind": "..."}

Non-ASCII is written as ``\\uXXXX`` escapes, so any str (lone surrogates
included) encodes to plain ASCII and decodes back unchanged. JSON escapes
``\\n`` and ``\\r`` so every entry stays on a single line.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from threadkeeper.errors import MalformedRecordError
from threadkeeper.models import NoteEntry

_REQUIRED_FIELDS = ("id", "timestamp", "text")
_OPTIONAL_FIELDS = ("file", "kind")
_KNOWN_FIELDS = frozenset(_REQUIRED_FIELDS + _OPTIONAL_FIELDS)


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one line: either an entry or an error message."""

    entry: NoteEntry | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.entry is not None


def encode_entry(entry: NoteEntry) -> str:
    """Serialize an entry to a single line (no trailing newline)."""
    return json.dumps(entry.to_dict(), separators=(",", ":"))


def validate_record(obj: Any) -> bool:
    """True when obj has the shape of a stored entry."""
    if not isinstance(obj, dict):
        return False
    for name in _REQUIRED_FIELDS:
        if not isinstance(obj.get(name), str):
            return False
    for name in _OPTIONAL_FIELDS:
        if name in obj and not isinstance(obj[name], str):
            return False
    return True


def parse_line(line: str, line_number: int) -> ParseResult:
    """Parse and validate one line. Never raises on bad input."""
    try:
        obj = json.loads(line)
    except json.JSONDecodeError:
        return ParseResult(error=f"Invalid note store format at line {line_number}.")

    if not validate_record(obj):
        return ParseResult(error=f"Invalid note entry at line {line_number}.")

    return ParseResult(entry=NoteEntry(
        id=obj["id"],
        timestamp=obj["timestamp"],
        text=obj["text"],
        file=obj.get("file"),
        kind=obj.get("kind"),
        extra={k: v for k, v in obj.items() if k not in _KNOWN_FIELDS},
    ))


def decode_line(line: str, line_number: int = 1) -> NoteEntry:
    """Parse one line, raising MalformedRecordError on failure."""
    result = parse_line(line, line_number)
    if result.entry is None:
        raise MalformedRecordError(result.error or "Invalid note entry.", line_number)
    return result.entry
