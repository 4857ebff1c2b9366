"""Data model for stored notes."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

TEACH_REQUEST_KIND = "teach.request"
TEACH_NOTE_KIND = "teach.note"


def new_entry_id() -> str:
    """Generate a random entry ID (canonical uuid4 string)."""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(UTC).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


@dataclass(frozen=True)
class NoteEntry:
    """A single line of notes.jsonl."""

    id: str
    timestamp: str
    text: str
    file: str | None = None
    kind: str | None = None

    # Fields written by a newer version; carried through re-encoding untouched
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "text": self.text,
        }
        if self.file is not None:
            d["file"] = self.file
        if self.kind is not None:
            d["kind"] = self.kind
        for key, value in self.extra.items():
            d.setdefault(key, value)
        return d


def new_entry(
    text: str,
    *,
    file: str | None = None,
    timestamp: str | None = None,
    kind: str | None = None,
) -> NoteEntry:
    """Build a fresh entry; timestamp defaults to now."""
    return NoteEntry(
        id=new_entry_id(),
        timestamp=timestamp if timestamp is not None else utc_timestamp(),
        text=text,
        file=file,
        kind=kind,
    )
