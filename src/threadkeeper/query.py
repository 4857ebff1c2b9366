"""Read-only views over a loaded entry list, plus display formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from threadkeeper.models import NoteEntry

NO_NOTES_MESSAGE = "No notes stored."
NO_MATCH_MESSAGE = "No notes matched the exact substring."


def no_kind_message(kind: str) -> str:
    return f"No notes found for kind {kind}."


def no_id_message(entry_id: str) -> str:
    return f"No note found for id {entry_id}."


def by_id(entries: Iterable[NoteEntry], entry_id: str) -> NoteEntry | None:
    """First entry with this id, in insertion order."""
    for entry in entries:
        if entry.id == entry_id:
            return entry
    return None


def by_kind(entries: Iterable[NoteEntry], kind: str) -> list[NoteEntry]:
    """Entries whose kind equals kind exactly."""
    return [e for e in entries if e.kind is not None and e.kind == kind]


def containing(entries: Iterable[NoteEntry], needle: str) -> list[NoteEntry]:
    """Entries whose text contains needle (case-sensitive)."""
    return [e for e in entries if needle in e.text]


def format_entry(entry: NoteEntry) -> str:
    lines = [f"id: {entry.id}", f"timestamp: {entry.timestamp}"]
    if entry.kind:
        lines.append(f"kind: {entry.kind}")
    if entry.file:
        lines.append(f"file: {entry.file}")
    lines.append("text:")
    lines.append(entry.text)
    return "\n".join(lines)


def format_entries(entries: Sequence[NoteEntry], empty_message: str) -> str:
    """Blank-line separated entries, or empty_message when there are none."""
    if not entries:
        return empty_message
    return "\n\n".join(format_entry(e) for e in entries)
