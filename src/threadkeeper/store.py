"""Append-only note store backed by a single JSONL file.

    store = NoteStore(cfg.store_path)
    entry = store.add("use explicit types", kind="teach.note")
    entries = store.load_all()

Every read is a full scan of the file; nothing is cached between calls.
Writes only ever append one complete line. O_APPEND keeps single-line writes
below PIPE_BUF atomic on Linux; longer lines take flock(LOCK_EX) for the write.
"""

from __future__ import annotations

import fcntl
import logging
import os
import re
from pathlib import Path

from threadkeeper.codec import encode_entry, parse_line
from threadkeeper.errors import MalformedRecordError
from threadkeeper.models import NoteEntry, new_entry

logger = logging.getLogger("threadkeeper.store")

_PIPE_BUF = 4096
_DIR_MODE = 0o700

# Only LF / CRLF terminate a record. Split the raw bytes: text-mode reads and
# str.splitlines() also break on a lone CR, U+2028, U+0085 and friends.
_LINE_SPLIT = re.compile(rb"\r?\n")


def ensure_store_dir(path: Path) -> Path:
    """Create the directory holding path (and ancestors). Idempotent."""
    directory = path.parent
    directory.mkdir(mode=_DIR_MODE, parents=True, exist_ok=True)
    return directory


class NoteStore:
    """JSONL-backed append-only entry store."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def load_all(self) -> list[NoteEntry]:
        """Load every entry in file order.

        A missing file is an empty store. Any undecodable line aborts the
        whole load with MalformedRecordError; no partial list is returned.
        """
        try:
            content = self.path.read_bytes()
        except FileNotFoundError:
            return []

        entries: list[NoteEntry] = []
        for index, raw in enumerate(_LINE_SPLIT.split(content)):
            if raw == b"":
                continue
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                msg = f"Invalid note store encoding at line {index + 1}."
                logger.error("corrupt store %s: %s", self.path, msg)
                raise MalformedRecordError(msg, index + 1) from exc
            result = parse_line(line, index + 1)
            if result.entry is None:
                logger.error("corrupt store %s: %s", self.path, result.error)
                raise MalformedRecordError(result.error or "Invalid note entry.", index + 1)
            entries.append(result.entry)

        logger.debug("loaded %d entries from %s", len(entries), self.path)
        return entries

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def append(self, entry: NoteEntry) -> None:
        """Append one encoded entry as a new line, creating the file if needed."""
        ensure_store_dir(self.path)
        line = encode_entry(entry) + "\n"
        with self.path.open("a", encoding="utf-8", newline="\n") as f:
            if len(line.encode("utf-8")) >= _PIPE_BUF:
                fcntl.flock(f, fcntl.LOCK_EX)
            f.write(line)
            f.flush()
            os.fsync(f.fileno())
        logger.debug("appended entry %s to %s", entry.id, self.path)

    def add(
        self,
        text: str,
        *,
        file: str | None = None,
        timestamp: str | None = None,
        kind: str | None = None,
    ) -> NoteEntry:
        """Create a new entry for text and append it. Returns the stored entry."""
        entry = new_entry(text, file=file, timestamp=timestamp, kind=kind)
        self.append(entry)
        return entry
