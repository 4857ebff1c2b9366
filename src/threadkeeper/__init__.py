"""Append-only verbatim note store: one JSONL file, read by full scan.

Layout:
    ~/.threadkeeper/
        notes.jsonl       # one entry per line, never rewritten
        config.toml       # optional

notes.jsonl line:
    {"id":"<uuid4>", "timestamp":"<iso8601>", "text":..., "file"?:..., "kind"?:...}

Entries are written only after explicit approval and are never edited,
merged, summarized or reordered.
"""

from threadkeeper.codec import decode_line, encode_entry, parse_line
from threadkeeper.config import ThreadkeeperConfig, load_config, resolve_store_path
from threadkeeper.errors import ApprovalDenied, MalformedRecordError, ThreadkeeperError
from threadkeeper.models import NoteEntry, new_entry
from threadkeeper.store import NoteStore

__all__ = [
    "ApprovalDenied",
    "MalformedRecordError",
    "NoteEntry",
    "NoteStore",
    "ThreadkeeperConfig",
    "ThreadkeeperError",
    "decode_line",
    "encode_entry",
    "load_config",
    "new_entry",
    "parse_line",
    "resolve_store_path",
]
