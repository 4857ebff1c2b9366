"""Stdio MCP server for threadkeeper.

Tools:
    notes.store(text, approved, file?, timestamp?, kind?)   → "Stored note <id>."
    notes.list()                                           → all notes, in order
    notes.list_kind(kind)                                  → notes with that exact kind
    notes.get(id)                                          → one note
    notes.find(contains)                                   → notes whose text contains the substring
    teach.request(question, approved, file?, timestamp?)   → stored entry (kind=teach.request)
    teach.note(text, approved, file?, timestamp?)          → stored entry (kind=teach.note)
    questions.ask(question)                                → question, verbatim
    teach.ask(question)                                    → question, verbatim

Prompts:
    teach.scope(topic?)    → clarifying questions before a teaching answer

Write tools refuse unless `approved` is true. Nothing is ever summarized or rewritten.

Protocol: JSON-RPC 2.0 over stdin/stdout (MCP spec).
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from threadkeeper.errors import ApprovalDenied
from threadkeeper.models import TEACH_NOTE_KIND, TEACH_REQUEST_KIND
from threadkeeper.query import (
    NO_MATCH_MESSAGE,
    NO_NOTES_MESSAGE,
    by_id,
    by_kind,
    containing,
    format_entries,
    format_entry,
    no_id_message,
    no_kind_message,
)
from threadkeeper.store import NoteStore

if TYPE_CHECKING:
    from collections.abc import Callable

    from threadkeeper.config import ThreadkeeperConfig
    from threadkeeper.models import NoteEntry

logger = logging.getLogger("threadkeeper.mcp")

SERVER_NAME = "threadkeeper"
PROTOCOL_VERSION = "2024-11-05"

DEFAULT_INSTRUCTIONS = """\
threadkeeper stores the user's words verbatim.

- Never store anything the user has not explicitly approved. Show the exact
  text first, ask for confirmation, then call the store tool with approved=true.
- Never summarize, paraphrase, merge or reorder stored notes when reading them back.
- Use questions.ask / teach.ask to put a question to the user word for word.
"""

_TEACH_SCOPE_CHECKLIST = [
    "Before I explain, please confirm:",
    "- The specific file(s) or snippet to focus on",
    "- What you want to understand (behavior, structure, or intent)",
    "- Desired depth (overview or line-by-line)",
    "- Whether you want suggested changes or just explanation",
]


class InvalidArguments(ValueError):
    """Tool arguments are missing or of the wrong type."""


@dataclass
class ToolResult:
    text: str
    is_error: bool = False

    def to_content(self) -> dict[str, Any]:
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": self.is_error,
        }


def _package_version() -> str:
    from importlib.metadata import PackageNotFoundError, version

    try:
        return version("threadkeeper")
    except PackageNotFoundError:
        return "0.0.0"


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

_OPTIONAL_WRITE_PROPS: dict[str, Any] = {
    "file": {"type": "string", "description": "Source file or location the note refers to"},
    "timestamp": {"type": "string", "description": "ISO-8601 timestamp (defaults to now)"},
}

_APPROVED_PROP: dict[str, Any] = {
    "type": "boolean",
    "description": "True only after the user confirmed the exact text to store",
}


def _tool_defs() -> list[dict[str, Any]]:
    return [
        {
            "name": "notes.store",
            "description": "Store a user-approved note verbatim. Append-only.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "text": {"type": "string"},
                    "approved": _APPROVED_PROP,
                    **_OPTIONAL_WRITE_PROPS,
                    "kind": {"type": "string", "description": "Free-form category tag"},
                },
                "required": ["text", "approved"],
            },
        },
        {
            "name": "notes.list",
            "description": "List all stored notes in order, without summarizing.",
            "inputSchema": {"type": "object", "properties": {}},
        },
        {
            "name": "notes.list_kind",
            "description": "List stored notes with an exact kind match.",
            "inputSchema": {
                "type": "object",
                "properties": {"kind": {"type": "string"}},
                "required": ["kind"],
            },
        },
        {
            "name": "notes.get",
            "description": "Return a single note by id.",
            "inputSchema": {
                "type": "object",
                "properties": {"id": {"type": "string"}},
                "required": ["id"],
            },
        },
        {
            "name": "notes.find",
            "description": "Return notes whose text contains the exact substring (case-sensitive).",
            "inputSchema": {
                "type": "object",
                "properties": {"contains": {"type": "string"}},
                "required": ["contains"],
            },
        },
        {
            "name": "teach.request",
            "description": "Record a user-approved teaching request verbatim.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "question": {"type": "string"},
                    "approved": _APPROVED_PROP,
                    **_OPTIONAL_WRITE_PROPS,
                },
                "required": ["question", "approved"],
            },
        },
        {
            "name": "teach.note",
            "description": "Store a user-approved teaching note verbatim.",
            "inputSchema": {
                "type": "object",
                "properties": {
                    "text": {"type": "string"},
                    "approved": _APPROVED_PROP,
                    **_OPTIONAL_WRITE_PROPS,
                },
                "required": ["text", "approved"],
            },
        },
        {
            "name": "questions.ask",
            "description": "Return the provided question verbatim so the agent can ask the user.",
            "inputSchema": {
                "type": "object",
                "properties": {"question": {"type": "string"}},
                "required": ["question"],
            },
        },
        {
            "name": "teach.ask",
            "description": "Return the provided teaching question verbatim.",
            "inputSchema": {
                "type": "object",
                "properties": {"question": {"type": "string"}},
                "required": ["question"],
            },
        },
    ]


def _prompt_defs() -> list[dict[str, Any]]:
    return [
        {
            "name": "teach.scope",
            "description": "Prompt to clarify a teaching request before explaining.",
            "arguments": [
                {"name": "topic", "description": "What the user asked to be taught", "required": False},
            ],
        },
    ]


def teach_scope_text(topic: str | None = None) -> str:
    lead = f"You asked about {topic}." if topic else "You asked for teaching."
    return "\n".join([lead, "", *_TEACH_SCOPE_CHECKLIST])


# ---------------------------------------------------------------------------
# Argument helpers
# ---------------------------------------------------------------------------


def _require_str(args: dict[str, Any], name: str) -> str:
    value = args.get(name)
    if not isinstance(value, str):
        msg = f"Invalid arguments: '{name}' must be a string"
        raise InvalidArguments(msg)
    return value


def _optional_str(args: dict[str, Any], name: str) -> str | None:
    value = args.get(name)
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"Invalid arguments: '{name}' must be a string"
        raise InvalidArguments(msg)
    return value


def _require_approval(args: dict[str, Any]) -> None:
    approved = args.get("approved")
    if not isinstance(approved, bool):
        msg = "Invalid arguments: 'approved' must be a boolean"
        raise InvalidArguments(msg)
    if not approved:
        raise ApprovalDenied


# ---------------------------------------------------------------------------
# Server
# ---------------------------------------------------------------------------


class NoteServer:
    def __init__(self, store: NoteStore, instructions: str | None = None) -> None:
        self.store = store
        self.instructions = instructions if instructions is not None else DEFAULT_INSTRUCTIONS

    @classmethod
    def from_config(cls, cfg: ThreadkeeperConfig) -> NoteServer:
        return cls(NoteStore(cfg.store_path), instructions=cfg.read_instructions())

    # -- writes -------------------------------------------------------------

    def _store(self, text: str, args: dict[str, Any], kind: str | None) -> NoteEntry:
        return self.store.add(
            text,
            file=_optional_str(args, "file"),
            timestamp=_optional_str(args, "timestamp"),
            kind=kind,
        )

    def _call_notes_store(self, args: dict[str, Any]) -> ToolResult:
        text = _require_str(args, "text")
        kind = _optional_str(args, "kind")
        _require_approval(args)
        entry = self._store(text, args, kind)
        return ToolResult(f"Stored note {entry.id}.")

    def _call_teach_request(self, args: dict[str, Any]) -> ToolResult:
        question = _require_str(args, "question")
        _require_approval(args)
        entry = self._store(question, args, TEACH_REQUEST_KIND)
        return ToolResult(format_entry(entry))

    def _call_teach_note(self, args: dict[str, Any]) -> ToolResult:
        text = _require_str(args, "text")
        _require_approval(args)
        entry = self._store(text, args, TEACH_NOTE_KIND)
        return ToolResult(format_entry(entry))

    # -- reads --------------------------------------------------------------

    def _call_notes_list(self, args: dict[str, Any]) -> ToolResult:
        return ToolResult(format_entries(self.store.load_all(), NO_NOTES_MESSAGE))

    def _call_notes_list_kind(self, args: dict[str, Any]) -> ToolResult:
        kind = _require_str(args, "kind")
        matches = by_kind(self.store.load_all(), kind)
        return ToolResult(format_entries(matches, no_kind_message(kind)))

    def _call_notes_get(self, args: dict[str, Any]) -> ToolResult:
        entry_id = _require_str(args, "id")
        entry = by_id(self.store.load_all(), entry_id)
        if entry is None:
            return ToolResult(no_id_message(entry_id), is_error=True)
        return ToolResult(format_entry(entry))

    def _call_notes_find(self, args: dict[str, Any]) -> ToolResult:
        needle = _require_str(args, "contains")
        matches = containing(self.store.load_all(), needle)
        return ToolResult(format_entries(matches, NO_MATCH_MESSAGE))

    # -- echo ---------------------------------------------------------------

    def _call_echo(self, args: dict[str, Any]) -> ToolResult:
        return ToolResult(_require_str(args, "question"))

    def call_tool(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        dispatch: dict[str, Callable[[dict[str, Any]], ToolResult]] = {
            "notes.store": self._call_notes_store,
            "notes.list": self._call_notes_list,
            "notes.list_kind": self._call_notes_list_kind,
            "notes.get": self._call_notes_get,
            "notes.find": self._call_notes_find,
            "teach.request": self._call_teach_request,
            "teach.note": self._call_teach_note,
            "questions.ask": self._call_echo,
            "teach.ask": self._call_echo,
        }
        if name not in dispatch:
            msg = f"Unknown tool: {name}"
            raise ValueError(msg)
        return dispatch[name](arguments)

    def get_prompt(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        if name != "teach.scope":
            msg = f"Unknown prompt: {name}"
            raise ValueError(msg)
        topic = arguments.get("topic")
        text = teach_scope_text(topic if isinstance(topic, str) else None)
        return {
            "description": "Teaching scope questions",
            "messages": [{"role": "assistant", "content": {"type": "text", "text": text}}],
        }

    # -- JSON-RPC -----------------------------------------------------------

    def _tools_call(self, params: dict[str, Any]) -> dict[str, Any]:
        tool_name = params.get("name", "")
        arguments = params.get("arguments") or {}
        if not isinstance(tool_name, str) or not isinstance(arguments, dict):
            return ToolResult(
                "Invalid arguments: 'name' must be a string and 'arguments' an object",
                is_error=True,
            ).to_content()
        try:
            result = self.call_tool(tool_name, arguments)
        except (ApprovalDenied, InvalidArguments) as exc:
            result = ToolResult(str(exc), is_error=True)
        except Exception as exc:
            logger.exception("tool %s failed", tool_name)
            result = ToolResult(f"Error: {exc}", is_error=True)
        return result.to_content()

    def handle_message(self, msg: dict[str, Any]) -> dict[str, Any] | None:
        """Dispatch one JSON-RPC message. Returns the response, or None for notifications."""
        method = msg.get("method", "")
        msg_id = msg.get("id")
        params = msg.get("params")
        if params is None:
            params = {}

        if not isinstance(method, str):
            return _error(msg_id, -32600, "Invalid request: 'method' must be a string")
        if not isinstance(params, dict):
            return _error(msg_id, -32602, "Invalid params: 'params' must be an object")

        if method == "initialize":
            result: dict[str, Any] = {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {}, "prompts": {}},
                "serverInfo": {"name": SERVER_NAME, "version": _package_version()},
                "instructions": self.instructions,
            }
        elif method.startswith("notifications/"):
            return None
        elif method == "ping":
            result = {}
        elif method == "tools/list":
            result = {"tools": _tool_defs()}
        elif method == "tools/call":
            result = self._tools_call(params)
        elif method == "prompts/list":
            result = {"prompts": _prompt_defs()}
        elif method == "prompts/get":
            arguments = params.get("arguments") or {}
            if not isinstance(arguments, dict):
                return _error(msg_id, -32602, "Invalid params: 'arguments' must be an object")
            try:
                result = self.get_prompt(params.get("name", ""), arguments)
            except ValueError as exc:
                return _error(msg_id, -32602, str(exc))
        else:
            return _error(msg_id, -32601, f"Method not found: {method}")

        return {"jsonrpc": "2.0", "id": msg_id, "result": result}


def _error(msg_id: Any, code: int, message: str) -> dict[str, Any] | None:
    """JSON-RPC error response; notifications (no id) get no reply."""
    if msg_id is None:
        return None
    return {"jsonrpc": "2.0", "id": msg_id, "error": {"code": code, "message": message}}


async def _run_server(cfg: ThreadkeeperConfig) -> None:
    server = NoteServer.from_config(cfg)
    logger.info("serving store %s", cfg.store_path)
    reader = asyncio.StreamReader()
    loop = asyncio.get_running_loop()
    await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)

    writer_transport, _ = await loop.connect_write_pipe(
        asyncio.BaseProtocol, sys.stdout.buffer
    )

    def write_json(obj: Any) -> None:
        line = json.dumps(obj) + "\n"
        writer_transport.write(line.encode())

    while True:
        try:
            line = await reader.readline()
        except (asyncio.IncompleteReadError, EOFError):
            break
        if not line:
            break
        if not line.strip():
            continue
        try:
            msg = json.loads(line)
        except ValueError:
            logger.warning("skipping unparseable input line")
            continue
        if not isinstance(msg, dict):
            logger.warning("skipping non-object message")
            continue

        try:
            response = server.handle_message(msg)
        except Exception as exc:
            logger.exception("failed to handle %r", msg.get("method"))
            response = _error(msg.get("id"), -32603, f"Internal error: {exc}")
        if response is not None:
            write_json(response)


def run_server(cfg: ThreadkeeperConfig) -> None:
    """Entry point for `threadkeeper serve`."""
    asyncio.run(_run_server(cfg))
