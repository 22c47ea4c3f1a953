"""MCP server exposing the nota workflow as tools.

JSON-RPC 2.0 over stdio, newline-delimited or Content-Length framed.

Tools:
- inbox: capture a task, project or context
- list: filtered listing
- update: change fields of one nota
- change_status: move one or more notas to a new status
- empty_trash: permanently delete trashed notas

Domain failures come back as tool results with `isError: true` and a
message meant for the caller. Malformed requests are JSON-RPC errors.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

from .. import __version__
from ..errors import Result
from ..formatting import format_created, format_notas, format_purge, format_transition, format_updated
from ..service import NotaService

logger = logging.getLogger(__name__)

_STATUSES = (
    "inbox",
    "next_action",
    "waiting_for",
    "later",
    "calendar",
    "someday",
    "done",
    "reference",
    "trash",
    "project",
    "context",
)
_PATTERNS = ("daily", "weekly", "monthly", "yearly")
_UPDATE_FIELDS = ("title", "status", "project", "context", "notes", "start_date", "recurrence_config")


def _jsonrpc_error(code: int, message: str, *, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


def _jsonrpc_result(result: Any, *, request_id: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


class StdioTransport:
    """Frames JSON-RPC bodies on binary stdio streams.

    Accepts newline-delimited JSON as well as Content-Length framed bodies.
    Replies use whichever framing the client's first message used;
    Content-Length until then.
    """

    def __init__(self, stdin: Any, stdout: Any):
        self.stdin = stdin
        self.stdout = stdout
        self.use_lsp_framing: bool | None = None

    def _headers_length(self, line: bytes) -> int:
        """Consume a header block starting at `line`; return Content-Length or 0."""
        length = 0
        while line.strip():
            name, _, value = line.decode("ascii", errors="ignore").partition(":")
            if name.strip().lower() == "content-length" and value.strip().isdigit():
                length = int(value.strip())
            line = self.stdin.readline()
        return length

    def read_body(self) -> bytes | None:
        """Raw bytes of the next message. None at end of input."""
        line = self.stdin.readline()
        while line and not line.strip():
            line = self.stdin.readline()
        if not line:
            return None

        framed = line.lower().startswith(b"content-length:")
        if self.use_lsp_framing is None:
            self.use_lsp_framing = framed
        if not framed:
            return line

        length = self._headers_length(line)
        if length <= 0:
            return None
        return self.stdin.read(length)

    def write_message(self, message: dict[str, Any]) -> None:
        body = json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
        if self.use_lsp_framing is False:
            self.stdout.write(body + b"\n")
        else:
            self.stdout.write(b"Content-Length: %d\r\n\r\n" % len(body) + body)
        self.stdout.flush()


def _tool_defs() -> list[dict[str, Any]]:
    def tool(name: str, description: str, schema: dict[str, Any]) -> dict[str, Any]:
        return {"name": name, "description": description, "inputSchema": schema}

    status_prop = {"type": "string", "enum": list(_STATUSES)}
    date_prop = {"type": "string", "description": "YYYY-MM-DD"}

    return [
        tool(
            "inbox",
            "Capture anything needing attention. Use status 'inbox' for tasks, "
            "'project' for projects and 'context' for contexts.",
            {
                "type": "object",
                "required": ["id", "title", "status"],
                "properties": {
                    "id": {"type": "string", "description": "Any unique string, e.g. 'call-john'"},
                    "title": {"type": "string"},
                    "status": status_prop,
                    "project": {"type": "string", "description": "Id of a project nota"},
                    "context": {"type": "string", "description": "Id of a context nota"},
                    "notes": {"type": "string", "description": "Markdown"},
                    "start_date": {**date_prop, "description": "YYYY-MM-DD, required for calendar"},
                    "recurrence": {"type": "string", "enum": list(_PATTERNS)},
                    "recurrence_config": {
                        "type": "string",
                        "description": "weekly: 'Monday,Friday'; monthly: '1,15'; yearly: '1-1,12-25'",
                    },
                },
            },
        ),
        tool(
            "list",
            "List notas. All filters are optional and combine with AND.",
            {
                "type": "object",
                "properties": {
                    "status": status_prop,
                    "date": {**date_prop, "description": "Hide calendar items starting after this date"},
                    "exclude_notes": {"type": "boolean", "default": False},
                    "keyword": {"type": "string", "description": "Case-insensitive search in id, title and notes"},
                    "project": {"type": "string"},
                    "context": {"type": "string"},
                },
            },
        ),
        tool(
            "update",
            "Update fields of one nota. Use an empty string to clear an optional field.",
            {
                "type": "object",
                "required": ["id"],
                "properties": {
                    "id": {"type": "string"},
                    "title": {"type": "string"},
                    "status": status_prop,
                    "project": {"type": "string"},
                    "context": {"type": "string"},
                    "notes": {"type": "string"},
                    "start_date": date_prop,
                    "recurrence": {"type": "string", "enum": [*_PATTERNS, ""]},
                    "recurrence_config": {"type": "string"},
                },
            },
        ),
        tool(
            "change_status",
            "Move one or more notas to a new status. Each id succeeds or fails on its own. "
            "Marking a recurring nota done creates its next occurrence.",
            {
                "type": "object",
                "required": ["ids", "new_status"],
                "properties": {
                    "ids": {"type": "array", "items": {"type": "string"}, "minItems": 1},
                    "new_status": status_prop,
                    "start_date": {**date_prop, "description": "YYYY-MM-DD, required for calendar"},
                },
            },
        ),
        tool(
            "empty_trash",
            "Permanently delete trashed notas. Notas still referenced elsewhere are kept.",
            {"type": "object", "properties": {}},
        ),
    ]


def _as_tool_text(text: str, *, is_error: bool = False) -> dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def _optional_str(arguments: dict[str, Any], key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value


def _required_str(arguments: dict[str, Any], key: str) -> str:
    value = _optional_str(arguments, key)
    if value is None:
        raise ValueError(f"Missing required argument: {key}")
    return value


def _ids(arguments: dict[str, Any]) -> list[str]:
    value = arguments.get("ids")
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("ids must be an array of strings")
    return value


def _respond(result: Result, render) -> dict[str, Any]:
    if not result.ok:
        return _as_tool_text(result.error.message, is_error=True)
    text = render(result.value)
    if result.warning is not None:
        text += f"\n\nWarning: {result.warning.message}"
    return _as_tool_text(text)


def _handle_tool_call(service: NotaService, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    if name == "inbox":
        result = service.capture(
            id=_required_str(arguments, "id"),
            title=_required_str(arguments, "title"),
            status=_required_str(arguments, "status"),
            project=_optional_str(arguments, "project"),
            context=_optional_str(arguments, "context"),
            notes=_optional_str(arguments, "notes"),
            start_date=_optional_str(arguments, "start_date"),
            recurrence_pattern=_optional_str(arguments, "recurrence"),
            recurrence_config=_optional_str(arguments, "recurrence_config"),
        )
        return _respond(result, format_created)

    if name == "list":
        exclude_notes = arguments.get("exclude_notes") or False
        if not isinstance(exclude_notes, bool):
            raise ValueError("exclude_notes must be a boolean")
        result = service.query(
            status=_optional_str(arguments, "status"),
            date=_optional_str(arguments, "date"),
            keyword=_optional_str(arguments, "keyword"),
            project=_optional_str(arguments, "project"),
            context=_optional_str(arguments, "context"),
            exclude_notes=exclude_notes,
        )
        return _respond(result, format_notas)

    if name == "update":
        nota_id = _required_str(arguments, "id")
        partial = {key: _optional_str(arguments, key) for key in _UPDATE_FIELDS if arguments.get(key) is not None}
        if arguments.get("recurrence") is not None:
            partial["recurrence_pattern"] = _optional_str(arguments, "recurrence")
        return _respond(service.modify(nota_id, **partial), format_updated)

    if name == "change_status":
        result = service.transition(
            _ids(arguments),
            _required_str(arguments, "new_status"),
            start_date=_optional_str(arguments, "start_date"),
        )
        response = _respond(result, format_transition)
        if result.ok and not result.value.succeeded:
            response["isError"] = True
        return response

    if name == "empty_trash":
        return _respond(service.purge_trash(), format_purge)

    raise ValueError(f"Unknown tool: {name}")


DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class McpSession:
    """Protocol state of one client connection and its method table."""

    def __init__(self, service: NotaService):
        self.service = service
        self.initialized = False
        self._methods = {
            "initialize": self._initialize,
            "ping": lambda params: {},
            "shutdown": lambda params: None,
            "tools/list": lambda params: {"tools": _tool_defs()},
            "tools/call": self._call_tool,
        }

    def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        self.initialized = True
        requested = params.get("protocolVersion")
        if not isinstance(requested, str) or not requested.strip():
            requested = DEFAULT_PROTOCOL_VERSION
        return {
            "protocolVersion": requested.strip(),
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {"name": "gtdnota", "version": __version__},
        }

    def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self.initialized:
            raise ValueError("Server not initialized")
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(name, str):
            raise ValueError("tools/call requires name")
        if not isinstance(arguments, dict):
            raise ValueError("tools/call arguments must be an object")
        logger.debug("tools/call %s", name)
        return _handle_tool_call(self.service, name, arguments)

    def handle(self, message: Any) -> dict[str, Any] | None:
        """Response to one decoded message, or None for notifications."""
        if not isinstance(message, dict):
            return _jsonrpc_error(-32600, "Invalid Request: expected a JSON object", request_id=None)

        request_id = message.get("id")
        if request_id is None:
            return None

        method = message.get("method")
        handler = self._methods.get(method) if isinstance(method, str) else None
        if handler is None:
            return _jsonrpc_error(-32601, f"Method not found: {method}", request_id=request_id)

        params = message.get("params")
        if params is None:
            params = {}
        try:
            if not isinstance(params, dict):
                raise ValueError("params must be an object")
            return _jsonrpc_result(handler(params), request_id=request_id)
        except ValueError as e:
            return _jsonrpc_error(-32602, str(e), request_id=request_id)
        except Exception as e:
            logger.exception("Unhandled error in %s", method)
            return _jsonrpc_error(-32603, str(e), request_id=request_id)


def _is_exit(message: Any) -> bool:
    return isinstance(message, dict) and message.get("id") is None and message.get("method") == "exit"


def serve(service: NotaService, stdin: Any = None, stdout: Any = None) -> int:
    """Answer requests until end of input or an `exit` notification."""
    transport = StdioTransport(
        stdin if stdin is not None else sys.stdin.buffer,
        stdout if stdout is not None else sys.stdout.buffer,
    )
    session = McpSession(service)

    while True:
        body = transport.read_body()
        if body is None:
            return 0
        try:
            message = json.loads(body.decode("utf-8"))
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError
            transport.write_message(_jsonrpc_error(-32700, f"Parse error: {e}", request_id=None))
            continue

        if _is_exit(message):
            return 0
        response = session.handle(message)
        if response is not None:
            transport.write_message(response)
