"""
Read-only document types for the older on-disk formats.

These exist only to feed the migration chain. Readers take the parsed TOML
table and raise ValueError on anything that cannot be interpreted.

Version 1:
    [[tasks]]            records carrying their own status (default inbox)
    [[inbox]] ...        per-status task arrays (also accepted)
    [[projects]]         array; `name` aliases title, `description` aliases notes
    [contexts.<name>]    map keyed by context name

Version 2:
    [[inbox]] ...        per-status task arrays
    [projects.<id>]      map keyed by project id
    [contexts.<name>]    map keyed by context name
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ..models import NotaStatus, RecurrencePattern

# Statuses a legacy task array may be named after
TASK_SECTIONS: tuple[NotaStatus, ...] = (
    NotaStatus.INBOX,
    NotaStatus.NEXT_ACTION,
    NotaStatus.WAITING_FOR,
    NotaStatus.LATER,
    NotaStatus.CALENDAR,
    NotaStatus.SOMEDAY,
    NotaStatus.DONE,
    NotaStatus.REFERENCE,
    NotaStatus.TRASH,
)


@dataclass(frozen=True)
class TaskRecord:
    id: str
    title: str
    status: NotaStatus
    created_at: date
    updated_at: date
    project: str | None = None
    context: str | None = None
    notes: str | None = None
    start_date: date | None = None
    recurrence_pattern: RecurrencePattern | None = None
    recurrence_config: str | None = None


@dataclass(frozen=True)
class ProjectRecord:
    id: str
    title: str
    created_at: date
    updated_at: date
    notes: str | None = None
    project: str | None = None
    context: str | None = None
    start_date: date | None = None
    # Very old files carry a project status; it has no meaning any more.
    legacy_status: str | None = None


@dataclass(frozen=True)
class ContextRecord:
    name: str
    created_at: date
    updated_at: date
    title: str | None = None
    notes: str | None = None
    project: str | None = None
    context: str | None = None
    start_date: date | None = None


@dataclass(frozen=True)
class DocumentV1:
    tasks: tuple[TaskRecord, ...] = ()
    projects: tuple[ProjectRecord, ...] = ()
    contexts: tuple[ContextRecord, ...] = ()


@dataclass(frozen=True)
class DocumentV2:
    tasks: dict[NotaStatus, tuple[TaskRecord, ...]] = field(default_factory=dict)
    projects: tuple[ProjectRecord, ...] = ()  # ids filled in from the map keys
    contexts: tuple[ContextRecord, ...] = ()


# ============================================================================
# FIELD COERCION
# ============================================================================


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def optional_str(raw: dict[str, Any], *keys: str) -> str | None:
    """First present string value among `keys`."""
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if not isinstance(value, str):
            raise ValueError(f"field '{key}' must be a string, got {type(value).__name__}")
        return value
    return None


def optional_notes(raw: dict[str, Any], *keys: str) -> str | None:
    notes = optional_str(raw, *keys)
    return normalize_newlines(notes) if notes is not None else None


def required_str(raw: dict[str, Any], *keys: str, where: str) -> str:
    value = optional_str(raw, *keys)
    if value is None or not value.strip():
        raise ValueError(f"{where}: missing required field '{keys[0]}'")
    return value


def coerce_date(value: Any, key: str) -> date | None:
    """Accept both "YYYY-MM-DD" strings and native TOML dates."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as e:
            raise ValueError(f"field '{key}' is not a YYYY-MM-DD date: {value!r}") from e
    raise ValueError(f"field '{key}' must be a date, got {type(value).__name__}")


def record_dates(raw: dict[str, Any], today: date) -> tuple[date, date]:
    created = coerce_date(raw.get("created_at"), "created_at") or today
    updated = coerce_date(raw.get("updated_at"), "updated_at") or created
    return created, updated


def _as_table(value: Any, where: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{where}: expected a table, got {type(value).__name__}")
    return value


def _as_array(value: Any, where: str) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        raise ValueError(f"[{where}] must be an array of tables")
    return [_as_table(item, f"[[{where}]]") for item in value]


def parse_status_value(value: Any, where: str) -> NotaStatus:
    try:
        return NotaStatus(str(value).strip())
    except ValueError as e:
        raise ValueError(f"{where}: unknown status {value!r}") from e


# ============================================================================
# RECORD READERS
# ============================================================================


def parse_pattern_value(value: str | None, nota_id: str) -> RecurrencePattern | None:
    if value is None or not value.strip():
        return None
    try:
        return RecurrencePattern(value.strip())
    except ValueError as e:
        raise ValueError(f"nota '{nota_id}': unknown recurrence_pattern {value!r}") from e


def read_task(raw: dict[str, Any], status: NotaStatus, today: date) -> TaskRecord:
    nota_id = required_str(raw, "id", where=f"[[{status.value}]] record")
    created, updated = record_dates(raw, today)
    return TaskRecord(
        id=nota_id,
        title=required_str(raw, "title", where=f"task '{nota_id}'"),
        status=status,
        created_at=created,
        updated_at=updated,
        project=optional_str(raw, "project"),
        context=optional_str(raw, "context"),
        notes=optional_notes(raw, "notes"),
        start_date=coerce_date(raw.get("start_date"), "start_date"),
        recurrence_pattern=parse_pattern_value(optional_str(raw, "recurrence_pattern"), nota_id),
        recurrence_config=optional_str(raw, "recurrence_config"),
    )


def read_project(raw: dict[str, Any], today: date, key: str | None = None) -> ProjectRecord:
    project_id = key if key is not None else required_str(raw, "id", where="[[projects]] record")
    created, updated = record_dates(raw, today)
    return ProjectRecord(
        id=project_id,
        title=required_str(raw, "title", "name", where=f"project '{project_id}'"),
        created_at=created,
        updated_at=updated,
        notes=optional_notes(raw, "notes", "description"),
        project=optional_str(raw, "project"),
        context=optional_str(raw, "context"),
        start_date=coerce_date(raw.get("start_date"), "start_date"),
        legacy_status=optional_str(raw, "status"),
    )


def read_context(raw: dict[str, Any], today: date, key: str | None = None) -> ContextRecord:
    name = key if key is not None else required_str(raw, "name", "id", where="context record")
    created, updated = record_dates(raw, today)
    return ContextRecord(
        name=name,
        created_at=created,
        updated_at=updated,
        title=optional_str(raw, "title"),
        notes=optional_notes(raw, "notes", "description"),
        project=optional_str(raw, "project"),
        context=optional_str(raw, "context"),
        start_date=coerce_date(raw.get("start_date"), "start_date"),
    )


def _read_projects(value: Any, today: date) -> tuple[ProjectRecord, ...]:
    if value is None:
        return ()
    if isinstance(value, list):
        return tuple(read_project(raw, today) for raw in _as_array(value, "projects"))
    table = _as_table(value, "[projects]")
    return tuple(read_project(_as_table(raw, f"[projects.{key}]"), today, key=key) for key, raw in table.items())


def _read_contexts(value: Any, today: date) -> tuple[ContextRecord, ...]:
    if value is None:
        return ()
    if isinstance(value, list):
        return tuple(read_context(raw, today) for raw in _as_array(value, "contexts"))
    table = _as_table(value, "[contexts]")
    return tuple(read_context(_as_table(raw, f"[contexts.{key}]"), today, key=key) for key, raw in table.items())


def _read_task_sections(data: dict[str, Any], today: date) -> dict[NotaStatus, tuple[TaskRecord, ...]]:
    sections: dict[NotaStatus, tuple[TaskRecord, ...]] = {}
    for status in TASK_SECTIONS:
        if status.value in data:
            raws = _as_array(data[status.value], status.value)
            sections[status] = tuple(read_task(raw, status, today) for raw in raws)
    return sections


# ============================================================================
# DOCUMENT READERS
# ============================================================================


def read_v1(data: dict[str, Any], today: date) -> DocumentV1:
    tasks: list[TaskRecord] = []
    for raw in _as_array(data.get("tasks", []), "tasks"):
        status = parse_status_value(raw.get("status", NotaStatus.INBOX.value), "[[tasks]] record")
        tasks.append(read_task(raw, status, today))
    for records in _read_task_sections(data, today).values():
        tasks.extend(records)
    return DocumentV1(
        tasks=tuple(tasks),
        projects=_read_projects(data.get("projects"), today),
        contexts=_read_contexts(data.get("contexts"), today),
    )


def read_v2(data: dict[str, Any], today: date) -> DocumentV2:
    return DocumentV2(
        tasks=_read_task_sections(data, today),
        projects=_read_projects(data.get("projects"), today),
        contexts=_read_contexts(data.get("contexts"), today),
    )
