"""
TOML encoding and decoding of the whole nota collection.

Current document shape (format_version = 3): one array of tables per status,
named after the status, written in canonical order and only when non-empty.

    format_version = 3

    [[inbox]]
    id = "call-bob"
    title = "Call Bob"
    status = "inbox"
    created_at = "2025-03-01"
    updated_at = "2025-03-01"

    [[project]]
    id = "garden"
    ...

Older versions are read through the migration chain and always written back
as version 3.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Iterable

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

import tomli_w

from ..errors import ErrorCode, Result, fail
from ..models import STATUS_ORDER, Nota, NotaStatus
from ..store import EntityStore
from .legacy import (
    coerce_date,
    optional_notes,
    optional_str,
    parse_pattern_value,
    parse_status_value,
    read_v1,
    read_v2,
    record_dates,
    required_str,
)
from .migrate import CURRENT_VERSION, DocumentV3, migrate_v1_to_v2, migrate_v2_to_v3

_STATUS_KEYS = {status.value: status for status in NotaStatus}


def _read_nota(raw: Any, status: NotaStatus, today: date, where: str) -> Nota:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected a table, got {type(raw).__name__}")
    nota_id = required_str(raw, "id", where=f"{where} record")
    created, updated = record_dates(raw, today)
    return Nota(
        id=nota_id,
        title=required_str(raw, "title", where=f"nota '{nota_id}'"),
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


def read_v3(data: dict[str, Any], today: date) -> DocumentV3:
    """Read status sections in document order.

    The section a record sits in decides its status. A flat `[[notas]]` array,
    written by some early builds, is also accepted; there each record's own
    `status` field is used.
    """
    notas: list[Nota] = []
    for key, value in data.items():
        if key in _STATUS_KEYS:
            if not isinstance(value, list):
                raise ValueError(f"[{key}] must be an array of tables")
            notas.extend(_read_nota(raw, _STATUS_KEYS[key], today, f"[[{key}]]") for raw in value)
        elif key == "notas":
            if not isinstance(value, list):
                raise ValueError("[notas] must be an array of tables")
            for raw in value:
                status_value = raw.get("status") if isinstance(raw, dict) else None
                status = parse_status_value(status_value or NotaStatus.INBOX.value, "[[notas]] record")
                notas.append(_read_nota(raw, status, today, "[[notas]]"))
    return DocumentV3(notas=tuple(notas), source_version=CURRENT_VERSION)


def _format_version(data: dict[str, Any]) -> int:
    if "format_version" not in data:
        # unversioned files from builds that already wrote per-kind sections
        if any(key in data for key in ("project", "context", "notas")):
            return CURRENT_VERSION
        return 1
    version = data["format_version"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise ValueError(f"format_version must be an integer, got {version!r}")
    return max(version, 1)


def load_document(data: bytes, today: date | None = None) -> Result[DocumentV3]:
    """Parse raw file bytes and migrate them to the current document shape.

    `today` fills in timestamps missing from legacy records.
    """
    today = today or date.today()
    try:
        text = data.decode("utf-8")
        if not text.strip():
            return Result.success(DocumentV3())
        raw = tomllib.loads(text)
        version = _format_version(raw)
        if version > CURRENT_VERSION:
            return Result.failure(
                fail(
                    ErrorCode.INVALID_FORMAT,
                    f"Unsupported format_version {version}: this build reads versions 1 to {CURRENT_VERSION}",
                )
            )
        if version == 1:
            return Result.success(migrate_v2_to_v3(migrate_v1_to_v2(read_v1(raw, today)), source_version=1))
        if version == 2:
            return Result.success(migrate_v2_to_v3(read_v2(raw, today)))
        return Result.success(read_v3(raw, today))
    except ValueError as e:
        # TOMLDecodeError and UnicodeDecodeError are ValueErrors too
        return Result.failure(fail(ErrorCode.INVALID_FORMAT, f"Failed to parse data file: {e}"))


def decode(data: bytes, today: date | None = None) -> Result[EntityStore]:
    """Build an EntityStore from file bytes. Empty input gives an empty store."""
    loaded = load_document(data, today)
    if not loaded.ok:
        return Result.failure(loaded.error)
    store = EntityStore()
    for nota in loaded.value.notas:
        error = store.insert(nota)
        if error is not None:
            return Result.failure(error)
    return Result.success(store)


def nota_to_record(nota: Nota) -> dict[str, Any]:
    """Flat TOML table for one nota; optional fields are omitted when unset."""
    record: dict[str, Any] = {"id": nota.id, "title": nota.title, "status": nota.status.value}
    if nota.project is not None:
        record["project"] = nota.project
    if nota.context is not None:
        record["context"] = nota.context
    if nota.notes is not None:
        record["notes"] = nota.notes
    if nota.start_date is not None:
        record["start_date"] = nota.start_date.isoformat()
    record["created_at"] = nota.created_at.isoformat()
    record["updated_at"] = nota.updated_at.isoformat()
    if nota.recurrence_pattern is not None:
        record["recurrence_pattern"] = nota.recurrence_pattern.value
    if nota.recurrence_config is not None:
        record["recurrence_config"] = nota.recurrence_config
    return record


def encode(notas: Iterable[Nota], section_order: Iterable[NotaStatus] = STATUS_ORDER) -> bytes:
    """Serialize notas as a version 3 document.

    Statuses left out of `section_order` are appended in canonical order so no
    nota is ever dropped.
    """
    sections: dict[NotaStatus, list[dict[str, Any]]] = {}
    for nota in notas:
        sections.setdefault(nota.status, []).append(nota_to_record(nota))

    order = list(dict.fromkeys(section_order))
    order.extend(status for status in STATUS_ORDER if status not in order)

    doc: dict[str, Any] = {"format_version": CURRENT_VERSION}
    for status in order:
        if sections.get(status):
            doc[status.value] = sections[status]
    return tomli_w.dumps(doc, multiline_strings=True).encode("utf-8")
