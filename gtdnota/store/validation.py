"""
Stateless validation checks run against an EntityStore.

Parsers return a `Result` carrying the parsed value; checks return a
`NotaError` or None. Messages are shown verbatim to tool callers, so they
name the offending value and say how to fix it.
"""

from __future__ import annotations

import re
from datetime import date
from typing import Iterable

from ..errors import ErrorCode, NotaError, Result, fail
from ..models import Kind, Nota, NotaStatus, RecurrencePattern, kind_of
from ..workflow.recurrence import CONFIG_EXAMPLES, invalid_config_item
from .store import EntityStore

VALID_STATUSES = (
    "inbox, next_action, waiting_for, later, calendar, someday, done, reference, trash, project, context"
)
VALID_PATTERNS = "daily, weekly, monthly, yearly"

_DATE_RE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def parse_status(value: str) -> Result[NotaStatus]:
    try:
        return Result.success(NotaStatus(value.strip()))
    except ValueError:
        return Result.failure(
            fail(ErrorCode.INVALID_STATUS, f"Invalid status '{value}'. Valid statuses: {VALID_STATUSES}")
        )


def parse_recurrence_pattern(value: str) -> Result[RecurrencePattern]:
    try:
        return Result.success(RecurrencePattern(value.strip()))
    except ValueError:
        return Result.failure(
            fail(
                ErrorCode.INVALID_RECURRENCE_CONFIG,
                f"Invalid recurrence pattern '{value}'. Valid patterns: {VALID_PATTERNS}",
            )
        )


def check_date_format(value: str) -> Result[date]:
    """Parse a strict YYYY-MM-DD calendar date."""
    error = fail(ErrorCode.INVALID_DATE_FORMAT, f"Invalid date format '{value}'. Use YYYY-MM-DD (e.g., '2025-03-15')")
    text = value.strip()
    if not _DATE_RE.match(text):
        return Result.failure(error)
    try:
        return Result.success(date.fromisoformat(text))
    except ValueError:
        return Result.failure(error)


def check_reference(store: EntityStore, ref_id: str, expected_kind: Kind) -> NotaError | None:
    """A project/context field must name an existing nota of that kind."""
    target = store.get(ref_id).value
    if target is not None and target.kind == expected_kind:
        return None

    label = expected_kind.capitalize()
    available = [n.id for n in store if n.kind == expected_kind]
    if not available:
        message = (
            f"{label} '{ref_id}' does not exist. No {expected_kind}s have been created yet. "
            f"Create a {expected_kind} first using inbox() with status='{expected_kind}'."
        )
    else:
        message = f"{label} '{ref_id}' does not exist.\nAvailable {expected_kind}s: {', '.join(available)}"
    return fail(ErrorCode.INVALID_REFERENCE, message, nota_id=ref_id)


def check_recurrence_config(pattern: RecurrencePattern, config: str | None) -> NotaError | None:
    if pattern is RecurrencePattern.DAILY:
        return None
    if config is None or not config.strip():
        return fail(
            ErrorCode.INVALID_RECURRENCE_CONFIG,
            f"Recurrence pattern '{pattern.value}' requires recurrence_config with {CONFIG_EXAMPLES[pattern]}",
        )
    bad = invalid_config_item(pattern, config)
    if bad is not None:
        return fail(
            ErrorCode.INVALID_RECURRENCE_CONFIG,
            f"Invalid recurrence_config '{config}' for pattern '{pattern.value}': '{bad}' is not valid. "
            f"Expected {CONFIG_EXAMPLES[pattern]}",
        )
    return None


def find_referrer(store: EntityStore, nota_id: str, ignore: Iterable[str] = ()) -> Nota | None:
    """First nota (in creation order) whose project or context names `nota_id`."""
    skipped = set(ignore)
    skipped.add(nota_id)
    for nota in store:
        if nota.id not in skipped and nota.references(nota_id):
            return nota
    return None


def check_not_referenced(store: EntityStore, nota_id: str, ignore: Iterable[str] = ()) -> NotaError | None:
    referrer = find_referrer(store, nota_id, ignore)
    if referrer is None:
        return None
    return fail(
        ErrorCode.REFERENTIAL_INTEGRITY_VIOLATION,
        f"'{nota_id}' is still referenced by '{referrer.id}'. Remove the reference first with update().",
        nota_id=nota_id,
        referrer=referrer.id,
    )


def check_kind_change(store: EntityStore, nota: Nota, new_status: NotaStatus) -> NotaError | None:
    """Reject moves that would leave a reference pointing at the wrong kind.

    A referenced project/context may not become another kind, and no
    referenced nota may move to trash.
    """
    if new_status is nota.status:
        return None
    if new_status is not NotaStatus.TRASH and kind_of(new_status) == nota.kind:
        return None
    referrer = find_referrer(store, nota.id)
    if referrer is None:
        return None
    return fail(
        ErrorCode.REFERENTIAL_INTEGRITY_VIOLATION,
        f"Cannot change status of '{nota.id}' to {new_status.value}: it is still referenced by "
        f"'{referrer.id}'. Remove the reference first with update().",
        nota_id=nota.id,
        referrer=referrer.id,
    )
