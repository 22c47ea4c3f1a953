"""
Workflow engine: the mutating operations on an EntityStore.

Every operation validates first and mutates last, so a rejected call leaves
the store untouched. `transition` is the exception to whole-call atomicity:
each id succeeds or fails on its own and the report lists every outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from ..errors import ErrorCode, NotaError, Result, fail
from ..models import Nota, NotaStatus, RecurrencePattern
from ..store import (
    EntityStore,
    check_date_format,
    check_kind_change,
    check_not_referenced,
    check_recurrence_config,
    check_reference,
    parse_recurrence_pattern,
    parse_status,
)
from .recurrence import next_occurrence


class _Unset:
    """Marker for "field not supplied" in modify()."""

    def __repr__(self) -> str:
        return "UNSET"


UNSET = _Unset()

CALENDAR_NEEDS_DATE = (
    "Calendar status validation failed: status=calendar requires start_date parameter. "
    "Please provide a date in YYYY-MM-DD format."
)


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of moving a single id."""

    id: str
    old_status: NotaStatus | None = None
    new_status: NotaStatus | None = None
    error: NotaError | None = None
    created_id: str | None = None  # next occurrence of a recurring nota
    created_date: date | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class TransitionReport:
    outcomes: list[TransitionOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> list[TransitionOutcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> list[TransitionOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def changed(self) -> bool:
        return bool(self.succeeded)


@dataclass(frozen=True)
class PurgeReport:
    removed: list[str] = field(default_factory=list)
    blocked: dict[str, str] = field(default_factory=dict)  # trash id -> referrer id


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class WorkflowEngine:
    """Capture, modify, transition and purge on top of an EntityStore.

    `clock` supplies the date written to created_at/updated_at.
    """

    def __init__(self, store: EntityStore, clock: Callable[[], date] = date.today):
        self.store = store
        self.clock = clock

    def capture(
        self,
        id: str,
        title: str,
        status: str,
        project: str | None = None,
        context: str | None = None,
        notes: str | None = None,
        start_date: str | None = None,
        recurrence_pattern: str | None = None,
        recurrence_config: str | None = None,
    ) -> Result[Nota]:
        """Create a nota. Blank optional fields count as absent."""
        nota_id = (id or "").strip()
        if not nota_id:
            return Result.failure(fail(ErrorCode.MISSING_REQUIRED_FIELD, "id is required and must not be empty"))
        if _blank(title):
            return Result.failure(
                fail(ErrorCode.MISSING_REQUIRED_FIELD, "title is required and must not be empty", nota_id=nota_id)
            )

        parsed_status = parse_status(status)
        if not parsed_status.ok:
            return Result.failure(parsed_status.error)
        new_status = parsed_status.value

        duplicate = self.store.duplicate_error(nota_id)
        if duplicate is not None:
            return Result.failure(duplicate)

        project = None if _blank(project) else project.strip()
        context = None if _blank(context) else context.strip()
        if project is not None:
            error = check_reference(self.store, project, "project")
            if error is not None:
                return Result.failure(error)
        if context is not None:
            error = check_reference(self.store, context, "context")
            if error is not None:
                return Result.failure(error)

        parsed_date = None
        if not _blank(start_date):
            date_result = check_date_format(start_date)
            if not date_result.ok:
                return Result.failure(date_result.error)
            parsed_date = date_result.value
        if new_status is NotaStatus.CALENDAR and parsed_date is None:
            return Result.failure(fail(ErrorCode.MISSING_REQUIRED_FIELD, CALENDAR_NEEDS_DATE, nota_id=nota_id))

        pattern = None
        config = None if _blank(recurrence_config) else recurrence_config.strip()
        if not _blank(recurrence_pattern):
            pattern_result = parse_recurrence_pattern(recurrence_pattern)
            if not pattern_result.ok:
                return Result.failure(pattern_result.error)
            pattern = pattern_result.value
            error = check_recurrence_config(pattern, config)
            if error is not None:
                return Result.failure(error)

        today = self.clock()
        nota = Nota(
            id=nota_id,
            title=title,
            status=new_status,
            created_at=today,
            updated_at=today,
            project=project,
            context=context,
            notes=None if _blank(notes) else notes,
            start_date=parsed_date,
            recurrence_pattern=pattern,
            recurrence_config=config,
        )
        error = self.store.insert(nota)
        if error is not None:
            return Result.failure(error)
        return Result.success(nota)

    def modify(
        self,
        id: str,
        title=UNSET,
        status=UNSET,
        project=UNSET,
        context=UNSET,
        notes=UNSET,
        start_date=UNSET,
        recurrence_pattern=UNSET,
        recurrence_config=UNSET,
    ) -> Result[Nota]:
        """Update the supplied fields of one nota.

        An empty string clears an optional field. Status changes made here
        never spawn recurring occurrences.
        """
        lookup = self.store.get((id or "").strip())
        if not lookup.ok:
            return Result.failure(lookup.error)
        current = lookup.value
        changes: dict = {}

        if title is not UNSET:
            if _blank(title):
                return Result.failure(
                    fail(ErrorCode.MISSING_REQUIRED_FIELD, "title must not be empty", nota_id=current.id)
                )
            changes["title"] = title

        if status is not UNSET:
            parsed_status = parse_status(status)
            if not parsed_status.ok:
                return Result.failure(parsed_status.error)
            error = check_kind_change(self.store, current, parsed_status.value)
            if error is not None:
                return Result.failure(error)
            changes["status"] = parsed_status.value

        for name, kind, value in (("project", "project", project), ("context", "context", context)):
            if value is UNSET:
                continue
            if _blank(value):
                changes[name] = None
                continue
            value = value.strip()
            if value != getattr(current, name):
                error = check_reference(self.store, value, kind)
                if error is not None:
                    return Result.failure(error)
            changes[name] = value

        if notes is not UNSET:
            changes["notes"] = None if notes == "" else notes

        if start_date is not UNSET:
            if _blank(start_date):
                changes["start_date"] = None
            else:
                date_result = check_date_format(start_date)
                if not date_result.ok:
                    return Result.failure(date_result.error)
                changes["start_date"] = date_result.value

        if recurrence_pattern is not UNSET:
            if _blank(recurrence_pattern):
                changes["recurrence_pattern"] = None
                changes["recurrence_config"] = None
            else:
                pattern_result = parse_recurrence_pattern(recurrence_pattern)
                if not pattern_result.ok:
                    return Result.failure(pattern_result.error)
                changes["recurrence_pattern"] = pattern_result.value

        if recurrence_config is not UNSET:
            changes["recurrence_config"] = None if _blank(recurrence_config) else recurrence_config.strip()

        updated = current.evolve(**changes)

        if updated.recurrence_pattern is not None and (
            "recurrence_pattern" in changes or "recurrence_config" in changes
        ):
            error = check_recurrence_config(updated.recurrence_pattern, updated.recurrence_config)
            if error is not None:
                return Result.failure(error)

        if updated.status is NotaStatus.CALENDAR and updated.start_date is None:
            return Result.failure(
                fail(
                    ErrorCode.MISSING_REQUIRED_FIELD,
                    "Calendar status validation failed: status=calendar requires start_date. "
                    "Please provide a start_date or change to a different status.",
                    nota_id=current.id,
                )
            )

        updated = updated.evolve(updated_at=self.clock())
        error = self.store.replace(updated)
        if error is not None:
            return Result.failure(error)
        return Result.success(updated)

    def transition(self, ids: list[str], new_status: str, start_date: str | None = None) -> Result[TransitionReport]:
        """Move each id to `new_status`, recording a per-id outcome.

        Only a bad status, a bad date or an empty id list reject the whole
        call; anything else fails the single id and processing continues.
        """
        wanted = [i.strip() for i in ids if i and i.strip()]
        if not wanted:
            return Result.failure(
                fail(ErrorCode.MISSING_REQUIRED_FIELD, "No IDs provided. Please specify at least one item ID.")
            )

        parsed_status = parse_status(new_status)
        if not parsed_status.ok:
            return Result.failure(parsed_status.error)
        target = parsed_status.value

        parsed_date = None
        if not _blank(start_date):
            date_result = check_date_format(start_date)
            if not date_result.ok:
                return Result.failure(date_result.error)
            parsed_date = date_result.value

        outcomes = [self._transition_one(nota_id, target, parsed_date) for nota_id in wanted]
        return Result.success(TransitionReport(outcomes=outcomes))

    def _transition_one(self, nota_id: str, target: NotaStatus, start_date: date | None) -> TransitionOutcome:
        lookup = self.store.get(nota_id)
        if not lookup.ok:
            return TransitionOutcome(id=nota_id, new_status=target, error=lookup.error)
        nota = lookup.value

        def failed(error: NotaError) -> TransitionOutcome:
            return TransitionOutcome(id=nota_id, old_status=nota.status, new_status=target, error=error)

        effective_date = start_date or nota.start_date
        if target is NotaStatus.CALENDAR and effective_date is None:
            return failed(
                fail(ErrorCode.MISSING_REQUIRED_FIELD, "calendar status requires a start_date", nota_id=nota_id)
            )

        error = check_kind_change(self.store, nota, target)
        if error is not None:
            return failed(error)

        today = self.clock()
        occurrence = None
        if target is NotaStatus.DONE and nota.is_recurring:
            occurrence, error = self._next_occurrence(nota, effective_date or today, today)
            if error is not None:
                return failed(error)

        changes = {"status": target, "updated_at": today}
        if start_date is not None:
            changes["start_date"] = start_date
        self.store.replace(nota.evolve(**changes))

        if occurrence is None:
            return TransitionOutcome(id=nota_id, old_status=nota.status, new_status=target)
        self.store.insert(occurrence)
        return TransitionOutcome(
            id=nota_id,
            old_status=nota.status,
            new_status=target,
            created_id=occurrence.id,
            created_date=occurrence.start_date,
        )

    def _next_occurrence(self, nota: Nota, from_date: date, today: date) -> tuple[Nota | None, NotaError | None]:
        pattern: RecurrencePattern = nota.recurrence_pattern
        next_date = next_occurrence(from_date, pattern, nota.recurrence_config)
        if next_date is None:
            return None, fail(
                ErrorCode.INVALID_RECURRENCE_CONFIG,
                f"Cannot compute next occurrence of '{nota.id}' from recurrence_config "
                f"'{nota.recurrence_config}' ({pattern.value})",
                nota_id=nota.id,
            )
        occurrence_id = f"{nota.id}-{next_date:%Y%m%d}"
        duplicate = self.store.duplicate_error(occurrence_id)
        if duplicate is not None:
            return None, duplicate
        occurrence = Nota(
            id=occurrence_id,
            title=nota.title,
            status=nota.status,
            created_at=today,
            updated_at=today,
            project=nota.project,
            context=nota.context,
            notes=nota.notes,
            start_date=next_date,
            recurrence_pattern=nota.recurrence_pattern,
            recurrence_config=nota.recurrence_config,
        )
        return occurrence, None

    def purge_trash(self) -> Result[PurgeReport]:
        """Delete trashed notas that nothing outside the purge set references.

        Blocking repeats until stable: a trash nota kept alive by a survivor
        in turn keeps alive whatever it references.
        """
        purge = {n.id for n in self.store if n.status is NotaStatus.TRASH}
        blocked: dict[str, str] = {}
        changed = True
        while changed:
            changed = False
            for nota_id in sorted(purge):
                error = check_not_referenced(self.store, nota_id, ignore=purge)
                if error is not None:
                    purge.discard(nota_id)
                    blocked[nota_id] = error.referrer
                    changed = True

        removed = [n.id for n in self.store if n.id in purge]
        for nota_id in removed:
            self.store.remove(nota_id)
        return Result.success(PurgeReport(removed=removed, blocked=blocked))
