"""Integrity rules for a loaded nota document."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Literal

from .models import Nota, NotaStatus, RecurrencePattern
from .workflow.recurrence import invalid_config_item


@dataclass
class IntegrityFinding:
    """A single integrity finding."""

    level: Literal["error", "warning", "info"]
    rule: str
    nota_id: str
    message: str

    def __str__(self) -> str:
        return f"{self.level.upper()}: [{self.rule}] {self.nota_id} - {self.message}"

    def to_dict(self) -> dict:
        return {"level": self.level, "rule": self.rule, "id": self.nota_id, "message": self.message}


class IntegrityRules:
    """Checks the invariants the workflow engine maintains.

    Works on a plain list so that documents the store would refuse (for
    example with duplicate ids) can still be inspected.
    """

    def __init__(self, notas: Iterable[Nota]):
        self.notas = list(notas)
        self.by_id: dict[str, Nota] = {}
        for nota in self.notas:
            self.by_id.setdefault(nota.id, nota)

    def run_all(self) -> list[IntegrityFinding]:
        """Run all checks and return findings."""
        results = []
        results.extend(self.check_duplicate_ids())
        results.extend(self.check_references())
        results.extend(self.check_calendar_dates())
        results.extend(self.check_recurrence())
        return results

    def check_duplicate_ids(self) -> list[IntegrityFinding]:
        results = []
        seen: dict[str, Nota] = {}
        for nota in self.notas:
            first = seen.get(nota.id)
            if first is None:
                seen[nota.id] = nota
                continue
            results.append(
                IntegrityFinding(
                    level="error",
                    rule="duplicate-id",
                    nota_id=nota.id,
                    message=f"id used by both a {first.status.value} and a {nota.status.value} nota",
                )
            )
        return results

    def check_references(self) -> list[IntegrityFinding]:
        """project/context fields must name a nota of that kind."""
        results = []
        for nota in self.notas:
            for field_name, kind in (("project", "project"), ("context", "context")):
                ref = getattr(nota, field_name)
                if ref is None:
                    continue
                target = self.by_id.get(ref)
                if target is None:
                    message = f"{field_name} '{ref}' does not exist"
                elif target.kind != kind:
                    message = f"{field_name} '{ref}' is a {target.kind}, not a {kind}"
                else:
                    continue
                results.append(
                    IntegrityFinding(level="error", rule=f"missing-{kind}", nota_id=nota.id, message=message)
                )
        return results

    def check_calendar_dates(self) -> list[IntegrityFinding]:
        return [
            IntegrityFinding(
                level="error",
                rule="calendar-without-date",
                nota_id=nota.id,
                message="calendar nota has no start_date",
            )
            for nota in self.notas
            if nota.status is NotaStatus.CALENDAR and nota.start_date is None
        ]

    def check_recurrence(self) -> list[IntegrityFinding]:
        results = []
        for nota in self.notas:
            pattern = nota.recurrence_pattern
            if pattern is None or pattern is RecurrencePattern.DAILY:
                continue
            if not nota.recurrence_config:
                message = f"{pattern.value} recurrence without recurrence_config"
            else:
                bad = invalid_config_item(pattern, nota.recurrence_config)
                if bad is None:
                    continue
                message = f"'{bad}' is not valid for {pattern.value} recurrence"
            results.append(IntegrityFinding(level="warning", rule="bad-recurrence", nota_id=nota.id, message=message))
        return results


def check_integrity(notas: Iterable[Nota]) -> list[IntegrityFinding]:
    return IntegrityRules(notas).run_all()
