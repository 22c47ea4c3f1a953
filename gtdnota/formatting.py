"""Plain-text rendering of operation results for tool callers."""

from __future__ import annotations

from typing import Iterable

from .models import Nota, NotaStatus
from .workflow.engine import PurgeReport, TransitionReport


def _plural(n: int, word: str = "item") -> str:
    return f"{n} {word}" + ("" if n == 1 else "s")


def format_notas(notas: Iterable[Nota], exclude_notes: bool = False) -> str:
    notas = list(notas)
    if not notas:
        return "No items found"

    lines = [f"Found {len(notas)} item(s):", ""]
    for nota in notas:
        lines.append(f"- [{nota.id}] {nota.title} (status: {nota.status.value}, type: {nota.kind})")
        if nota.project:
            lines.append(f"  Project: {nota.project}")
        if nota.context:
            lines.append(f"  Context: {nota.context}")
        if nota.notes and not exclude_notes:
            lines.append(f"  Notes: {nota.notes}")
        if nota.start_date:
            lines.append(f"  Start date: {nota.start_date.isoformat()}")
        if nota.recurrence_pattern:
            rule = nota.recurrence_pattern.value
            if nota.recurrence_config:
                rule += f" ({nota.recurrence_config})"
            lines.append(f"  Recurrence: {rule}")
        lines.append(f"  Created: {nota.created_at.isoformat()}")
        lines.append(f"  Updated: {nota.updated_at.isoformat()}")
    return "\n".join(lines)


def format_created(nota: Nota) -> str:
    return f"Item created with ID: {nota.id} (type: {nota.kind})"


def format_updated(nota: Nota) -> str:
    return f"Item {nota.id} updated successfully"


def format_transition(report: TransitionReport) -> str:
    parts: list[str] = []

    succeeded = report.succeeded
    if succeeded:
        lines = [f"Successfully changed status for {_plural(len(succeeded))}:"]
        for outcome in succeeded:
            if outcome.new_status is NotaStatus.TRASH:
                lines.append(f"- {outcome.id} (moved to trash)")
            else:
                lines.append(f"- {outcome.id}: {outcome.old_status.value} → {outcome.new_status.value}")
            if outcome.created_id:
                lines.append(f"  Next occurrence created: {outcome.created_id} on {outcome.created_date.isoformat()}")
        parts.append("\n".join(lines))

    failed = report.failed
    if failed:
        lines = [f"Failed to change status for {_plural(len(failed))}:"]
        lines.extend(f"- {outcome.id}: {outcome.error.message}" for outcome in failed)
        parts.append("\n".join(lines))

    return "\n\n".join(parts)


def format_purge(report: PurgeReport) -> str:
    text = f"Deleted {len(report.removed)} task(s) from trash"
    if report.blocked:
        lines = [text, "", f"Kept {_plural(len(report.blocked))} that are still referenced:"]
        lines.extend(f"- {nota_id} (referenced by {referrer})" for nota_id, referrer in report.blocked.items())
        text = "\n".join(lines)
    return text
