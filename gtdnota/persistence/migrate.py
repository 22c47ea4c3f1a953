"""
Migration chain from the legacy document shapes to the current one.

Each step is a pure function from one frozen document type to the next:

    DocumentV1 --migrate_v1_to_v2--> DocumentV2 --migrate_v2_to_v3--> DocumentV3
"""

from __future__ import annotations

from dataclasses import dataclass

from ..models import Nota, NotaStatus
from .legacy import ContextRecord, DocumentV1, DocumentV2, ProjectRecord, TaskRecord

CURRENT_VERSION = 3


@dataclass(frozen=True)
class DocumentV3:
    """Current shape: a flat list of notas. `source_version` is what was read from disk."""

    notas: tuple[Nota, ...] = ()
    source_version: int = CURRENT_VERSION


def migrate_v1_to_v2(doc: DocumentV1) -> DocumentV2:
    """Split the single task array into per-status arrays (first-seen status order)."""
    grouped: dict[NotaStatus, list[TaskRecord]] = {}
    for task in doc.tasks:
        grouped.setdefault(task.status, []).append(task)
    return DocumentV2(
        tasks={status: tuple(tasks) for status, tasks in grouped.items()},
        projects=doc.projects,
        contexts=doc.contexts,
    )


def nota_from_task(task: TaskRecord) -> Nota:
    return Nota(
        id=task.id,
        title=task.title,
        status=task.status,
        created_at=task.created_at,
        updated_at=task.updated_at,
        project=task.project,
        context=task.context,
        notes=task.notes,
        start_date=task.start_date,
        recurrence_pattern=task.recurrence_pattern,
        recurrence_config=task.recurrence_config,
    )


def nota_from_project(project: ProjectRecord) -> Nota:
    return Nota(
        id=project.id,
        title=project.title,
        status=NotaStatus.PROJECT,
        created_at=project.created_at,
        updated_at=project.updated_at,
        project=project.project,
        context=project.context,
        notes=project.notes,
        start_date=project.start_date,
    )


def nota_from_context(context: ContextRecord) -> Nota:
    return Nota(
        id=context.name,
        title=context.title or context.name,
        status=NotaStatus.CONTEXT,
        created_at=context.created_at,
        updated_at=context.updated_at,
        project=context.project,
        context=context.context,
        notes=context.notes,
        start_date=context.start_date,
    )


def migrate_v2_to_v3(doc: DocumentV2, source_version: int = 2) -> DocumentV3:
    """Turn tasks, projects and contexts into notas: tasks first, then projects, then contexts."""
    notas: list[Nota] = []
    for tasks in doc.tasks.values():
        notas.extend(nota_from_task(task) for task in tasks)
    notas.extend(nota_from_project(project) for project in doc.projects)
    notas.extend(nota_from_context(context) for context in doc.contexts)
    return DocumentV3(notas=tuple(notas), source_version=source_version)
