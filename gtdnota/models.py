"""Data models for notas (tasks, projects and contexts)."""

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Literal

# Derived entity kind
Kind = Literal["task", "project", "context"]


class NotaStatus(str, Enum):
    """Workflow stage for tasks, entity kind for projects and contexts.

    - INBOX: Unprocessed items
    - NEXT_ACTION: Ready to do now
    - WAITING_FOR: Blocked on someone or something
    - LATER: Deferred but planned
    - CALENDAR: Date-bound (requires start_date)
    - SOMEDAY: Maybe one day
    - DONE: Completed
    - REFERENCE: Non-actionable material kept for lookup
    - CONTEXT: The nota is a context (place, tool, situation)
    - PROJECT: The nota is a project (multi-step outcome)
    - TRASH: Discarded, removed for good by purge
    """
    INBOX = "inbox"
    NEXT_ACTION = "next_action"
    WAITING_FOR = "waiting_for"
    LATER = "later"
    CALENDAR = "calendar"
    SOMEDAY = "someday"
    DONE = "done"
    REFERENCE = "reference"
    CONTEXT = "context"
    PROJECT = "project"
    TRASH = "trash"


class RecurrencePattern(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


# Canonical status order: actionable first, trash last. Used for query output
# and for the section order of the saved document.
STATUS_ORDER: tuple[NotaStatus, ...] = (
    NotaStatus.INBOX,
    NotaStatus.NEXT_ACTION,
    NotaStatus.WAITING_FOR,
    NotaStatus.LATER,
    NotaStatus.CALENDAR,
    NotaStatus.SOMEDAY,
    NotaStatus.DONE,
    NotaStatus.REFERENCE,
    NotaStatus.CONTEXT,
    NotaStatus.PROJECT,
    NotaStatus.TRASH,
)

STATUS_RANK: dict[NotaStatus, int] = {status: i for i, status in enumerate(STATUS_ORDER)}


def kind_of(status: NotaStatus) -> Kind:
    """Entity kind encoded by a status value."""
    if status is NotaStatus.PROJECT:
        return "project"
    if status is NotaStatus.CONTEXT:
        return "context"
    return "task"


@dataclass(frozen=True)
class Nota:
    """A task, project or context.

    One record shape for all three kinds; `status` decides which one it is.
    Instances are immutable, use `evolve()` to derive an updated copy.
    """

    id: str
    title: str
    status: NotaStatus
    created_at: date
    updated_at: date
    project: str | None = None  # id of a project nota
    context: str | None = None  # id of a context nota
    notes: str | None = None  # markdown
    start_date: date | None = None
    recurrence_pattern: RecurrencePattern | None = None
    recurrence_config: str | None = None  # e.g. "Monday,Thursday", "1,15", "1-1,12-25"

    @property
    def kind(self) -> Kind:
        return kind_of(self.status)

    @property
    def is_task(self) -> bool:
        return self.kind == "task"

    @property
    def is_project(self) -> bool:
        return self.status is NotaStatus.PROJECT

    @property
    def is_context(self) -> bool:
        return self.status is NotaStatus.CONTEXT

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_pattern is not None

    def references(self, nota_id: str) -> bool:
        """True if this nota's project or context field names `nota_id`."""
        return self.project == nota_id or self.context == nota_id

    def evolve(self, **changes) -> "Nota":
        return replace(self, **changes)
