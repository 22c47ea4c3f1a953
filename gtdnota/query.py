"""Read-only filtering over the notas of an EntityStore."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterator

from .errors import Result
from .models import STATUS_RANK, Nota, NotaStatus
from .store import EntityStore, check_date_format, parse_status


@dataclass(frozen=True)
class NotaFilter:
    """Conjunctive filter; a None field does not constrain."""

    status: NotaStatus | None = None
    date: date | None = None  # calendar notas with start_date after this are hidden
    keyword: str | None = None
    project: str | None = None
    context: str | None = None

    def matches(self, nota: Nota) -> bool:
        if self.status is not None and nota.status is not self.status:
            return False
        if self.date is not None and nota.status is NotaStatus.CALENDAR:
            if nota.start_date is not None and nota.start_date > self.date:
                return False
        if self.keyword:
            needle = self.keyword.lower()
            haystacks = (nota.id, nota.title, nota.notes or "")
            if not any(needle in h.lower() for h in haystacks):
                return False
        if self.project is not None and nota.project != self.project:
            return False
        if self.context is not None and nota.context != self.context:
            return False
        return True


class QueryResult:
    """Matching notas, in canonical status order then creation order.

    Evaluated on each iteration over the snapshot taken when the query ran,
    so it can be iterated any number of times and later store changes are
    not visible.
    """

    def __init__(self, snapshot: list[Nota], nota_filter: NotaFilter, exclude_notes: bool = False):
        self._snapshot = snapshot
        self.filter = nota_filter
        self.exclude_notes = exclude_notes

    def __iter__(self) -> Iterator[Nota]:
        # sorted() is stable, so creation order holds within a status
        for nota in sorted(self._snapshot, key=lambda n: STATUS_RANK[n.status]):
            if not self.filter.matches(nota):
                continue
            yield nota.evolve(notes=None) if self.exclude_notes else nota

    def __len__(self) -> int:
        return sum(1 for _ in self)


def _given(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


def query(
    store: EntityStore,
    status: str | None = None,
    date: str | None = None,
    keyword: str | None = None,
    project: str | None = None,
    context: str | None = None,
    exclude_notes: bool = False,
) -> Result[QueryResult]:
    parsed_status = None
    if _given(status):
        status_result = parse_status(status)
        if not status_result.ok:
            return Result.failure(status_result.error)
        parsed_status = status_result.value

    parsed_date = None
    if _given(date):
        date_result = check_date_format(date)
        if not date_result.ok:
            return Result.failure(date_result.error)
        parsed_date = date_result.value

    nota_filter = NotaFilter(
        status=parsed_status,
        date=parsed_date,
        keyword=_given(keyword),
        project=_given(project),
        context=_given(context),
    )
    return Result.success(QueryResult(store.all(), nota_filter, exclude_notes=exclude_notes))
