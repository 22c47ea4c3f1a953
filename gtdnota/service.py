"""
NotaService: the single owner of the in-memory store.

Every operation runs its in-memory work under one exclusive lock. Mutations
encode a snapshot while still holding it, then hand the bytes to the
persistence collaborator after releasing it. Writes go through a separate
I/O lock and carry a generation number, so a snapshot never overwrites a
newer one that already reached disk.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from datetime import date
from typing import Callable, Iterable

from .errors import ErrorCode, NotaError, Result, fail
from .models import STATUS_ORDER, Nota, NotaStatus
from .persistence import decode, encode
from .query import QueryResult, query
from .storage import Persistence
from .store import EntityStore
from .sync import GitSyncError
from .workflow.engine import PurgeReport, TransitionReport, WorkflowEngine

logger = logging.getLogger(__name__)


class NotaService:
    """Thread-safe facade over the workflow and query engines."""

    def __init__(
        self,
        store: EntityStore | None = None,
        persistence: Persistence | None = None,
        clock: Callable[[], date] = date.today,
        section_order: Iterable[NotaStatus] = STATUS_ORDER,
    ):
        self.store = store if store is not None else EntityStore()
        self.persistence = persistence
        self.section_order = tuple(section_order)
        self.engine = WorkflowEngine(self.store, clock=clock)
        self._lock = threading.Lock()
        self._io_lock = threading.Lock()
        self._generation = 0
        self._written = 0

    @classmethod
    def open(
        cls,
        persistence: Persistence,
        clock: Callable[[], date] = date.today,
        section_order: Iterable[NotaStatus] = STATUS_ORDER,
    ) -> Result[NotaService]:
        """Load the stored document once and build a service around it."""
        try:
            raw = persistence.load_raw()
        except OSError as e:
            return Result.failure(fail(ErrorCode.INVALID_FORMAT, f"Failed to read data file: {e}"))
        decoded = decode(raw, today=clock())
        if not decoded.ok:
            return Result.failure(decoded.error)
        logger.debug("Loaded %d notas", len(decoded.value))
        return Result.success(cls(decoded.value, persistence, clock=clock, section_order=section_order))

    def close(self) -> None:
        if self.persistence is None:
            return
        with self._io_lock:
            try:
                self.persistence.close()
            except (OSError, GitSyncError, subprocess.SubprocessError) as e:
                logger.warning("Shutdown sync failed: %s", e)

    # ------------------------------------------------------------------
    # operations
    # ------------------------------------------------------------------

    def capture(self, **fields) -> Result[Nota]:
        return self._mutate(
            lambda: self.engine.capture(**fields),
            changed=lambda nota: True,
            message=lambda nota: f"Add item {nota.id}",
        )

    def query(self, **filters) -> Result[QueryResult]:
        with self._lock:
            return query(self.store, **filters)

    def modify(self, id: str, **partial) -> Result[Nota]:
        return self._mutate(
            lambda: self.engine.modify(id, **partial),
            changed=lambda nota: True,
            message=lambda nota: f"Update item {nota.id}",
        )

    def transition(self, ids: list[str], new_status: str, start_date: str | None = None) -> Result[TransitionReport]:
        return self._mutate(
            lambda: self.engine.transition(ids, new_status, start_date),
            changed=lambda report: report.changed,
            message=lambda report: "Change {} status to {}".format(
                ", ".join(o.id for o in report.succeeded), new_status
            ),
        )

    def purge_trash(self) -> Result[PurgeReport]:
        return self._mutate(
            self.engine.purge_trash,
            changed=lambda report: bool(report.removed),
            message=lambda report: "Empty trash",
        )

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    def _mutate(self, operation, changed, message) -> Result:
        with self._lock:
            result = operation()
            if not result.ok or not changed(result.value):
                return result
            self._generation += 1
            generation = self._generation
            data = encode(self.store.all(), self.section_order)
            commit_message = message(result.value)

        warning = self._persist(generation, data, commit_message)
        if warning is not None:
            return result.with_warning(warning)
        return result

    def _persist(self, generation: int, data: bytes, message: str) -> NotaError | None:
        if self.persistence is None:
            return None
        with self._io_lock:
            if generation <= self._written:
                logger.debug("Snapshot %d superseded by %d, not writing", generation, self._written)
                return None
            try:
                self.persistence.persist(data, message)
            except (OSError, GitSyncError, subprocess.SubprocessError) as e:
                logger.warning("Failed to save (%s): %s", message, e)
                return fail(ErrorCode.PERSISTENCE_FAILED, f"Change applied but not saved: {e}")
            self._written = generation
        return None
