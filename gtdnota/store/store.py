"""In-memory nota collection with a uniqueness index."""

from __future__ import annotations

from typing import Iterator

from ..errors import ErrorCode, NotaError, Result, fail
from ..models import Nota


class EntityStore:
    """Container for all notas.

    Notas are kept in creation order (stable output, stable diffs of the saved
    file) with a dict index for id lookups. No business rules live here: the
    only check is id uniqueness across every status.
    """

    def __init__(self, notas: list[Nota] | None = None):
        self._notas: list[Nota] = []
        self._by_id: dict[str, Nota] = {}
        for nota in notas or []:
            error = self.insert(nota)
            if error is not None:
                raise ValueError(error.message)

    def __len__(self) -> int:
        return len(self._notas)

    def __iter__(self) -> Iterator[Nota]:
        return iter(self.all())

    def contains(self, nota_id: str) -> bool:
        return nota_id in self._by_id

    def duplicate_error(self, nota_id: str) -> NotaError | None:
        """The error `insert` would return for `nota_id`, or None if the id is free."""
        existing = self._by_id.get(nota_id)
        if existing is None:
            return None
        return fail(
            ErrorCode.DUPLICATE_ID,
            f"Duplicate ID error: ID '{nota_id}' already exists (status: {existing.status.value}). "
            "Each item must have a unique ID. Please choose a different ID.",
            nota_id=nota_id,
        )

    def insert(self, nota: Nota) -> NotaError | None:
        error = self.duplicate_error(nota.id)
        if error is not None:
            return error
        self._notas.append(nota)
        self._by_id[nota.id] = nota
        return None

    def get(self, nota_id: str) -> Result[Nota]:
        nota = self._by_id.get(nota_id)
        if nota is None:
            return Result.failure(_not_found(nota_id))
        return Result.success(nota)

    def replace(self, nota: Nota) -> NotaError | None:
        """Swap the stored nota with the same id, keeping its position."""
        if nota.id not in self._by_id:
            return _not_found(nota.id)
        for i, current in enumerate(self._notas):
            if current.id == nota.id:
                self._notas[i] = nota
                break
        self._by_id[nota.id] = nota
        return None

    def remove(self, nota_id: str) -> Result[Nota]:
        nota = self._by_id.pop(nota_id, None)
        if nota is None:
            return Result.failure(_not_found(nota_id))
        self._notas = [n for n in self._notas if n.id != nota_id]
        return Result.success(nota)

    def all(self) -> list[Nota]:
        """Snapshot of every nota in creation order."""
        return list(self._notas)


def _not_found(nota_id: str) -> NotaError:
    return fail(
        ErrorCode.NOT_FOUND,
        f"Item not found: Item '{nota_id}' does not exist. Use list() to see available items.",
        nota_id=nota_id,
    )
