import threading
import time
from datetime import date
from pathlib import Path

from gtdnota.errors import ErrorCode
from gtdnota.models import NotaStatus
from gtdnota.persistence import decode
from gtdnota.service import NotaService
from gtdnota.storage import FileStorage


class RecordingPersistence:
    """In-memory Persistence that remembers every write."""

    def __init__(self, initial: bytes = b"", fail: bool = False):
        self.initial = initial
        self.fail = fail
        self.writes: list[tuple[bytes, str]] = []
        self.closed = False

    def load_raw(self) -> bytes:
        return self.initial

    def persist(self, data: bytes, message: str) -> None:
        if self.fail:
            raise OSError("disk full")
        self.writes.append((data, message))

    def close(self) -> None:
        self.closed = True


class BlockingPersistence(RecordingPersistence):
    """Holds the first write until `release` is set."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def persist(self, data: bytes, message: str) -> None:
        if not self.entered.is_set():
            self.entered.set()
            assert self.release.wait(timeout=5)
        super().persist(data, message)


def _wait_for(condition, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while not condition():
        assert time.monotonic() < deadline, "condition not reached"
        time.sleep(0.01)


def test_open_missing_file_starts_empty(tmp_path: Path, clock) -> None:
    opened = NotaService.open(FileStorage(tmp_path / "missing.toml"), clock=clock)

    assert opened.ok
    assert len(opened.value.store) == 0
    assert not (tmp_path / "missing.toml").exists()


def test_open_rejects_bad_document(clock) -> None:
    opened = NotaService.open(RecordingPersistence(b"format_version = 7\n"), clock=clock)
    assert opened.error.code is ErrorCode.INVALID_FORMAT


def test_mutations_are_persisted_with_messages(clock) -> None:
    persistence = RecordingPersistence()
    service = NotaService.open(persistence, clock=clock).value

    service.capture(id="a", title="A", status="inbox")
    service.modify("a", title="A2")
    service.transition(["a"], "trash")
    service.purge_trash()

    assert [message for _, message in persistence.writes] == [
        "Add item a",
        "Update item a",
        "Change a status to trash",
        "Empty trash",
    ]
    last = decode(persistence.writes[-1][0]).value
    assert len(last) == 0


def test_rejected_operations_do_not_write(clock) -> None:
    persistence = RecordingPersistence()
    service = NotaService.open(persistence, clock=clock).value

    assert not service.capture(id="a", title="A", status="nope").ok
    assert not service.modify("ghost", title="x").ok
    assert service.transition(["ghost"], "done").ok
    assert service.purge_trash().ok
    assert service.query().ok

    assert persistence.writes == []


def test_persistence_failure_is_a_warning(clock) -> None:
    service = NotaService.open(RecordingPersistence(fail=True), clock=clock).value

    result = service.capture(id="a", title="A", status="inbox")

    assert result.ok
    assert result.warning.code is ErrorCode.PERSISTENCE_FAILED
    assert "disk full" in result.warning.message
    assert service.store.contains("a")


def test_roundtrip_through_file(tmp_path: Path, clock) -> None:
    path = tmp_path / "nested" / "gtd.toml"
    service = NotaService.open(FileStorage(path), clock=clock).value
    service.capture(id="garden", title="Garden", status="project")
    service.capture(id="dentist", title="Dentist", status="calendar", start_date="2025-03-10", project="garden")

    reopened = NotaService.open(FileStorage(path), clock=lambda: date(2030, 1, 1)).value

    dentist = reopened.store.get("dentist").value
    assert dentist.status is NotaStatus.CALENDAR
    assert dentist.project == "garden"
    assert dentist.created_at == date(2025, 3, 1)
    assert not path.with_name("gtd.toml.tmp").exists()


def test_legacy_file_is_rewritten_on_first_change(fixtures_dir: Path, tmp_path: Path, clock) -> None:
    path = tmp_path / "gtd.toml"
    path.write_bytes((fixtures_dir / "v1.toml").read_bytes())
    service = NotaService.open(FileStorage(path), clock=clock).value

    service.transition(["buy-seeds"], "done")

    text = path.read_text(encoding="utf-8")
    assert text.startswith("format_version = 3")
    assert "[[done]]" in text


def test_section_order_is_configurable(clock) -> None:
    persistence = RecordingPersistence()
    service = NotaService(persistence=persistence, clock=clock, section_order=[NotaStatus.PROJECT])

    service.capture(id="a", title="A", status="inbox")
    service.capture(id="p", title="P", status="project")

    data = persistence.writes[-1][0].decode("utf-8")
    assert data.index("[[project]]") < data.index("[[inbox]]")


def test_close_delegates_to_persistence(clock) -> None:
    persistence = RecordingPersistence()
    NotaService(persistence=persistence, clock=clock).close()
    assert persistence.closed


def test_store_is_usable_while_a_write_is_in_flight(clock) -> None:
    persistence = BlockingPersistence()
    service = NotaService(persistence=persistence, clock=clock)
    writer = threading.Thread(target=service.capture, kwargs={"id": "a", "title": "A", "status": "inbox"})
    writer.start()
    try:
        assert persistence.entered.wait(timeout=5)

        # the store lock is free and the change is already visible
        assert service._lock.acquire(timeout=1)
        service._lock.release()
        assert [n.id for n in service.query().value] == ["a"]
        assert persistence.writes == []
    finally:
        persistence.release.set()
        writer.join(timeout=5)

    assert not writer.is_alive()
    assert [message for _, message in persistence.writes] == ["Add item a"]


def test_older_snapshot_never_overwrites_newer(clock) -> None:
    persistence = BlockingPersistence()
    service = NotaService(persistence=persistence, clock=clock)
    first = threading.Thread(target=service.capture, kwargs={"id": "a", "title": "A", "status": "inbox"})
    first.start()
    assert persistence.entered.wait(timeout=5)

    others = [
        threading.Thread(target=service.capture, kwargs={"id": nota_id, "title": nota_id, "status": "inbox"})
        for nota_id in ("b", "c")
    ]
    for thread in others:
        thread.start()
    _wait_for(lambda: service._generation == 3)
    persistence.release.set()
    for thread in [first, *others]:
        thread.join(timeout=5)

    sizes = [len(decode(data).value) for data, _ in persistence.writes]
    assert sizes == sorted(sizes)
    assert sizes[-1] == 3


def test_superseded_generation_is_skipped(clock) -> None:
    persistence = RecordingPersistence()
    service = NotaService(persistence=persistence, clock=clock)

    assert service._persist(2, b"newer", "second") is None
    assert service._persist(1, b"older", "first") is None

    assert persistence.writes == [(b"newer", "second")]
