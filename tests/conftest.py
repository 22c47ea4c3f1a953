"""Shared pytest fixtures for gtdnota tests."""

from datetime import date
from pathlib import Path

import pytest

from gtdnota.service import NotaService
from gtdnota.store import EntityStore
from gtdnota.workflow.engine import WorkflowEngine

TODAY = date(2025, 3, 1)
FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def today() -> date:
    """The fixed date every clock in the tests returns."""
    return TODAY


@pytest.fixture
def clock():
    """Clock pinned to TODAY."""
    return lambda: TODAY


@pytest.fixture
def store() -> EntityStore:
    return EntityStore()


@pytest.fixture
def engine(store: EntityStore, clock) -> WorkflowEngine:
    return WorkflowEngine(store, clock=clock)


@pytest.fixture
def seeded_engine(engine: WorkflowEngine) -> WorkflowEngine:
    """Engine holding one project, one context and two tasks that use them."""
    assert engine.capture(id="garden", title="Redo the garden", status="project").ok
    assert engine.capture(id="home", title="At home", status="context").ok
    assert engine.capture(id="buy-seeds", title="Buy seeds", status="next_action", project="garden").ok
    assert engine.capture(id="water", title="Water plants", status="inbox", context="home").ok
    return engine


@pytest.fixture
def service(clock) -> NotaService:
    """In-memory service with no persistence."""
    return NotaService(clock=clock)


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def data_file(tmp_path: Path) -> Path:
    """Copy of the v3 fixture in a scratch directory."""
    target = tmp_path / "gtd.toml"
    target.write_bytes((FIXTURES / "v3.toml").read_bytes())
    return target
