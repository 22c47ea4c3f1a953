from gtdnota.errors import ErrorCode
from gtdnota.query import query


def _ids(result) -> list[str]:
    return [n.id for n in result.value]


def test_query_all_in_status_order(seeded_engine) -> None:
    # created: garden(project), home(context), buy-seeds(next_action), water(inbox)
    result = query(seeded_engine.store)
    assert _ids(result) == ["water", "buy-seeds", "home", "garden"]


def test_query_filters(seeded_engine) -> None:
    store = seeded_engine.store

    assert _ids(query(store, status="project")) == ["garden"]
    assert _ids(query(store, project="garden")) == ["buy-seeds"]
    assert _ids(query(store, context="home")) == ["water"]
    assert _ids(query(store, keyword="SEED")) == ["buy-seeds"]
    assert _ids(query(store, status="inbox", context="home")) == ["water"]
    assert _ids(query(store, status="done")) == []


def test_query_blank_filters_are_ignored(seeded_engine) -> None:
    assert len(query(seeded_engine.store, status="", keyword=" ").value) == 4


def test_query_keyword_searches_notes(engine) -> None:
    engine.capture(id="a", title="Plain", status="inbox", notes="mentions Budget")
    engine.capture(id="b", title="Other", status="inbox")
    assert _ids(query(engine.store, keyword="budget")) == ["a"]


def test_query_date_hides_future_calendar_items(engine) -> None:
    engine.capture(id="soon", title="Soon", status="calendar", start_date="2025-03-05")
    engine.capture(id="later", title="Later", status="calendar", start_date="2025-04-01")
    engine.capture(id="task", title="Task", status="next_action", start_date="2025-06-01")

    assert _ids(query(engine.store, date="2025-03-10")) == ["task", "soon"]


def test_query_invalid_inputs(seeded_engine) -> None:
    assert query(seeded_engine.store, status="bogus").error.code is ErrorCode.INVALID_STATUS
    assert query(seeded_engine.store, date="2025/03/01").error.code is ErrorCode.INVALID_DATE_FORMAT


def test_query_exclude_notes(engine) -> None:
    engine.capture(id="a", title="A", status="inbox", notes="secret")

    nota = next(iter(query(engine.store, exclude_notes=True).value))

    assert nota.notes is None
    assert engine.store.get("a").value.notes == "secret"


def test_query_result_is_restartable_snapshot(seeded_engine) -> None:
    result = query(seeded_engine.store, status="inbox").value

    seeded_engine.capture(id="new", title="New", status="inbox")

    assert [n.id for n in result] == ["water"]
    assert [n.id for n in result] == ["water"]
    assert len(result) == 1


def test_query_keyword_ignores_status_values(seeded_engine) -> None:
    assert _ids(query(seeded_engine.store, keyword="inbox")) == []
    assert _ids(query(seeded_engine.store, keyword="project")) == []
