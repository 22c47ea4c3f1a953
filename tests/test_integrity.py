from datetime import date

from gtdnota.integrity import IntegrityRules, check_integrity
from gtdnota.models import Nota, NotaStatus, RecurrencePattern


def _nota(nota_id: str, status: NotaStatus = NotaStatus.INBOX, **fields) -> Nota:
    day = date(2025, 1, 1)
    return Nota(id=nota_id, title=nota_id, status=status, created_at=day, updated_at=day, **fields)


def test_clean_document_has_no_findings() -> None:
    notas = [
        _nota("garden", NotaStatus.PROJECT),
        _nota("home", NotaStatus.CONTEXT),
        _nota("seeds", project="garden", context="home"),
        _nota("gym", recurrence_pattern=RecurrencePattern.DAILY),
    ]
    assert check_integrity(notas) == []


def test_duplicate_ids() -> None:
    results = IntegrityRules([_nota("a"), _nota("a", NotaStatus.PROJECT)]).check_duplicate_ids()

    assert len(results) == 1
    assert results[0].rule == "duplicate-id"
    assert "inbox and a project" in results[0].message


def test_broken_references() -> None:
    notas = [
        _nota("home", NotaStatus.CONTEXT),
        _nota("a", project="nowhere"),
        _nota("b", project="home"),
        _nota("c", context="home"),
    ]

    results = IntegrityRules(notas).check_references()

    assert [(r.rule, r.nota_id) for r in results] == [("missing-project", "a"), ("missing-project", "b")]
    assert "is a context, not a project" in results[1].message


def test_calendar_without_date() -> None:
    results = check_integrity([_nota("x", NotaStatus.CALENDAR)])
    assert [r.rule for r in results] == ["calendar-without-date"]
    assert results[0].level == "error"


def test_bad_recurrence_is_a_warning() -> None:
    notas = [
        _nota("a", recurrence_pattern=RecurrencePattern.WEEKLY),
        _nota("b", recurrence_pattern=RecurrencePattern.MONTHLY, recurrence_config="1,45"),
    ]

    results = check_integrity(notas)

    assert {r.nota_id for r in results} == {"a", "b"}
    assert all(r.level == "warning" and r.rule == "bad-recurrence" for r in results)


def test_finding_rendering() -> None:
    finding = check_integrity([_nota("x", NotaStatus.CALENDAR)])[0]

    assert str(finding) == "ERROR: [calendar-without-date] x - calendar nota has no start_date"
    assert finding.to_dict()["id"] == "x"


def test_non_ascii_digit_config_is_reported() -> None:
    notas = [
        _nota("a", recurrence_pattern=RecurrencePattern.MONTHLY, recurrence_config="²"),
        _nota("b", recurrence_pattern=RecurrencePattern.YEARLY, recurrence_config="1-²"),
    ]

    results = check_integrity(notas)

    assert [(r.rule, r.nota_id) for r in results] == [("bad-recurrence", "a"), ("bad-recurrence", "b")]
