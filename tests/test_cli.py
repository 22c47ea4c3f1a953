import json
from pathlib import Path

from click.testing import CliRunner

from gtdnota.cli import cli
from gtdnota.storage import FileStorage


def _write_broken(path: Path) -> None:
    path.write_text(
        'format_version = 3\n\n[[inbox]]\nid = "a"\ntitle = "A"\nproject = "nowhere"\n',
        encoding="utf-8",
    )


def test_list_json(data_file: Path) -> None:
    result = CliRunner().invoke(cli, ["list", str(data_file), "--status", "next_action", "--json"])

    assert result.exit_code == 0, result.output
    records = json.loads(result.stdout)
    assert [r["id"] for r in records] == ["buy-seeds", "weekly-review"]
    assert records[1]["notes"] == "Go through\nall lists"


def test_list_json_exclude_notes(data_file: Path) -> None:
    result = CliRunner().invoke(cli, ["list", str(data_file), "-k", "review", "--exclude-notes", "--json"])

    records = json.loads(result.stdout)
    assert [r["id"] for r in records] == ["weekly-review"]
    assert "notes" not in records[0]


def test_list_reads_data_file_from_env(data_file: Path) -> None:
    result = CliRunner().invoke(cli, ["list", "--status", "project", "--json"], env={"GTDNOTA_FILE": str(data_file)})

    assert result.exit_code == 0, result.output
    assert [r["id"] for r in json.loads(result.stdout)] == ["garden"]


def test_list_rejects_bad_status(data_file: Path) -> None:
    result = CliRunner().invoke(cli, ["list", str(data_file), "--status", "active"])
    assert result.exit_code == 1


def test_check_clean_file(data_file: Path) -> None:
    result = CliRunner().invoke(cli, ["check", str(data_file), "--json"])

    assert result.exit_code == 0, result.output
    report = json.loads(result.stdout)
    assert report["findings"] == []
    assert report["summary"]["notas"] == 5
    assert report["summary"]["format_version"] == 3


def test_check_reports_broken_reference(tmp_path: Path) -> None:
    path = tmp_path / "broken.toml"
    _write_broken(path)

    result = CliRunner().invoke(cli, ["check", str(path), "--json"])

    assert result.exit_code == 1
    findings = json.loads(result.stdout)["findings"]
    assert [(f["rule"], f["id"]) for f in findings] == [("missing-project", "a")]


def test_check_unreadable_file(tmp_path: Path) -> None:
    path = tmp_path / "bad.toml"
    path.write_text("format_version = 12\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["check", str(path)])

    assert result.exit_code == 2


def test_migrate_rewrites_legacy_file(fixtures_dir: Path, tmp_path: Path) -> None:
    path = tmp_path / "old.toml"
    path.write_bytes((fixtures_dir / "v1.toml").read_bytes())

    result = CliRunner().invoke(cli, ["migrate", str(path)])

    assert result.exit_code == 0, result.output
    text = path.read_text(encoding="utf-8")
    assert text.startswith("format_version = 3")
    assert "[[project]]" in text
    assert "[[tasks]]" not in text


def test_migrate_dry_run_leaves_file(fixtures_dir: Path, tmp_path: Path) -> None:
    path = tmp_path / "old.toml"
    original = (fixtures_dir / "v2.toml").read_bytes()
    path.write_bytes(original)

    result = CliRunner().invoke(cli, ["migrate", str(path), "--dry-run"])

    assert result.exit_code == 0, result.output
    assert "[[context]]" in result.stdout
    assert path.read_bytes() == original


def test_migrate_write_failure_exits_cleanly(fixtures_dir: Path, tmp_path: Path, monkeypatch) -> None:
    path = tmp_path / "old.toml"
    original = (fixtures_dir / "v1.toml").read_bytes()
    path.write_bytes(original)

    def refuse(self, data: bytes, message: str) -> None:
        raise OSError("read-only file system")

    monkeypatch.setattr(FileStorage, "persist", refuse)

    result = CliRunner().invoke(cli, ["migrate", str(path)])

    assert result.exit_code == 1
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert path.read_bytes() == original
