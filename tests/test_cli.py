import json
from pathlib import Path

from click.testing import CliRunner

from kasten.cli import cli


def _write_notes(notes_dir: Path) -> None:
    (notes_dir / "a.md").write_text("# A\n[[b]]\n", encoding="utf-8")
    (notes_dir / "b.md").write_text("# B\n", encoding="utf-8")


def test_gen_writes_routes(notes_dir: Path, tmp_path: Path) -> None:
    _write_notes(notes_dir)
    out = tmp_path / "site"

    result = CliRunner().invoke(cli, ["--dir", str(notes_dir), "gen", "--output", str(out)])

    assert result.exit_code == 0, result.output
    for name in ["a.json", "b.json", "z-index.json", "search.json"]:
        assert (out / name).exists()

    a_doc = json.loads((out / "a.json").read_text(encoding="utf-8"))
    assert a_doc["zettel"]["title"] == "A"
    assert a_doc["downlinks"] == [{"id": "b", "title": "B", "connection": "cf"}]

    b_doc = json.loads((out / "b.json").read_text(encoding="utf-8"))
    assert b_doc["backlinks"] == [{"id": "a", "title": "A", "connection": "cf"}]

    index = json.loads((out / "z-index.json").read_text(encoding="utf-8"))
    assert [z["id"] for z in index["zettels"]] == ["a", "b"]
    assert index["errors"] == {}


def test_gen_strict_fails_on_zettel_errors(notes_dir: Path, tmp_path: Path) -> None:
    _write_notes(notes_dir)
    (notes_dir / "c.md").write_text("[[nowhere]]\n", encoding="utf-8")

    lenient = CliRunner().invoke(cli, ["--dir", str(notes_dir), "gen", "-o", str(tmp_path / "one")])
    strict = CliRunner().invoke(cli, ["--dir", str(notes_dir), "gen", "-o", str(tmp_path / "two"), "--strict"])

    assert lenient.exit_code == 0
    assert strict.exit_code == 1
    assert "E c.html" in strict.output


def test_gen_writes_alias_redirects(notes_dir: Path, tmp_path: Path) -> None:
    _write_notes(notes_dir)
    (notes_dir / "kasten.toml").write_text('aliases = ["start:a"]\n', encoding="utf-8")
    out = tmp_path / "site"

    result = CliRunner().invoke(cli, ["--dir", str(notes_dir), "gen", "--output", str(out)])

    assert result.exit_code == 0, result.output
    assert json.loads((out / "start.json").read_text(encoding="utf-8")) == {"redirect": "a.html"}


def test_gen_version_mismatch_is_fatal(notes_dir: Path, tmp_path: Path) -> None:
    _write_notes(notes_dir)
    (notes_dir / "kasten.toml").write_text('min_version = "999.0"\n', encoding="utf-8")
    out = tmp_path / "site"

    result = CliRunner().invoke(cli, ["--dir", str(notes_dir), "gen", "--output", str(out)])

    assert result.exit_code == 1
    assert "Require kasten minimum version 999.0" in result.output
    assert not out.exists()


def test_query_from_cache(notes_dir: Path, tmp_path: Path) -> None:
    _write_notes(notes_dir)
    runner = CliRunner()

    missing = runner.invoke(cli, ["--dir", str(notes_dir), "query", "--cached"])
    assert missing.exit_code == 1
    assert "No cached graph" in missing.output

    runner.invoke(cli, ["--dir", str(notes_dir), "gen", "--output", str(tmp_path / "site")])
    result = runner.invoke(cli, ["--dir", str(notes_dir), "query", "--cached", "--id", "b"])

    assert result.exit_code == 0, result.output
    assert '"backlinks"' in result.output
    assert '"id": "a"' in result.output


def test_query_unknown_zettel(notes_dir: Path) -> None:
    _write_notes(notes_dir)

    result = CliRunner().invoke(cli, ["--dir", str(notes_dir), "query", "--id", "nope"])

    assert result.exit_code == 1
    assert "No zettel with ID 'nope'" in result.output


def test_missing_notes_dir(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--dir", str(tmp_path / "absent"), "gen"])
    assert result.exit_code == 2
