from pathlib import Path

import pytest

from kasten.config import Config
from kasten.models import (
    Ambiguous,
    AmbiguousFiles,
    RawNote,
    Unique,
    ZettelFormat,
    ZettelID,
)
from kasten.tracking import RecordingTracker
from kasten.web.cache import MemoryCache
from kasten.zettelkasten.loader import (
    discover_zettel_files,
    load_zettelkasten,
    load_zettelkasten_from,
    read_zettel_file,
    resolve_step,
    resolve_zettel_files,
)

MD = ZettelFormat.MARKDOWN
ORG = ZettelFormat.ORG


def _write(notes_dir: Path, rel_path: str, text: str = "") -> Path:
    path = notes_dir / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class _RecordingLoad:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def __call__(self, rel_path: str) -> str:
        self.calls.append(rel_path)
        return f"text of {rel_path}"


def test_discover_flat(notes_dir: Path) -> None:
    for rel in ["b.md", "a.md", "c.org", "sub/d.md", ".hidden/e.md", ".f.md", "g.txt"]:
        _write(notes_dir, rel)

    assert discover_zettel_files(notes_dir, [MD, ORG]) == [
        (MD, ["a.md", "b.md"]),
        (ORG, ["c.org"]),
    ]


def test_discover_recursive(notes_dir: Path) -> None:
    for rel in ["b.md", "a.md", "sub/d.md", "sub/deeper/e.md", ".hidden/x.md"]:
        _write(notes_dir, rel)

    assert discover_zettel_files(notes_dir, [MD], recurse=True) == [
        (MD, ["a.md", "b.md", "sub/d.md", "sub/deeper/e.md"]),
    ]


def test_discover_keeps_configured_format_order(notes_dir: Path) -> None:
    _write(notes_dir, "a.md")
    _write(notes_dir, "b.org")

    assert [fmt for fmt, _ in discover_zettel_files(notes_dir, [ORG, MD])] == [ORG, MD]


def test_distinct_ids_are_all_unique() -> None:
    load = _RecordingLoad()
    dups, uniques = resolve_zettel_files([(MD, ["a.md", "b.md", "c.md"])], load)

    assert dups == {}
    assert set(uniques) == {ZettelID("a"), ZettelID("b"), ZettelID("c")}
    assert uniques[ZettelID("a")] == RawNote(MD, "a.md", "text of a.md")
    assert load.calls == ["a.md", "b.md", "c.md"]


def test_two_claimants_become_ambiguous() -> None:
    load = _RecordingLoad()
    dups, uniques = resolve_zettel_files([(MD, ["one/x.md", "two/x.md"])], load)

    assert dups == {ZettelID("x"): AmbiguousFiles(("one/x.md", "two/x.md"))}
    assert uniques == {}
    # The second claimant is never read
    assert load.calls == ["one/x.md"]


def test_every_claimant_is_listed_in_discovery_order() -> None:
    paths = ["p/x.md", "q/x.md", "r/x.md", "s/x.md", "y.md"]

    load = _RecordingLoad()
    dups, uniques = resolve_zettel_files([(MD, paths)], load)
    assert dups[ZettelID("x")].paths == ("p/x.md", "q/x.md", "r/x.md", "s/x.md")
    assert load.calls == ["p/x.md", "y.md"]
    assert set(uniques) == {ZettelID("y")}

    reversed_load = _RecordingLoad()
    reversed_dups, _ = resolve_zettel_files([(MD, list(reversed(paths)))], reversed_load)
    assert reversed_dups[ZettelID("x")].paths == ("s/x.md", "r/x.md", "q/x.md", "p/x.md")
    assert set(reversed_dups[ZettelID("x")].paths) == set(dups[ZettelID("x")].paths)
    assert reversed_load.calls == ["y.md", "s/x.md"]


def test_collision_across_formats_follows_format_order() -> None:
    load = _RecordingLoad()
    dups, _ = resolve_zettel_files([(ORG, ["x.org"]), (MD, ["x.md"])], load)

    assert dups == {ZettelID("x"): AmbiguousFiles(("x.org", "x.md"))}
    assert load.calls == ["x.org"]


def test_unresolvable_files_are_skipped_silently() -> None:
    load = _RecordingLoad()
    dups, uniques = resolve_zettel_files([(MD, ["bad?.md", "notes.txt", "z-index.md"])], load)

    assert dups == {}
    assert uniques == {}
    assert load.calls == []


def test_resolve_step_transitions() -> None:
    load = _RecordingLoad()
    entries: dict = {}

    entries = resolve_step(entries, (MD, "a/x.md"), load=load)
    assert entries == {ZettelID("x"): Unique(MD, "a/x.md", "text of a/x.md")}

    entries = resolve_step(entries, (MD, "b/x.md"), load=load)
    assert entries == {ZettelID("x"): Ambiguous(("a/x.md", "b/x.md"))}

    entries = resolve_step(entries, (MD, "c/x.md"), load=load)
    assert entries == {ZettelID("x"): Ambiguous(("a/x.md", "b/x.md", "c/x.md"))}
    assert load.calls == ["a/x.md"]


def test_read_is_lenient_and_tracked(notes_dir: Path) -> None:
    path = notes_dir / "bytes.md"
    path.write_bytes(b"caf\xff ok")
    tracker = RecordingTracker()

    text = read_zettel_file(notes_dir, "bytes.md", tracker)

    assert text == "caf\ufffd ok"
    assert tracker.paths == [path]
    assert tracker.stale() == []


def test_read_missing_file_is_fatal(notes_dir: Path) -> None:
    with pytest.raises(FileNotFoundError):
        read_zettel_file(notes_dir, "missing.md", RecordingTracker())


def test_tracker_reports_changed_files(notes_dir: Path) -> None:
    path = _write(notes_dir, "a.md", "one")
    tracker = RecordingTracker()
    read_zettel_file(notes_dir, "a.md", tracker)

    path.unlink()
    assert tracker.stale() == [path]


def test_load_excludes_ambiguous_ids_from_graph(notes_dir: Path) -> None:
    _write(notes_dir, "one/x.md", "# One")
    _write(notes_dir, "two/x.md", "# Two")
    _write(notes_dir, "y.md", "# Y\n[[x]]")

    files = discover_zettel_files(notes_dir, [MD], recurse=True)
    tracker = RecordingTracker()
    graph, contents, errors = load_zettelkasten_from(notes_dir, files, tracker)

    assert errors[ZettelID("x")] == AmbiguousFiles(("one/x.md", "two/x.md"))
    assert not graph.has_zettel(ZettelID("x"))
    assert [zc.zettel.id for zc in contents] == [ZettelID("y")]
    # Only the first claimant of x and y were read
    assert tracker.paths == [notes_dir / "one/x.md", notes_dir / "y.md"]


def test_one_node_per_distinct_file(notes_dir: Path) -> None:
    for name in ["a", "b", "c"]:
        _write(notes_dir, f"{name}.md", f"# {name}")

    graph, contents, errors = load_zettelkasten_from(notes_dir, discover_zettel_files(notes_dir, [MD]))

    assert errors == {}
    assert len(graph.nodes) == 3
    assert len(contents) == 3


def test_load_zettelkasten_refreshes_cache(notes_dir: Path) -> None:
    _write(notes_dir, "a.md", "# A\n[[b]]")
    _write(notes_dir, "b.md", "# B\n[[nowhere]]")
    cache = MemoryCache()

    graph, _, errors = load_zettelkasten(Config(), notes_dir, cache=cache)

    assert cache.retrieve() == (graph, errors)


def test_load_zettelkasten_respects_formats(notes_dir: Path) -> None:
    _write(notes_dir, "a.md", "# A")
    _write(notes_dir, "b.org", "#+TITLE: B\n")

    graph, _, _ = load_zettelkasten(Config(formats=[ORG]), notes_dir, cache=MemoryCache())

    assert [z.id for z in graph.get_zettels()] == [ZettelID("b")]


def test_default_cache_lives_in_hidden_directory(notes_dir: Path) -> None:
    _write(notes_dir, "a.md", "# A")

    load_zettelkasten(Config(recurse_dir=True), notes_dir)
    graph, _, _ = load_zettelkasten(Config(recurse_dir=True), notes_dir)

    assert (notes_dir / ".kasten" / "cache.json").exists()
    assert [z.id for z in graph.get_zettels()] == [ZettelID("a")]
