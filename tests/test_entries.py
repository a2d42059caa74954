"""Tests for loading entries from the entries/ directory."""

from __future__ import annotations

from pathlib import Path

import pytest

from tagpress import Entry, MissingEntryFile, UnreadableInput, load_entries, parse_tags


def test_parse_tags_splits_on_any_whitespace() -> None:
    assert parse_tags("linux  cli\n\trust\n") == ("linux", "cli", "rust")


def test_parse_tags_collapses_duplicates() -> None:
    assert parse_tags("linux cli linux") == ("linux", "cli")


def test_parse_tags_is_case_sensitive() -> None:
    assert parse_tags("Linux linux") == ("Linux", "linux")


def test_parse_tags_whitespace_only() -> None:
    assert parse_tags("  \n\t \n") == ()


def test_load_entries_reads_each_subdirectory(project) -> None:
    project.entry("B", "linux", "<p>B</p>")
    project.entry("A", "linux cli", "<p>A</p>")

    entries = load_entries(project.root / "entries")

    assert entries == [
        Entry(name="A", tags=("linux", "cli"), content="<p>A</p>"),
        Entry(name="B", tags=("linux",), content="<p>B</p>"),
    ]


def test_content_is_read_verbatim(project) -> None:
    content = "<p>line one</p>\r\n<p>café $TITLE</p>"
    project.entry("post", "x", content)

    (entry,) = load_entries(project.root / "entries")

    assert entry.content == content


def test_files_and_hidden_directories_are_skipped(project) -> None:
    project.entry("post", "x")
    project.write("entries/README.txt", "not an entry")
    (project.root / "entries" / ".git").mkdir()

    entries = load_entries(project.root / "entries")

    assert [e.name for e in entries] == ["post"]


def test_whitespace_only_tags_gives_empty_tags(project) -> None:
    project.entry("untagged", "   \n\n ")

    (entry,) = load_entries(project.root / "entries")

    assert entry.tags == ()


@pytest.mark.parametrize("missing", ["tags.txt", "content.html"])
def test_missing_entry_file_aborts(project, missing: str) -> None:
    project.entry("good", "x")
    broken = project.entry("broken", "x")
    (broken / missing).unlink()

    with pytest.raises(MissingEntryFile) as excinfo:
        load_entries(project.root / "entries")

    assert excinfo.value.entry == "broken"
    assert excinfo.value.filename == missing
    assert "broken" in str(excinfo.value)
    assert missing in str(excinfo.value)


def test_missing_entries_directory(tmp_path: Path) -> None:
    with pytest.raises(UnreadableInput, match="Entries directory not found"):
        load_entries(tmp_path / "entries")


def test_undecodable_content_is_unreadable_input(project) -> None:
    entry_dir = project.entry("bad", "x")
    (entry_dir / "content.html").write_bytes(b"\xff\xfe\x00bad")

    with pytest.raises(UnreadableInput, match="content.html"):
        load_entries(project.root / "entries")
