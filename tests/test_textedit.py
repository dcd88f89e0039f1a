"""Tests for the in-place text edits applied to topology, coordinate and parameter files."""

from pathlib import Path

import pytest

from gmxpipe.errors import AnchorNotFoundError
from gmxpipe.utils.textedit import append_text, insert_after, read_lines, replace_line, substitute_token


def test_replace_line_keeps_every_other_byte(tmp_path: Path) -> None:
    path = tmp_path / "conf.gro"
    original = "title\n    3\natom 1\natom 2\r\natom 3\n   1.0 1.0 1.0\n"
    path.write_bytes(original.encode())

    replace_line(path, 2, "    5")

    lines = read_lines(path)
    before = original.splitlines(keepends=True)
    assert len(lines) == len(before)
    assert lines[1] == "    5\n"
    assert [l for i, l in enumerate(lines) if i != 1] == [l for i, l in enumerate(before) if i != 1]


def test_replace_line_preserves_crlf(tmp_path: Path) -> None:
    path = tmp_path / "crlf.txt"
    path.write_bytes(b"a\r\nb\r\nc\r\n")
    replace_line(path, 2, "B")
    assert path.read_bytes() == b"a\r\nB\r\nc\r\n"


def test_replace_line_out_of_range(tmp_path: Path) -> None:
    path = tmp_path / "short.txt"
    path.write_text("only\n")
    with pytest.raises(IndexError):
        replace_line(path, 2, "x")
    with pytest.raises(IndexError):
        replace_line(path, 0, "x")
    assert path.read_text() == "only\n"


def test_append_twice_leaves_two_copies(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    path.write_text("[ molecules ]\nProtein_chain_E     1\n")
    block = '; Include ligand topology\n#include "LIG.itp"\n'

    append_text(path, block)
    append_text(path, block)

    content = path.read_text()
    assert content.count('#include "LIG.itp"') == 2
    assert content.startswith("[ molecules ]\nProtein_chain_E     1\n")


def test_append_adds_missing_newline(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    path.write_text("x\n")
    append_text(path, "y")
    assert path.read_text() == "x\ny\n"


def test_substitute_replaces_all_occurrences(tmp_path: Path) -> None:
    path = tmp_path / "MD.mdp"
    path.write_text("nsteps = md_run_time\n; md_run_time again\n")

    count = substitute_token(path, "md_run_time", "500000")

    assert count == 2
    assert path.read_text() == "nsteps = 500000\n; 500000 again\n"


def test_substitute_without_match_leaves_file_identical(tmp_path: Path) -> None:
    path = tmp_path / "MD.mdp"
    original = b"nsteps = 500000\r\ndt = 0.002\n"
    path.write_bytes(original)

    assert substitute_token(path, "md_run_time", "500000") == 0
    assert path.read_bytes() == original


def test_substitute_strict_raises_on_missing_token(tmp_path: Path) -> None:
    path = tmp_path / "LIG.itp"
    path.write_text("LIG 3\n")
    with pytest.raises(AnchorNotFoundError):
        substitute_token(path, "lig_gmx2 3", "LIG 3", strict=True)


def test_substitute_rejects_empty_token(tmp_path: Path) -> None:
    path = tmp_path / "a.txt"
    path.write_text("abc\n")
    with pytest.raises(ValueError):
        substitute_token(path, "", "x")


def test_insert_after_every_matching_line(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    path.write_text("[ molecules ]\nProtein_chain_E     1\nSOL   100\n")

    hits = insert_after(path, "Protein_chain_E     1", "LIG     1")

    assert hits == 1
    assert path.read_text() == "[ molecules ]\nProtein_chain_E     1\nLIG     1\nSOL   100\n"


def test_insert_after_anchor_on_last_line_without_newline(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    path.write_text("[ molecules ]\nProtein_chain_E     1")
    insert_after(path, "Protein_chain_E     1", "LIG     1")
    assert path.read_text() == "[ molecules ]\nProtein_chain_E     1\nLIG     1\n"


def test_insert_after_missing_anchor_is_a_noop(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    original = "[ molecules ]\nProtein_chain_A     1\n"
    path.write_text(original)

    assert insert_after(path, "Protein_chain_E     1", "LIG     1") == 0
    assert path.read_text() == original


def test_insert_after_missing_anchor_strict(tmp_path: Path) -> None:
    path = tmp_path / "topol.top"
    original = "[ molecules ]\nProtein_chain_A     1\n"
    path.write_text(original)

    with pytest.raises(AnchorNotFoundError) as excinfo:
        insert_after(path, "Protein_chain_E     1", "LIG     1", strict=True)
    assert "Protein_chain_E" in str(excinfo.value)
    assert path.read_text() == original
