"""Tests for merging ligand coordinates into the receptor .gro file."""

from pathlib import Path

import mdtraj as md
import pytest

from gmxpipe.utils.gro import atom_count, splice_gro

from gmx_stub import gro


def test_splice_appends_atoms_before_box(tmp_path: Path) -> None:
    conf = tmp_path / "conf.gro"
    lig = tmp_path / "LIG.gro"
    conf.write_text(gro("PRO", 3))
    lig.write_text(gro("LIG", 2))

    total = splice_gro(conf, lig)

    lines = conf.read_text().splitlines()
    assert total == 5
    assert lines[0] == "PRO stub structure"
    assert lines[1] == "    5"
    assert len(lines) == 5 + 3
    assert [l[5:10].strip() for l in lines[2:7]] == ["PRO", "PRO", "PRO", "LIG", "LIG"]
    assert lines[-1] == "   3.00000   3.00000   3.00000"
    assert atom_count(conf) == 5


def test_splice_leaves_source_untouched(tmp_path: Path) -> None:
    conf = tmp_path / "conf.gro"
    lig = tmp_path / "LIG.gro"
    conf.write_text(gro("PRO", 1))
    lig.write_text(gro("LIG", 2))
    before = lig.read_bytes()

    splice_gro(conf, lig)

    assert lig.read_bytes() == before


def test_atom_count_rejects_truncated_file(tmp_path: Path) -> None:
    bad = tmp_path / "bad.gro"
    bad.write_text("title\n   10\n    1PRO     C1    1   0.100   0.200   0.300\n   3.0 3.0 3.0\n")
    with pytest.raises(ValueError):
        atom_count(bad)


def test_atom_count_rejects_non_numeric_header(tmp_path: Path) -> None:
    bad = tmp_path / "bad.gro"
    bad.write_text("title\nnot a number\n   3.0 3.0 3.0\n")
    with pytest.raises(ValueError):
        atom_count(bad)


def test_spliced_file_loads_with_ligand_last(tmp_path: Path) -> None:
    conf = tmp_path / "conf.gro"
    lig = tmp_path / "LIG.gro"
    conf.write_text(gro("PRO", 3))
    lig.write_text(gro("LIG", 2))

    splice_gro(conf, lig)

    traj = md.load(str(conf))
    assert traj.n_atoms == 5
    assert traj.xyz[0, 4].tolist() == pytest.approx([0.2, 0.2, 0.3])


def test_atom_count_rejects_header_mismatch(tmp_path: Path) -> None:
    bad = tmp_path / "bad.gro"
    text = gro("PRO", 3).splitlines(keepends=True)
    bad.write_text("".join(text[:1] + ["    2\n"] + text[2:]))
    with pytest.raises(ValueError):
        atom_count(bad)
