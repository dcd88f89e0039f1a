"""Helpers for .gro coordinate files."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple, Union

import mdtraj as md

from .textedit import read_lines, replace_line

logger = logging.getLogger(__name__)


def load_structure(path: Union[str, Path]) -> md.Trajectory:
    """Load a single-frame structure with mdtraj, raising ValueError when it cannot be parsed."""
    try:
        return md.load(str(path))
    except Exception as exc:
        raise ValueError(f"{path} is not a readable .gro file: {exc}") from exc


def _split_gro(path: Union[str, Path]) -> Tuple[List[str], int]:
    """Return the raw lines of a .gro file and its atom count."""
    natoms = load_structure(path).n_atoms
    lines = read_lines(path)
    if len(lines) < natoms + 3:
        raise ValueError(f"{path} holds {natoms} atoms but has only {len(lines) - 3} atom lines")
    declared = lines[1].split()
    if not declared or declared[0] != str(natoms):
        raise ValueError(f"{path}: line 2 says {lines[1].strip()!r} but {natoms} atoms were read")
    return lines, natoms


def atom_count(path: Union[str, Path]) -> int:
    return _split_gro(path)[1]


def splice_gro(target: Union[str, Path], source: Union[str, Path]) -> int:
    """Append the atoms of ``source`` to ``target`` and fix the atom count on line 2.

    The atom records are copied verbatim right before the box line of
    ``target``, so the receptor coordinates and their precision stay as
    GROMACS wrote them. Returns the new atom count.
    """
    src_lines, src_n = _split_gro(source)
    dst_lines, dst_n = _split_gro(target)

    atoms = src_lines[2:2 + src_n]
    if atoms and not atoms[-1].endswith("\n"):
        atoms[-1] += "\n"
    box_index = 2 + dst_n
    merged = dst_lines[:box_index] + atoms + dst_lines[box_index:]

    with open(target, "w", newline="") as fh:
        fh.write("".join(merged))

    total = dst_n + src_n
    replace_line(target, 2, f"{total:5d}")
    merged_n = load_structure(target).n_atoms
    if merged_n != total:
        raise ValueError(f"{target} has {merged_n} atoms after adding {source}, expected {total}")
    logger.info("Spliced %d atom(s) from %s into %s (%d atoms)", src_n, source, target, total)
    return total
