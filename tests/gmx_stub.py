"""Stand-in for the ``gmx`` and ``xmgrace`` binaries.

Writes the files a real call would produce (with just enough content for the
pipeline's own text edits) and records every invocation.

Environment:
  GMX_STUB_LOG   JSON-lines file receiving {"argv": [...], "stdin": "..."}
  GMX_STUB_FAIL  exit non-zero without writing outputs when this substring occurs in the command line
  GMX_STUB_RC    exit code used for GMX_STUB_FAIL (default 1)
"""
from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import List

TOPOL = """; Generated by stub pdb2gmx
#include "charmm27.ff/forcefield.itp"

[ moleculetype ]
; Name            nrexcl
Protein_chain_E     3

[ system ]
Protein in water

[ molecules ]
; Compound        #mols
Protein_chain_E     1
"""

XVG = """# This file was created by a stub
@    title "{title}"
@    xaxis  label "Time (ps)"
@    yaxis  label "{title}"
@TYPE xy
    0.000    0.100
   10.000    0.150
   20.000    0.125
"""


def gro(resname: str, n_atoms: int) -> str:
    lines = [f"{resname} stub structure", f"{n_atoms:5d}"]
    for i in range(1, n_atoms + 1):
        lines.append(f"{1:5d}{resname:<5s}{'C' + str(i):>5s}{i:5d}{0.1 * i:8.3f}{0.2:8.3f}{0.3:8.3f}")
    lines.append("   3.00000   3.00000   3.00000")
    return "\n".join(lines) + "\n"


def _write(path: Path) -> None:
    if path.suffix == ".gro":
        if path.stem.upper() == "LIG":
            path.write_text(gro("LIG", 2))
        else:
            path.write_text(gro("PRO", 3))
    elif path.suffix == ".xvg":
        path.write_text(XVG.format(title=path.stem))
    else:
        path.write_text("")


def fake_outputs(argv: List[str], workdir: Path) -> List[Path]:
    """Create the outputs ``argv`` declares; ``argv[0]`` is the tool name."""
    tool = Path(argv[0]).name
    if tool != "gmx" or len(argv) < 2:
        return []
    sub, args = argv[1], argv[2:]
    created: List[Path] = []

    if sub == "pdb2gmx":
        (workdir / "conf.gro").write_text(gro("PRO", 3))
        (workdir / "topol.top").write_text(TOPOL)
        created += [workdir / "conf.gro", workdir / "topol.top"]

    for flag in ("-o", "-num"):
        if flag in args:
            path = workdir / args[args.index(flag) + 1]
            _write(path)
            created.append(path)

    if "-deffnm" in args:
        name = args[args.index("-deffnm") + 1]
        for ext in ("gro", "cpt", "edr", "log", "xtc", "trr"):
            path = workdir / f"{name}.{ext}"
            _write(path)
            created.append(path)
    return created


def main(argv: List[str]) -> int:
    # argv: [script, tool, *args]
    command = argv[1:]
    stdin = "" if sys.stdin is None or sys.stdin.isatty() else sys.stdin.read()

    log = os.environ.get("GMX_STUB_LOG")
    if log:
        with open(log, "a") as fh:
            fh.write(json.dumps({"argv": command, "stdin": stdin}) + "\n")

    fail = os.environ.get("GMX_STUB_FAIL")
    if fail and fail in " ".join(command):
        sys.stderr.write(f"Fatal error: stub failure for {' '.join(command)}\n")
        return int(os.environ.get("GMX_STUB_RC", "1"))

    fake_outputs(command, Path.cwd())
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
