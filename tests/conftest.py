"""Shared pytest fixtures: a populated working directory, configs and fake runners."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from gmxpipe.config import load_config, write_templates
from gmxpipe.engine import ToolResult

from gmx_stub import fake_outputs

TESTS_DIR = Path(__file__).resolve().parent

REC_PDB = """ATOM      1  N   ALA E   1      11.104   6.134  -6.504  1.00  0.00           N
ATOM      2  CA  ALA E   1      11.639   6.071  -5.147  1.00  0.00           C
ATOM      3  C   ALA E   1      13.149   5.985  -5.182  1.00  0.00           C
END
"""

LIG_PDB = """HETATM    1  C1  LIG A   1       1.000   2.000   3.000  1.00  0.00           C
HETATM    2  O1  LIG A   1       1.500   2.500   3.500  1.00  0.00           O
END
"""

LIG_ITP = """; ligand topology
[ moleculetype ]
; Name            nrexcl
lig_gmx2 3

[ atoms ]
;   nr  type  resnr residue  atom   cgnr     charge       mass
     1    c3      1    LIG     C1      1    -0.1000     12.01000
     2    o       1    LIG     O1      2     0.1000     16.00000
"""


def base_settings(workdir: Path, **overrides: Any) -> Dict[str, Any]:
    """Config mapping for tests: no GMXRC, no viewer, logs inside ``workdir``."""
    settings: Dict[str, Any] = {
        "workdir": str(workdir),
        "environment": {"gmxrc": None},
        "plots": {"launch": False},
        "runner": {"log_dir": "runlogs"},
    }
    for section, values in overrides.items():
        if isinstance(values, dict):
            settings.setdefault(section, {}).update(values)
        else:
            settings[section] = values
    return settings


@pytest.fixture
def workdir(tmp_path: Path) -> Path:
    """A directory holding REC.pdb, LIG.pdb, LIG.itp and the five .mdp files."""
    wd = tmp_path / "run"
    wd.mkdir()
    (wd / "REC.pdb").write_text(REC_PDB)
    (wd / "LIG.pdb").write_text(LIG_PDB)
    (wd / "LIG.itp").write_text(LIG_ITP)
    write_templates(load_config(base_settings(wd)))
    return wd


@pytest.fixture
def make_config(workdir: Path):
    def _make(**overrides: Any):
        return load_config(base_settings(workdir, **overrides))

    return _make


@pytest.fixture(autouse=True)
def _no_dry_run_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GMXPIPE_DRY_RUN", raising=False)


class FakeRunner:
    """Records calls instead of executing them and writes the expected outputs."""

    def __init__(self, workdir: Path, fail_on: Optional[str] = None, returncode: int = 1,
                 fail_viewer: bool = False):
        self.workdir = Path(workdir)
        self.fail_on = fail_on
        self.returncode = returncode
        self.fail_viewer = fail_viewer
        self.calls: List[Dict[str, Any]] = []

    def run(self, argv, stdin=None, log_name=None, interactive=False) -> ToolResult:
        argv = [str(a) for a in argv]
        self.calls.append({"argv": argv, "stdin": stdin, "log_name": log_name, "interactive": interactive})
        if self.fail_viewer and argv[0] == "xmgrace":
            return ToolResult(argv=argv, returncode=127, stderr="xmgrace: command not found")
        if self.fail_on and self.fail_on in " ".join(argv):
            return ToolResult(argv=argv, returncode=self.returncode, stderr="Fatal error:\nstub failure")
        fake_outputs(argv, self.workdir)
        return ToolResult(argv=argv, returncode=0)

    @property
    def argvs(self) -> List[List[str]]:
        return [call["argv"] for call in self.calls]


@pytest.fixture
def fake_runner_cls():
    return FakeRunner


@pytest.fixture
def stub_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Put executable ``gmx`` and ``xmgrace`` stand-ins first on PATH.

    Invocations are logged to ``<bin>/calls.jsonl``.
    """
    if os.name == "nt":
        pytest.skip("shell stubs need a POSIX system")
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    stub = TESTS_DIR / "gmx_stub.py"
    for tool in ("gmx", "xmgrace"):
        script = bin_dir / tool
        script.write_text(f'#!/bin/sh\nexec "{sys.executable}" "{stub}" {tool} "$@"\n')
        script.chmod(0o755)
    monkeypatch.setenv("PATH", str(bin_dir) + os.pathsep + os.environ.get("PATH", ""))
    monkeypatch.setenv("GMX_STUB_LOG", str(bin_dir / "calls.jsonl"))
    monkeypatch.delenv("GMX_STUB_FAIL", raising=False)
    monkeypatch.delenv("GMX_STUB_RC", raising=False)
    return bin_dir
