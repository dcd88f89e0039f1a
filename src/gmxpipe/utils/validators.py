"""Precondition checks for pipeline inputs."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from ..errors import MissingInputError


def required_inputs(config) -> List[str]:
    """The seven files that must exist before the first stage runs."""
    mdp = config.inputs.mdp
    return [
        config.inputs.receptor,
        config.inputs.ligand,
        mdp.ions,
        mdp.em,
        mdp.nvt,
        mdp.npt,
        mdp.md,
    ]


def missing_files(names: Iterable[str], workdir: Path = Path(".")) -> List[str]:
    """Names from ``names`` that are not regular files under ``workdir``."""
    return [name for name in names if not (Path(workdir) / name).is_file()]


def check_required_files(names: Iterable[str], workdir: Path = Path("."), stage: Optional[str] = None) -> None:
    """Raise for the first missing file. Only existence is checked, not content."""
    for name in names:
        if not (Path(workdir) / name).is_file():
            raise MissingInputError(name, stage=stage)
