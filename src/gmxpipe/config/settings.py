"""Pipeline configuration: defaults, YAML loading and validation."""

from __future__ import annotations

import copy
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import yaml

from ..errors import ConfigError
from .choices import BOX_TYPES, DEFAULT_SELECTIONS, FAILURE_POLICIES, FORCE_FIELDS, WATER_MODELS

_DRY_RUN_ENV = "GMXPIPE_DRY_RUN"

Selection = Optional[Union[str, List[str]]]


@dataclass
class MdpFiles:
    ions: str = "ions.mdp"
    em: str = "EM.mdp"
    nvt: str = "NVT.mdp"
    npt: str = "NPT.mdp"
    md: str = "MD.mdp"


@dataclass
class InputFiles:
    receptor: str = "REC.pdb"
    ligand: str = "LIG.pdb"
    ligand_itp: str = "LIG.itp"
    mdp: MdpFiles = field(default_factory=MdpFiles)


@dataclass
class EnvironmentConfig:
    gmxrc: Optional[str] = "/usr/local/gromacs/bin/GMXRC"
    gmx: str = "gmx"
    viewer: str = "xmgrace"


@dataclass
class SystemConfig:
    force_field: Optional[str] = "charmm27"
    water_model: Optional[str] = "tip3p"
    box_type: str = "triclinic"
    box_distance: float = 1.0
    water_config: str = "spc216.gro"
    ion_concentration: float = 0.1
    restraint_force: List[int] = field(default_factory=lambda: [1000, 1000, 1000])
    maxwarn: int = 2
    production_steps: int = 500000
    run_time_token: str = "md_run_time"


@dataclass
class LigandConfig:
    name: str = "LIG"
    molecule_anchor: str = "Protein_chain_E     1"
    itp_placeholder: str = "lig_gmx2"
    nrexcl: int = 3


@dataclass
class Selections:
    genion_group: Selection = DEFAULT_SELECTIONS["genion_group"]
    ligand_heavy_atoms: Selection = DEFAULT_SELECTIONS["ligand_heavy_atoms"]
    restraint_group: Selection = DEFAULT_SELECTIONS["restraint_group"]
    coupling_groups: Selection = DEFAULT_SELECTIONS["coupling_groups"]
    center_group: Selection = DEFAULT_SELECTIONS["center_group"]
    output_group: Selection = DEFAULT_SELECTIONS["output_group"]
    dump_group: Selection = DEFAULT_SELECTIONS["dump_group"]
    rms: Selection = field(default_factory=lambda: list(DEFAULT_SELECTIONS["rms"]))
    rmsf: Selection = field(default_factory=lambda: list(DEFAULT_SELECTIONS["rmsf"]))
    hbond: Selection = field(default_factory=lambda: list(DEFAULT_SELECTIONS["hbond"]))
    gyrate: Selection = field(default_factory=lambda: list(DEFAULT_SELECTIONS["gyrate"]))
    energy: Selection = field(default_factory=lambda: list(DEFAULT_SELECTIONS["energy"]))

    def answers(self, name: str) -> Optional[List[str]]:
        """Return the prompt answers for ``name`` as a list of lines."""
        value = getattr(self, name)
        if value is None:
            return None
        if isinstance(value, (list, tuple)):
            return [str(v) for v in value]
        return [str(value)]


@dataclass
class RunnerConfig:
    failure_policy: str = "abort"
    strict_anchors: bool = True
    dry_run: bool = False
    log_dir: str = "runlogs"


@dataclass
class PlotConfig:
    launch: bool = True
    export_png: bool = False


@dataclass
class PipelineConfig:
    """Normalized configuration for one pipeline run."""

    workdir: Path = Path(".")
    inputs: InputFiles = field(default_factory=InputFiles)
    environment: EnvironmentConfig = field(default_factory=EnvironmentConfig)
    system: SystemConfig = field(default_factory=SystemConfig)
    ligand: LigandConfig = field(default_factory=LigandConfig)
    selections: Selections = field(default_factory=Selections)
    runner: RunnerConfig = field(default_factory=RunnerConfig)
    plots: PlotConfig = field(default_factory=PlotConfig)

    def __post_init__(self) -> None:
        self.workdir = Path(self.workdir)

    @property
    def log_dir(self) -> Path:
        return self.path(self.runner.log_dir)

    def path(self, name: Union[str, Path]) -> Path:
        """Resolve a file name relative to the working directory."""
        p = Path(name)
        return p if p.is_absolute() else self.workdir / p

    def unset_choices(self) -> List[str]:
        """Dotted names of choices left as ``null``; these need an answer before running."""
        unset = [
            f"system.{name}"
            for name in ("force_field", "water_model")
            if getattr(self.system, name) is None
        ]
        unset += [
            f"selections.{f.name}"
            for f in fields(self.selections)
            if getattr(self.selections, f.name) is None
        ]
        return unset

    def set_choice(self, dotted: str, value: Any) -> None:
        section, _, key = dotted.partition(".")
        target = getattr(self, section, None)
        if target is None or not hasattr(target, key):
            raise ConfigError(f"Unknown setting: {dotted}")
        setattr(target, key, value)

    def validate(self) -> "PipelineConfig":
        sysc = self.system
        if sysc.force_field is not None and sysc.force_field not in FORCE_FIELDS:
            raise ConfigError(
                f"Unknown force field '{sysc.force_field}'. Choose one of: {', '.join(FORCE_FIELDS)}"
            )
        if sysc.water_model is not None and sysc.water_model not in WATER_MODELS:
            raise ConfigError(
                f"Unknown water model '{sysc.water_model}'. Choose one of: {', '.join(WATER_MODELS)}"
            )
        if sysc.box_type not in BOX_TYPES:
            raise ConfigError(f"Unknown box type '{sysc.box_type}'. Choose one of: {', '.join(BOX_TYPES)}")
        if self.runner.failure_policy not in FAILURE_POLICIES:
            raise ConfigError(
                f"Unknown failure policy '{self.runner.failure_policy}'. "
                f"Choose one of: {', '.join(FAILURE_POLICIES)}"
            )
        for name in ("box_distance", "ion_concentration", "production_steps"):
            if getattr(sysc, name) <= 0:
                raise ConfigError(f"system.{name} must be positive")
        if sysc.maxwarn < 0:
            raise ConfigError("system.maxwarn must not be negative")
        if len(sysc.restraint_force) != 3:
            raise ConfigError("system.restraint_force needs three components (x, y, z)")
        if not self.ligand.name or any(ch.isspace() for ch in self.ligand.name):
            raise ConfigError("ligand.name must be a single non-empty word")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["workdir"] = str(self.workdir)
        return data


_SECTIONS = {
    "inputs": InputFiles,
    "environment": EnvironmentConfig,
    "system": SystemConfig,
    "ligand": LigandConfig,
    "selections": Selections,
    "runner": RunnerConfig,
    "plots": PlotConfig,
}


def _coerce_mapping(config: Any, *, source: str) -> Mapping[str, Any]:
    if isinstance(config, Mapping):
        return config
    raise TypeError(f"Expected mapping for {source}, got {type(config)!r}")


def _deep_update(base: Dict[str, Any], updates: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), Mapping):
            base[key] = _deep_update(dict(base[key]), value)
        else:
            base[key] = value
    return base


def _build_section(cls, data: Any, name: str):
    data = _coerce_mapping(data or {}, source=name)
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown key(s) in '{name}': {', '.join(unknown)}")
    kwargs = dict(data)
    if cls is InputFiles and "mdp" in kwargs:
        kwargs["mdp"] = _build_section(MdpFiles, kwargs["mdp"], "inputs.mdp")
    return cls(**kwargs)


def load_config(source: Optional[Any] = None, **overrides: Any) -> PipelineConfig:
    """Load pipeline config from a YAML file, a mapping, or kwargs.

    Keyword overrides are merged section by section, so
    ``load_config(path, runner={"dry_run": True})`` keeps the other runner
    settings from the file.
    """

    data: Dict[str, Any] = {}
    base_dir: Optional[Path] = None

    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise FileNotFoundError(f"Pipeline config not found: {path}")
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Could not parse {path}: {exc}") from exc
        data = dict(_coerce_mapping(data, source=str(path)))
        base_dir = path.parent
    elif source is not None:
        data = copy.deepcopy(dict(_coerce_mapping(source, source="config")))

    if overrides:
        data = _deep_update(data, overrides)

    unknown = sorted(set(data) - set(_SECTIONS) - {"workdir"})
    if unknown:
        raise ConfigError(f"Unknown config section(s): {', '.join(unknown)}")

    workdir = Path(data.get("workdir", base_dir if base_dir is not None else "."))
    if base_dir is not None and not workdir.is_absolute() and "workdir" in data:
        workdir = base_dir / workdir

    config = PipelineConfig(
        workdir=workdir,
        **{name: _build_section(cls, data.get(name), name) for name, cls in _SECTIONS.items()},
    )

    if os.environ.get(_DRY_RUN_ENV, "").strip() not in ("", "0"):
        config.runner.dry_run = True

    return config.validate()
