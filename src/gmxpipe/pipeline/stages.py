"""Stage descriptors and the fixed receptor-ligand workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from ..config import PipelineConfig
from ..utils.gro import splice_gro
from ..utils.textedit import append_text, insert_after, substitute_token

# apply(workdir, strict) -> number of edits
EditFn = Callable[[Path, bool], int]


@dataclass
class CommandStep:
    """One external invocation with a fixed argument list."""

    argv: List[str]
    stdin: Optional[List[str]] = None
    interactive: bool = False
    nonessential: bool = False

    @property
    def label(self) -> str:
        parts = [Path(self.argv[0]).name]
        if len(self.argv) > 1 and not self.argv[1].startswith("-"):
            parts.append(self.argv[1])
        return "_".join(parts)

    def describe(self) -> str:
        text = " ".join(self.argv)
        if self.stdin:
            text += "  <<< " + " / ".join(self.stdin)
        elif self.interactive:
            text += "  (prompts at terminal)"
        return text


@dataclass
class PythonStep:
    """An in-process step: a text edit of ``target`` or a plot export."""

    description: str
    target: str
    apply: EditFn
    nonessential: bool = False

    @property
    def label(self) -> str:
        return "edit"

    def describe(self) -> str:
        return f"{self.description} [{self.target}]"


Step = Union[CommandStep, PythonStep]


@dataclass
class Stage:
    """A named group of steps with declared input and output files."""

    name: str
    title: str
    inputs: List[str] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    steps: List[Step] = field(default_factory=list)
    modifies: List[str] = field(default_factory=list)

    def describe(self) -> List[str]:
        return [step.describe() for step in self.steps]


def _answers(config: PipelineConfig, name: str, *extra: str) -> Optional[List[str]]:
    answers = config.selections.answers(name)
    if answers is None:
        return None
    return answers + list(extra)


def _gmx(config: PipelineConfig, *args, stdin_from: Optional[str] = None, extra: Sequence[str] = ()) -> CommandStep:
    argv = [config.environment.gmx] + [str(a) for a in args]
    if stdin_from is None:
        return CommandStep(argv=argv)
    stdin = _answers(config, stdin_from, *extra)
    return CommandStep(argv=argv, stdin=stdin, interactive=stdin is None)


def _viewer(config: PipelineConfig, *args) -> CommandStep:
    return CommandStep(argv=[config.environment.viewer] + list(args), nonessential=True)


def _deffnm_outputs(prefix: str, *exts: str) -> List[str]:
    return [f"{prefix}.{ext}" for ext in exts]


def _export_step(xvg: str) -> PythonStep:
    def apply(workdir: Path, strict: bool) -> int:
        from ..analysis.xvg import export_png

        export_png(workdir / xvg)
        return 1

    return PythonStep(description="export plot", target=xvg, apply=apply, nonessential=True)


def _analysis_stage(config: PipelineConfig, name: str, title: str, inputs: List[str],
                    xvg: str, commands: List[CommandStep], viewer_args: Sequence[str]) -> Stage:
    steps: List[Step] = list(commands)
    if config.plots.launch:
        steps.append(_viewer(config, *viewer_args, xvg))
    if config.plots.export_png:
        steps.append(_export_step(xvg))
    return Stage(name=name, title=title, inputs=inputs, outputs=[xvg], steps=steps)


def build_stages(config: PipelineConfig) -> List[Stage]:
    """Return the workflow stages in execution order."""

    inp = config.inputs
    mdp = inp.mdp
    sysc = config.system
    lig = config.ligand
    maxwarn = str(sysc.maxwarn)
    itp = inp.ligand_itp
    lig_gro = Path(inp.ligand).with_suffix(".gro").name
    posre = f"posre_{lig.name}.itp"
    ligand_ndx = f"index_{lig.name}.ndx"

    pdb2gmx_args = ["pdb2gmx", "-f", inp.receptor, "-ignh"]
    if sysc.force_field is not None:
        pdb2gmx_args += ["-ff", sysc.force_field]
    if sysc.water_model is not None:
        pdb2gmx_args += ["-water", sysc.water_model]
    pdb2gmx = _gmx(config, *pdb2gmx_args)
    pdb2gmx.interactive = sysc.force_field is None or sysc.water_model is None

    def splice(workdir: Path, strict: bool) -> int:
        splice_gro(workdir / "conf.gro", workdir / lig_gro)
        return 1

    def include_ligand(workdir: Path, strict: bool) -> int:
        return append_text(workdir / "topol.top", f'; Include ligand topology\n#include "{itp}"\n')

    def add_molecule(workdir: Path, strict: bool) -> int:
        return insert_after(workdir / "topol.top", lig.molecule_anchor, f"{lig.name}     1", strict=strict)

    def rename_moleculetype(workdir: Path, strict: bool) -> int:
        return substitute_token(
            workdir / itp, f"{lig.itp_placeholder} {lig.nrexcl}", f"{lig.name} {lig.nrexcl}"
        )

    def include_restraints(workdir: Path, strict: bool) -> int:
        return append_text(workdir / "topol.top", f'; Ligand position restraints\n#include "{posre}"\n')

    def set_run_length(workdir: Path, strict: bool) -> int:
        return substitute_token(workdir / mdp.md, sysc.run_time_token, str(sysc.production_steps))

    force = [str(f) for f in sysc.restraint_force]
    em_out = _deffnm_outputs("EM", "gro", "edr", "log")
    nvt_out = _deffnm_outputs("NVT", "gro", "cpt", "edr", "log")
    npt_out = _deffnm_outputs("NPT", "gro", "cpt", "edr", "log")
    md_out = _deffnm_outputs("MD", "gro", "cpt", "xtc", "edr", "log")
    traj = ["-s", "MD.tpr", "-f", "MD_center.xtc"]

    return [
        Stage(
            name="prepare_receptor",
            title="Preparing the receptor structure",
            inputs=[inp.receptor],
            outputs=["conf.gro", "topol.top"],
            steps=[pdb2gmx],
        ),
        Stage(
            name="prepare_ligand",
            title="Preparing the ligand structure",
            inputs=[inp.ligand, "conf.gro"],
            outputs=[lig_gro],
            modifies=["conf.gro"],
            steps=[
                _gmx(config, "editconf", "-f", inp.ligand, "-o", lig_gro),
                PythonStep("splice ligand coordinates", "conf.gro", splice),
            ],
        ),
        Stage(
            name="include_ligand_topology",
            title="Editing topol.top to include ligand topology",
            inputs=["topol.top", itp],
            modifies=["topol.top"],
            steps=[
                PythonStep("append ligand include", "topol.top", include_ligand),
                PythonStep(f"add {lig.name} after '{lig.molecule_anchor.strip()}'", "topol.top", add_molecule),
            ],
        ),
        Stage(
            name="rename_ligand_moleculetype",
            title=f"Editing {itp} to set correct molecule type",
            inputs=[itp],
            modifies=[itp],
            steps=[PythonStep(f"rename {lig.itp_placeholder} to {lig.name}", itp, rename_moleculetype)],
        ),
        Stage(
            name="build_box",
            title="Creating simulation box",
            inputs=["conf.gro"],
            outputs=["box.gro"],
            steps=[_gmx(config, "editconf", "-f", "conf.gro", "-d", sysc.box_distance,
                        "-bt", sysc.box_type, "-o", "box.gro")],
        ),
        Stage(
            name="solvate",
            title="Solvating the system",
            inputs=["box.gro", "topol.top"],
            outputs=["box_sol.gro"],
            modifies=["topol.top"],
            steps=[_gmx(config, "solvate", "-cp", "box.gro", "-cs", sysc.water_config,
                        "-p", "topol.top", "-o", "box_sol.gro")],
        ),
        Stage(
            name="add_ions",
            title="Adding ions to neutralize the system",
            inputs=[mdp.ions, "box_sol.gro", "topol.top"],
            outputs=["ION.tpr", "box_sol_ion.gro"],
            modifies=["topol.top"],
            steps=[
                _gmx(config, "grompp", "-f", mdp.ions, "-c", "box_sol.gro", "-p", "topol.top", "-o", "ION.tpr"),
                _gmx(config, "genion", "-s", "ION.tpr", "-p", "topol.top", "-conc", sysc.ion_concentration,
                     "-neutral", "-o", "box_sol_ion.gro", stdin_from="genion_group"),
            ],
        ),
        Stage(
            name="energy_minimization",
            title="Performing energy minimization",
            inputs=[mdp.em, "box_sol_ion.gro", "topol.top"],
            outputs=["EM.tpr"] + em_out,
            steps=[
                _gmx(config, "grompp", "-f", mdp.em, "-c", "box_sol_ion.gro", "-p", "topol.top", "-o", "EM.tpr"),
                _gmx(config, "mdrun", "-v", "-deffnm", "EM"),
            ],
        ),
        Stage(
            name="ligand_index",
            title="Generating index file for ligand",
            inputs=[lig_gro],
            outputs=[ligand_ndx],
            steps=[_gmx(config, "make_ndx", "-f", lig_gro, "-o", ligand_ndx,
                        stdin_from="ligand_heavy_atoms", extra=["q"])],
        ),
        Stage(
            name="ligand_restraints",
            title="Generating ligand position restraints",
            inputs=[lig_gro, ligand_ndx, "topol.top"],
            outputs=[posre],
            modifies=["topol.top"],
            steps=[
                _gmx(config, "genrestr", "-f", lig_gro, "-n", ligand_ndx, "-o", posre, "-fc", *force,
                     stdin_from="restraint_group"),
                PythonStep("append restraint include", "topol.top", include_restraints),
            ],
        ),
        Stage(
            name="system_index",
            title="Creating system index file",
            inputs=["EM.gro"],
            outputs=["index.ndx"],
            steps=[_gmx(config, "make_ndx", "-f", "EM.gro", "-o", "index.ndx",
                        stdin_from="coupling_groups", extra=["q"])],
        ),
        Stage(
            name="nvt",
            title="Running NVT equilibration",
            inputs=[mdp.nvt, "EM.gro", "topol.top", "index.ndx"],
            outputs=["NVT.tpr"] + nvt_out,
            steps=[
                _gmx(config, "grompp", "-f", mdp.nvt, "-c", "EM.gro", "-r", "EM.gro", "-p", "topol.top",
                     "-n", "index.ndx", "-maxwarn", maxwarn, "-o", "NVT.tpr"),
                _gmx(config, "mdrun", "-deffnm", "NVT"),
            ],
        ),
        Stage(
            name="npt",
            title="Running NPT equilibration",
            inputs=[mdp.npt, "NVT.gro", "topol.top", "index.ndx"],
            outputs=["NPT.tpr"] + npt_out,
            steps=[
                _gmx(config, "grompp", "-f", mdp.npt, "-c", "NVT.gro", "-r", "NVT.gro", "-p", "topol.top",
                     "-n", "index.ndx", "-maxwarn", maxwarn, "-o", "NPT.tpr"),
                _gmx(config, "mdrun", "-deffnm", "NPT"),
            ],
        ),
        Stage(
            name="production",
            title="Running production MD simulation",
            inputs=[mdp.md, "NPT.gro", "NPT.cpt", "topol.top", "index.ndx"],
            outputs=["MD.tpr"] + md_out,
            modifies=[mdp.md],
            steps=[
                PythonStep(f"set {sysc.run_time_token} = {sysc.production_steps}", mdp.md, set_run_length),
                _gmx(config, "grompp", "-f", mdp.md, "-c", "NPT.gro", "-t", "NPT.cpt", "-p", "topol.top",
                     "-n", "index.ndx", "-maxwarn", maxwarn, "-o", "MD.tpr"),
                _gmx(config, "mdrun", "-deffnm", "MD"),
            ],
        ),
        Stage(
            name="recenter",
            title="Re-centering and re-wrapping coordinates",
            inputs=["MD.tpr", "MD.xtc"],
            outputs=["MD_center.xtc"],
            steps=[
                CommandStep(
                    argv=[config.environment.gmx, "trjconv", "-s", "MD.tpr", "-f", "MD.xtc", "-o",
                          "MD_center.xtc", "-center", "-pbc", "mol", "-ur", "compact"],
                    stdin=_trjconv_groups(config),
                    interactive=_trjconv_groups(config) is None,
                )
            ],
        ),
        Stage(
            name="extract_frame",
            title="Extracting the first frame of the trajectory",
            inputs=["MD.tpr", "MD_center.xtc"],
            outputs=["start.pdb"],
            steps=[_gmx(config, "trjconv", *traj, "-o", "start.pdb", "-dump", "0", stdin_from="dump_group")],
        ),
        _analysis_stage(
            config, "analysis_rmsd", "Performing RMSD analysis", ["MD.tpr", "MD_center.xtc"], "rmsd.xvg",
            [
                _gmx(config, "rms", *traj, "-o", "rmsd.xvg", stdin_from="rms"),
                _gmx(config, "rms", *traj, "-o", "rmsd.xvg", "-tu", "ns", stdin_from="rms"),
            ],
            [],
        ),
        _analysis_stage(
            config, "analysis_rmsf", "Performing RMSF analysis", ["MD.tpr", "MD_center.xtc"], "rmsf.xvg",
            [_gmx(config, "rmsf", *traj, "-o", "rmsf.xvg", stdin_from="rmsf")],
            [],
        ),
        _analysis_stage(
            config, "analysis_hbond", "Performing hydrogen bond analysis", ["MD.tpr", "MD_center.xtc"], "hb.xvg",
            [
                _gmx(config, "hbond", *traj, "-num", "hb.xvg", stdin_from="hbond"),
                _gmx(config, "hbond", *traj, "-num", "hb.xvg", "-tu", "ns", stdin_from="hbond"),
            ],
            [],
        ),
        _analysis_stage(
            config, "analysis_gyrate", "Performing radius of gyration analysis", ["MD.tpr", "MD_center.xtc"],
            "gyrate1.xvg",
            [_gmx(config, "gyrate", *traj, "-o", "gyrate1.xvg", stdin_from="gyrate")],
            [],
        ),
        _analysis_stage(
            config, "analysis_energy", "Performing energy analysis", ["MD.edr"], "energy1.xvg",
            [_gmx(config, "energy", "-f", "MD.edr", "-o", "energy1.xvg", stdin_from="energy")],
            ["-nxy"],
        ),
    ]


def _trjconv_groups(config: PipelineConfig) -> Optional[List[str]]:
    center = config.selections.answers("center_group")
    output = config.selections.answers("output_group")
    if center is None or output is None:
        return None
    return center + output


def initial_inputs(config: PipelineConfig) -> List[str]:
    """Files the user provides; everything else is produced by a stage."""
    mdp = config.inputs.mdp
    return [
        config.inputs.receptor,
        config.inputs.ligand,
        config.inputs.ligand_itp,
        mdp.ions,
        mdp.em,
        mdp.nvt,
        mdp.npt,
        mdp.md,
    ]


def stage_names(stages: Sequence[Stage]) -> List[str]:
    return [stage.name for stage in stages]
