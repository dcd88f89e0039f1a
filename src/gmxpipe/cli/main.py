"""gmxpipe Command Line Interface.

This module serves as the main entry point for the gmxpipe command line tools.
"""
import sys
from pathlib import Path

import click
import questionary
import yaml
from rich.console import Console
from rich.table import Table

from ..config import load_config, write_templates
from ..errors import (
    ConfigError,
    EnvironmentSetupError,
    GmxPipeError,
    MissingInputError,
    PlanError,
    StageFailedError,
)
from ..logging_config import configure_logging
from ..pipeline import (
    FailurePolicy,
    Pipeline,
    build_stages,
    clean as clean_outputs,
    initial_inputs,
    validate_plan,
)
from ..utils.toolchain import require_tool, source_environment
from ..utils.validators import missing_files, required_inputs
from .prompts import prompt_for_choices

console = Console()

DEFAULT_CONFIG_NAME = "gmxpipe.yaml"


def _load(config_path, workdir, **overrides):
    """Load the run config; ``gmxpipe.yaml`` in the working directory is picked up automatically."""
    if workdir is not None:
        overrides["workdir"] = str(Path(workdir).resolve())
    if config_path is None:
        candidate = Path(workdir or ".") / DEFAULT_CONFIG_NAME
        if candidate.exists():
            config_path = candidate
    try:
        return load_config(config_path, **overrides)
    except (ConfigError, FileNotFoundError, TypeError) as e:
        console.print(f"[red]Error: configuration issue - {e}[/red]")
        sys.exit(1)


config_option = click.option(
    "--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
    help="Path to the YAML configuration file",
)
workdir_option = click.option(
    "--workdir", "-w", type=click.Path(file_okay=False), help="Directory holding the input files",
)


@click.group()
def cli():
    """gmxpipe: receptor-ligand GROMACS MD workflow"""
    pass


@cli.command()
@config_option
@workdir_option
@click.option("--overwrite", is_flag=True, help="Replace existing .mdp files")
@click.option("--write-config", is_flag=True, help=f"Also write a default {DEFAULT_CONFIG_NAME}")
def init(config_path, workdir, overwrite, write_config):
    """Write the default simulation-parameter files into the working directory."""
    cfg = _load(config_path, workdir)
    written = write_templates(cfg, overwrite=overwrite)
    for path in written:
        console.print(f"[green]wrote[/green] {path}")
    if not written:
        console.print("All parameter files already exist (use --overwrite to replace them).")
    if write_config:
        dest = cfg.path(DEFAULT_CONFIG_NAME)
        data = cfg.to_dict()
        data.pop("workdir", None)
        dest.write_text(yaml.safe_dump(data, sort_keys=False))
        console.print(f"[green]wrote[/green] {dest}")


@cli.command()
@config_option
@workdir_option
def check(config_path, workdir):
    """Check the GROMACS environment, the input files and the stage plan."""
    cfg = _load(config_path, workdir)
    problems = 0

    table = Table(title=f"Inputs in {cfg.workdir}")
    table.add_column("File")
    table.add_column("Status")
    absent = set(missing_files(initial_inputs(cfg), cfg.workdir))
    required = set(required_inputs(cfg))
    for name in initial_inputs(cfg):
        if name not in absent:
            table.add_row(name, "[green]found[/green]")
        elif name in required:
            table.add_row(name, "[red]missing[/red]")
            problems += 1
        else:
            table.add_row(name, "[yellow]missing (needed later)[/yellow]")
    console.print(table)

    try:
        env = source_environment(cfg.environment.gmxrc)
        if cfg.environment.gmxrc:
            require_tool(cfg.environment.gmx, env)
        console.print("[green]GROMACS environment OK[/green]")
    except EnvironmentSetupError as e:
        console.print(f"[red]Error: {e}[/red]")
        problems += 1

    try:
        validate_plan(build_stages(cfg), initial_inputs(cfg))
    except PlanError as e:
        console.print(f"[red]Error: {e}[/red]")
        problems += 1

    unset = cfg.unset_choices()
    if unset:
        console.print(f"[yellow]Needs answers at run time (--interactive): {', '.join(unset)}[/yellow]")

    if problems:
        sys.exit(1)
    console.print("[green]Ready to run.[/green]")


@cli.command()
@config_option
@workdir_option
def plan(config_path, workdir):
    """Print the stage sequence with the exact commands."""
    cfg = _load(config_path, workdir)
    table = Table(title="Pipeline stages", show_lines=True)
    table.add_column("#", justify="right")
    table.add_column("Stage")
    table.add_column("Inputs")
    table.add_column("Outputs")
    table.add_column("Steps")
    for index, stage in enumerate(build_stages(cfg), 1):
        table.add_row(
            str(index),
            stage.name,
            "\n".join(stage.inputs),
            "\n".join(stage.outputs + [f"~{m}" for m in stage.modifies]),
            "\n".join(stage.describe()),
        )
    console.print(table)


@cli.command()
@config_option
@workdir_option
@click.option("--continue-on-failure", is_flag=True, help="Keep running after a stage fails")
@click.option("--dry-run", is_flag=True, help="Log the commands without executing them")
@click.option("--no-plots", is_flag=True, help="Do not launch the plot viewer")
@click.option("--export-png", is_flag=True, help="Save every analysis plot as PNG")
@click.option("--interactive", "-i", is_flag=True, help="Prompt for choices the config leaves unset")
@click.option("--from", "start_at", help="Start at this stage (earlier outputs must exist)")
@click.option("--stop-after", help="Stop after this stage")
@click.option("--verbose", "-v", is_flag=True, help="Echo log messages to the console")
def run(config_path, workdir, continue_on_failure, dry_run, no_plots, export_png,
        interactive, start_at, stop_after, verbose):
    """Run the MD workflow."""
    overrides = {}
    runner_cfg = {}
    if continue_on_failure:
        runner_cfg["failure_policy"] = "continue"
    if dry_run:
        runner_cfg["dry_run"] = True
    if runner_cfg:
        overrides["runner"] = runner_cfg
    plots_cfg = {}
    if no_plots:
        plots_cfg["launch"] = False
    if export_png:
        plots_cfg["export_png"] = True
    if plots_cfg:
        overrides["plots"] = plots_cfg

    cfg = _load(config_path, workdir, **overrides)
    configure_logging(cfg.log_dir, verbose=verbose)

    if interactive:
        unset = cfg.unset_choices()
        if unset:
            prompt_for_choices(cfg, unset)

    pipeline = Pipeline(cfg, console=console, allow_prompts=interactive)
    try:
        result = pipeline.run(start_at=start_at, stop_after=stop_after)
    except StageFailedError as e:
        console.print(f"[red]Aborted at stage '{e.stage}'. See {cfg.log_dir} for the command logs.[/red]")
        sys.exit(e.returncode)
    except (EnvironmentSetupError, MissingInputError, ConfigError, PlanError) as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)
    except GmxPipeError as e:
        console.print(f"[red]Error running pipeline: {e}[/red]")
        sys.exit(1)

    if pipeline.policy is FailurePolicy.CONTINUE:
        if result.exit_code:
            sys.exit(result.exit_code)
    elif not result.succeeded:
        sys.exit(result.exit_code or 1)


@cli.command()
@config_option
@workdir_option
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def clean(config_path, workdir, yes):
    """Delete the files generated by a previous run."""
    cfg = _load(config_path, workdir)
    targets = clean_outputs(cfg, dry_run=True)
    if not targets:
        console.print("Nothing to clean.")
        return
    for path in targets:
        console.print(f"  {path}")
    if not yes and not questionary.confirm(f"Delete {len(targets)} file(s)?", default=False).ask():
        console.print("Cancelled.")
        return
    removed = clean_outputs(cfg)
    console.print(f"[green]Removed {len(removed)} file(s).[/green]")


@cli.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--out", "-o", "outdir", type=click.Path(file_okay=False), help="Directory for the PNG files")
@click.option("--summary", type=click.Path(dir_okay=False), help="Write per-series statistics to this CSV")
def plot(files, outdir, summary):
    """Render .xvg files to PNG and print summary statistics."""
    from ..analysis.xvg import export_png, summarize

    out = Path(outdir) if outdir else None
    if out is not None:
        out.mkdir(parents=True, exist_ok=True)
    for f in files:
        src = Path(f)
        dest = export_png(src, out / src.with_suffix(".png").name if out else None)
        console.print(f"[green]saved[/green] {dest}")

    df = summarize(files)
    table = Table(title="Series summary")
    for col in df.columns:
        table.add_column(str(col))
    for row in df.itertuples(index=False):
        table.add_row(*[f"{v:.4g}" if isinstance(v, float) else str(v) for v in row])
    console.print(table)
    if summary:
        df.to_csv(summary, index=False)
        console.print(f"[green]wrote[/green] {summary}")


if __name__ == "__main__":
    cli()
