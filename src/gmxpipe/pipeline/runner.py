"""Sequential runner for the receptor-ligand workflow."""
from __future__ import annotations

import json
import logging
import platform
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from rich.console import Console

from ..config import PipelineConfig
from ..engine.runner import CommandRunner, ToolResult
from ..errors import ConfigError, GmxPipeError, MissingInputError, PlanError, StageFailedError
from ..utils.toolchain import require_tool, source_environment
from ..utils.validators import check_required_files, missing_files, required_inputs
from .stages import CommandStep, PythonStep, Stage, build_stages, initial_inputs, stage_names

logger = logging.getLogger(__name__)


class FailurePolicy(str, Enum):
    """What happens after an essential step exits non-zero."""

    ABORT = "abort"
    CONTINUE = "continue"


@dataclass
class StageRecord:
    name: str
    title: str
    status: str = "pending"
    results: List[ToolResult] = field(default_factory=list)
    duration: float = 0.0
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "title": self.title,
            "status": self.status,
            "duration_sec": round(self.duration, 3),
            "error": self.error,
            "steps": [r.to_dict() for r in self.results],
        }


@dataclass
class PipelineResult:
    records: List[StageRecord] = field(default_factory=list)
    exit_code: int = 0
    aborted_at: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.failed_stages

    @property
    def failed_stages(self) -> List[str]:
        return [r.name for r in self.records if r.status == "failed"]

    def record(self, name: str) -> StageRecord:
        for rec in self.records:
            if rec.name == name:
                return rec
        raise KeyError(name)

    def commands(self) -> List[List[str]]:
        """Every external command that was executed, in order."""
        return [r.argv for rec in self.records for r in rec.results if r.argv and r.argv[0] != "<python>"]


def validate_plan(stages: Sequence[Stage], available: Iterable[str]) -> None:
    """Check that every stage input is provided up front or by an earlier stage."""
    provided = set(available)
    for stage in stages:
        unresolved = [name for name in stage.inputs if name not in provided]
        if unresolved:
            raise PlanError(
                f"Stage '{stage.name}' needs {', '.join(unresolved)}, which no earlier stage produces"
            )
        provided.update(stage.outputs)


def _python_result(step: PythonStep, returncode: int, message: str = "", duration: float = 0.0,
                   skipped: bool = False) -> ToolResult:
    return ToolResult(
        argv=["<python>", step.description, step.target],
        returncode=returncode,
        stdout=message if returncode == 0 else "",
        stderr=message if returncode != 0 else "",
        duration=duration,
        skipped=skipped,
    )


class Pipeline:
    """Run the workflow stages strictly in order, one process at a time."""

    def __init__(
        self,
        config: PipelineConfig,
        runner: Optional[CommandRunner] = None,
        console: Optional[Console] = None,
        allow_prompts: bool = False,
    ):
        self.config = config
        self.workdir = config.workdir
        self.policy = FailurePolicy(config.runner.failure_policy)
        self.stages: List[Stage] = build_stages(config)
        self.runner = runner
        self.console = console or Console()
        self.allow_prompts = allow_prompts
        self.env: Optional[Dict[str, str]] = None
        self.result: Optional[PipelineResult] = None

    # ------------------------------------------------------------------
    # Checks
    # ------------------------------------------------------------------
    def prepare(self) -> Dict[str, str]:
        """Source the engine environment and check the required inputs.

        Raises before any stage runs; no external tool is invoked when an
        input is missing.
        """
        unset = self.config.unset_choices()
        if unset and not self.allow_prompts:
            raise ConfigError(
                "No value for: " + ", ".join(unset) + ". Set them in the config or run with --interactive."
            )

        gmxrc = self.config.environment.gmxrc
        if self.config.runner.dry_run:
            env = source_environment(None)
        else:
            env = source_environment(gmxrc)
            if gmxrc:
                require_tool(self.config.environment.gmx, env)

        check_required_files(required_inputs(self.config), self.workdir)
        self.env = env
        return env

    def _select(self, start_at: Optional[str], stop_after: Optional[str]) -> List[Stage]:
        names = stage_names(self.stages)
        for name in (start_at, stop_after):
            if name is not None and name not in names:
                raise ConfigError(f"Unknown stage '{name}'. Stages: {', '.join(names)}")
        first = names.index(start_at) if start_at else 0
        last = names.index(stop_after) if stop_after else len(names) - 1
        if last < first:
            raise ConfigError(f"Stage '{stop_after}' comes before '{start_at}'")
        return self.stages[first:last + 1]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def run(self, start_at: Optional[str] = None, stop_after: Optional[str] = None) -> PipelineResult:
        """Execute the selected stages.

        Under the abort policy the first failed essential step raises
        :class:`StageFailedError`; under the continue policy every stage runs,
        failures are only recorded and ``exit_code`` is the return code of the
        last command executed.
        """
        env = self.prepare()
        selected = self._select(start_at, stop_after)

        available = initial_inputs(self.config)
        for stage in self.stages[: self.stages.index(selected[0])]:
            available += stage.outputs
        validate_plan(selected, available)

        if self.runner is None:
            self.runner = CommandRunner(
                workdir=self.workdir,
                env=env,
                log_dir=self.config.log_dir,
                dry_run=self.config.runner.dry_run,
            )

        result = PipelineResult()
        self.result = result
        started = time.time()
        logger.info("Starting pipeline in %s (%d stages, policy=%s)", self.workdir, len(selected), self.policy.value)
        try:
            for index, stage in enumerate(selected, 1):
                self.console.print(f"[bold cyan]Step {index}/{len(selected)}:[/bold cyan] {stage.title}...")
                result.records.append(self._run_stage(stage, result))
        except GmxPipeError as exc:
            if result.aborted_at is None and result.records:
                result.aborted_at = result.records[-1].name
            if isinstance(exc, StageFailedError):
                result.exit_code = exc.returncode
            else:
                result.exit_code = 1
            self.console.print(f"[red]Error:[/red] {exc}")
            raise
        finally:
            elapsed = time.time() - started
            logger.info("Pipeline finished in %.1fs with exit code %d", elapsed, result.exit_code)
            self._write_outputs(result, elapsed)

        if result.succeeded:
            self.console.print("[green]MD Simulation and Analysis Complete.[/green]")
        else:
            self.console.print(
                f"[yellow]Finished with failed stages: {', '.join(result.failed_stages)}[/yellow]"
            )
        return result

    def _run_stage(self, stage: Stage, result: PipelineResult) -> StageRecord:
        record = StageRecord(name=stage.name, title=stage.title)
        start = time.time()
        logger.info("Stage %s: %s", stage.name, stage.title)

        if not self.config.runner.dry_run:
            if self.policy is FailurePolicy.ABORT:
                try:
                    check_required_files(stage.inputs, self.workdir, stage=stage.name)
                except MissingInputError as exc:
                    record.status = "failed"
                    record.error = str(exc)
                    record.duration = time.time() - start
                    result.records.append(record)
                    result.aborted_at = stage.name
                    raise
            else:
                absent = missing_files(stage.inputs, self.workdir)
                if absent:
                    logger.warning("Stage %s runs without %s", stage.name, ", ".join(absent))

        for step in stage.steps:
            res = self._run_step(stage, step)
            record.results.append(res)
            if self.policy is FailurePolicy.CONTINUE:
                # the status of the whole run is that of the last command executed
                result.exit_code = res.returncode
            if res.ok:
                continue
            if step.nonessential:
                logger.warning("Ignoring failure of non-essential step: %s", res.command)
                continue
            record.status = "failed"
            err_lines = (res.stderr or "").strip().splitlines()
            record.error = err_lines[-1] if err_lines else f"exit code {res.returncode}"
            if self.policy is FailurePolicy.ABORT:
                result.exit_code = res.returncode or 1
                record.duration = time.time() - start
                result.records.append(record)
                result.aborted_at = stage.name
                raise StageFailedError(stage.name, res)
            logger.warning("Stage %s failed; continuing with the next stage", stage.name)

        if record.status == "pending":
            record.status = "skipped" if record.results and all(r.skipped for r in record.results) else "ok"
        record.duration = time.time() - start
        return record

    def _run_step(self, stage: Stage, step) -> ToolResult:
        if isinstance(step, CommandStep):
            if step.interactive:
                self.console.print(f"[yellow]Answer the prompts of:[/yellow] {' '.join(step.argv)}")
            return self.runner.run(
                step.argv,
                stdin=step.stdin,
                log_name=f"{stage.name}.{step.label}",
                interactive=step.interactive,
            )

        if self.config.runner.dry_run:
            logger.info("[dry-run] skipped: %s", step.describe())
            return _python_result(step, 0, "dry run", skipped=True)

        start = time.time()
        try:
            applied = step.apply(self.workdir, self.config.runner.strict_anchors)
        except (GmxPipeError, OSError, ValueError, IndexError) as exc:
            logger.error("%s failed: %s", step.describe(), exc)
            return _python_result(step, 1, str(exc), time.time() - start)
        return _python_result(step, 0, f"{applied} edit(s)", time.time() - start)

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------
    def _write_outputs(self, result: PipelineResult, elapsed: float) -> None:
        """Serialize the run manifest, HTML report and optional analysis summary."""
        log_dir = self.config.log_dir
        try:
            manifest_path = write_manifest(log_dir, self.config, result, elapsed)
        except OSError as exc:
            logger.error("Failed to write manifest: %s", exc)
            return

        html_report = log_dir / "report.html"
        try:
            from ..reporting.html_report import generate_html_report

            generate_html_report(manifest_path, html_report)
            logger.info("Generated HTML report at %s", html_report)
        except Exception as e:
            logger.warning("Failed to generate HTML report: %s", e)

        if self.config.plots.export_png and not self.config.runner.dry_run:
            xvgs = [self.workdir / name for name in ANALYSIS_OUTPUTS if (self.workdir / name).is_file()]
            if xvgs:
                try:
                    from ..analysis.xvg import summarize

                    summary = summarize(xvgs)
                    summary.to_csv(self.workdir / "analysis_summary.csv", index=False)
                except Exception as e:
                    logger.warning("Failed to summarize analysis outputs: %s", e)


ANALYSIS_OUTPUTS = ["rmsd.xvg", "rmsf.xvg", "hb.xvg", "gyrate1.xvg", "energy1.xvg"]


def write_manifest(outdir: Path, config: PipelineConfig, result: PipelineResult, elapsed: float) -> Path:
    """Write a manifest file with run parameters, timings and stage outcomes."""
    outdir.mkdir(parents=True, exist_ok=True)
    manifest = {
        "timestamp": time.strftime("%Y-%m-%d %H:%M:%S"),
        "finished": datetime.now().isoformat(),
        "host": platform.node(),
        "python_version": platform.python_version(),
        "params": config.to_dict(),
        "timings": {rec.name: round(rec.duration, 3) for rec in result.records},
        "elapsed_sec": round(elapsed, 3),
        "dry_run": config.runner.dry_run,
        "status": "success" if result.succeeded else "failed",
        "exit_code": result.exit_code,
        "aborted_at": result.aborted_at,
        "stages": [rec.to_dict() for rec in result.records],
    }
    manifest_path = outdir / "manifest.json"
    manifest_path.write_text(json.dumps(manifest, indent=2))
    logger.info("Wrote manifest: %s", manifest_path)
    return manifest_path


def clean(config: PipelineConfig, dry_run: bool = False) -> List[Path]:
    """Remove every file a stage declares as output, plus GROMACS backups of them.

    User inputs edited in place (the ligand .itp, MD.mdp) are left alone.
    """
    protected = set(initial_inputs(config))
    names: List[str] = []
    for stage in build_stages(config):
        for name in stage.outputs:
            if name not in protected and name not in names:
                names.append(name)

    removed: List[Path] = []
    workdir = config.workdir
    for name in names:
        candidates = [workdir / name] + sorted(workdir.glob(f"#{name}.*#"))
        for path in candidates:
            if path.is_file():
                if not dry_run:
                    path.unlink()
                removed.append(path)
    logger.info("Removed %d generated file(s) from %s", len(removed), workdir)
    return removed
