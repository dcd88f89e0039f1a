"""Workflow stages and the runner that executes them."""

from .stages import CommandStep, PythonStep, Stage, build_stages, initial_inputs, stage_names
from .runner import (
    FailurePolicy,
    Pipeline,
    PipelineResult,
    StageRecord,
    clean,
    validate_plan,
    write_manifest,
)

__all__ = [
    "CommandStep",
    "PythonStep",
    "Stage",
    "build_stages",
    "initial_inputs",
    "stage_names",
    "FailurePolicy",
    "Pipeline",
    "PipelineResult",
    "StageRecord",
    "clean",
    "validate_plan",
    "write_manifest",
]
