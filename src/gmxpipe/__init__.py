"""
gmxpipe: receptor-ligand GROMACS workflow runner
"""
from .config import PipelineConfig, load_config
from .errors import (
    GmxPipeError,
    EnvironmentSetupError,
    MissingInputError,
    ConfigError,
    PlanError,
    AnchorNotFoundError,
    StageFailedError,
)
from .pipeline import Pipeline, PipelineResult, build_stages

__version__ = "0.1.0"

__all__ = [
    "Pipeline",
    "PipelineResult",
    "PipelineConfig",
    "build_stages",
    "load_config",
    "GmxPipeError",
    "EnvironmentSetupError",
    "MissingInputError",
    "ConfigError",
    "PlanError",
    "AnchorNotFoundError",
    "StageFailedError",
]
