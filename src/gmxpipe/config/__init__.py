"""Pipeline configuration."""

from .settings import (
    EnvironmentConfig,
    InputFiles,
    LigandConfig,
    MdpFiles,
    PipelineConfig,
    PlotConfig,
    RunnerConfig,
    Selections,
    SystemConfig,
    load_config,
)
from .templates import write_templates

__all__ = [
    "EnvironmentConfig",
    "InputFiles",
    "LigandConfig",
    "MdpFiles",
    "PipelineConfig",
    "PlotConfig",
    "RunnerConfig",
    "Selections",
    "SystemConfig",
    "load_config",
    "write_templates",
]
