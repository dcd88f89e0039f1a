"""Exceptions raised by the workflow runner."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .engine.runner import ToolResult


class GmxPipeError(Exception):
    """Base class for all gmxpipe errors."""


class EnvironmentSetupError(GmxPipeError, RuntimeError):
    """Raised when the GROMACS environment cannot be sourced."""


class MissingInputError(GmxPipeError, FileNotFoundError):
    """Raised when a required input file is absent."""

    def __init__(self, name: str, stage: Optional[str] = None):
        self.name = name
        self.stage = stage
        where = f" (needed by stage '{stage}')" if stage else ""
        super().__init__(f"{name} not found!{where}")


class ConfigError(GmxPipeError, ValueError):
    """Raised for invalid or incomplete pipeline configuration."""


class PlanError(GmxPipeError):
    """Raised when a stage consumes a file nothing provides."""


class AnchorNotFoundError(GmxPipeError):
    """Raised by strict text edits when the anchor is not in the file."""

    def __init__(self, path, anchor: str):
        self.path = path
        self.anchor = anchor
        super().__init__(f"Anchor {anchor!r} not found in {path}")


class StageFailedError(GmxPipeError, RuntimeError):
    """Raised when a stage fails under the abort policy."""

    def __init__(self, stage: str, result: Optional["ToolResult"] = None, reason: str = ""):
        self.stage = stage
        self.result = result
        if result is not None:
            msg = f"Stage '{stage}' failed ({result.returncode}): {' '.join(result.argv)}"
            tail = "\n".join((result.stderr or "").strip().splitlines()[-20:])
            if tail:
                msg += f"\n{tail}"
        else:
            msg = f"Stage '{stage}' failed: {reason}"
        super().__init__(msg)

    @property
    def returncode(self) -> int:
        if self.result is not None and self.result.returncode:
            return self.result.returncode
        return 1
