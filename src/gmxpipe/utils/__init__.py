"""
gmxpipe utilities
"""
from .textedit import append_text, insert_after, replace_line, substitute_token
from .gro import splice_gro
from .validators import check_required_files, missing_files, required_inputs
from .toolchain import find_tool, require_tool, source_environment

__all__ = [
    "append_text",
    "insert_after",
    "replace_line",
    "substitute_token",
    "splice_gro",
    "check_required_files",
    "missing_files",
    "required_inputs",
    "find_tool",
    "require_tool",
    "source_environment",
]
