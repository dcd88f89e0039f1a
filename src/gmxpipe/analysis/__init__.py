"""
Analysis output helpers
"""
from .xvg import XvgData, export_png, read_xvg, render_png, summarize

__all__ = ["XvgData", "export_png", "read_xvg", "render_png", "summarize"]
