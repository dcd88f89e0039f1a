"""
gmxpipe Command Line Interface
------------------------------
Command-line tools for preparing, running and inspecting the MD workflow.
"""

from .main import cli

__all__ = ['cli']
