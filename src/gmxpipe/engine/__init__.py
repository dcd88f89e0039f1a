from .runner import CommandRunner, ToolResult

__all__ = ["CommandRunner", "ToolResult"]
