"""Tool execution for model-requested tool calls."""

from aurora.tools.executor import ToolExecutor

__all__ = ["ToolExecutor"]
