from .registry import ToolInvoker, ToolRegistry, parse_tool

__all__ = ["ToolInvoker", "ToolRegistry", "parse_tool"]
