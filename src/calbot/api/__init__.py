"""Tool catalog, argument validation and result formatting."""

from __future__ import annotations

from .registry import ToolRegistry, ToolSpec
from .tools import DEFAULT_TOOLS, build_tool_registry
from .validation import validate_arguments, validate_ordering

__all__ = [
    "DEFAULT_TOOLS",
    "ToolRegistry",
    "ToolSpec",
    "build_tool_registry",
    "validate_arguments",
    "validate_ordering",
]
