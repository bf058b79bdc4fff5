"""Tool system — registry, schema validation, executor."""
from .registry import registry, register_tool, ToolRegistry, ToolDef, ToolParam, ToolResult, ParamType
from .schema import validate_arguments, describe_tool, describe_tools
from .executor import invoke_tool

# Auto-import builtin tools to trigger @register_tool decorators
from .builtin import *  # noqa
