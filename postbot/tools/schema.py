"""Argument validation and discovery projection for registered tools.

Unknown argument names are rejected (strict policy): a tool only ever sees
the fields it declares.
"""
from typing import Any, Dict, List, Tuple

from ..errors import ValidationError
from .registry import ParamType, ToolDef, ToolParam, ToolRegistry


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_integer(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_CHECKS = {
    ParamType.STRING: lambda v: isinstance(v, str),
    ParamType.NUMBER: _is_number,
    ParamType.INTEGER: _is_integer,
    ParamType.BOOLEAN: lambda v: isinstance(v, bool),
    ParamType.OBJECT: lambda v: isinstance(v, dict),
    ParamType.ARRAY: lambda v: isinstance(v, list),
}


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if _is_number(value):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    return type(value).__name__


def validate_arguments(params: List[ToolParam], arguments: Any) -> Dict[str, Any]:
    """Check ``arguments`` against ``params`` and return the accepted dict.

    Raises ValidationError naming every offending field.
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, dict):
        raise ValidationError(
            f"Invalid arguments: expected object, got {_type_name(arguments)}",
            errors=[("arguments", "object")],
        )

    errors: List[Tuple[str, str]] = []
    problems: List[str] = []
    declared = {p.name: p for p in params}

    for param in params:
        if param.name not in arguments:
            if param.required:
                errors.append((param.name, param.type.value))
                problems.append(f"{param.name}: required {param.type.value} is missing")
            continue
        value = arguments[param.name]
        if not _CHECKS[param.type](value):
            errors.append((param.name, param.type.value))
            problems.append(f"{param.name}: expected {param.type.value}, got {_type_name(value)}")

    for name in arguments:
        if name not in declared:
            errors.append((name, "undeclared"))
            problems.append(f"{name}: unexpected field")

    if errors:
        raise ValidationError("Invalid arguments: " + "; ".join(problems), errors=errors)
    return dict(arguments)


def describe_tool(tool: ToolDef) -> Dict[str, Any]:
    """Project a tool into the function-calling descriptor shape."""
    return {
        "name": tool.name,
        "description": tool.description,
        "parameters": {
            "type": "object",
            "properties": {p.name: {"type": p.type.value} for p in tool.params},
            "required": [p.name for p in tool.params if p.required],
        },
    }


def describe_tools(registry: ToolRegistry) -> List[Dict[str, Any]]:
    return [describe_tool(tool) for tool in registry.list()]
