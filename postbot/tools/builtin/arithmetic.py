"""Arithmetic tool."""
from ..registry import register_tool, ToolResult, ToolParam, ParamType


def _fmt(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@register_tool(
    "addTwoNumbers",
    description="Add two numbers",
    params=[
        ToolParam("a", ParamType.NUMBER, description="first operand"),
        ToolParam("b", ParamType.NUMBER, description="second operand"),
    ],
)
async def add_two_numbers(a, b) -> ToolResult:
    return ToolResult.from_text(f"The sum of {_fmt(a)} and {_fmt(b)} is {_fmt(a + b)}")
