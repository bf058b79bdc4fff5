"""Tool registry — decorator-based tool registration and lookup."""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Awaitable, Dict, List, Optional

logger = logging.getLogger(__name__)


class ParamType(str, Enum):
    """Primitive parameter types, named as they appear in discovery output."""
    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


@dataclass
class ToolParam:
    name: str
    type: ParamType = ParamType.STRING
    description: str = ""
    required: bool = True


@dataclass
class ContentBlock:
    text: str
    type: str = "text"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass
class ToolResult:
    content: List[ContentBlock] = field(default_factory=list)

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        return cls(content=[ContentBlock(text=text)])

    @property
    def text(self) -> str:
        """Text of the first content block (what chat front ends display)."""
        return self.content[0].text if self.content else ""

    def to_dict(self) -> Dict[str, Any]:
        return {"content": [block.to_dict() for block in self.content]}


@dataclass
class ToolDef:
    name: str
    description: str
    params: List[ToolParam]
    handler: Callable[..., Awaitable[ToolResult]]


class ToolRegistry:
    """Named tool definitions in insertion order.

    Registering an existing name replaces the earlier definition (last write
    wins). After ``freeze()`` the registry is read-only.
    """

    def __init__(self):
        self._tools: Dict[str, ToolDef] = {}
        self._frozen = False

    def register(self, tool: ToolDef) -> ToolDef:
        if self._frozen:
            raise RuntimeError(f"Registry is frozen, cannot register {tool.name}")
        if tool.name in self._tools:
            logger.warning(f"Replacing already registered tool: {tool.name}")
        self._tools[tool.name] = tool
        logger.info(f"Registered tool: {tool.name}")
        return tool

    def get(self, name: str) -> Optional[ToolDef]:
        return self._tools.get(name)

    def list(self) -> List[ToolDef]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def freeze(self):
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


registry = ToolRegistry()


def register_tool(
    name: str,
    description: str = "",
    params: Optional[List[ToolParam]] = None,
    target: Optional[ToolRegistry] = None,
):
    """Decorator to register a tool function."""
    def decorator(func):
        tool = ToolDef(
            name=name,
            description=description or func.__doc__ or "",
            params=params or [],
            handler=func,
        )
        (target if target is not None else registry).register(tool)
        return func
    return decorator
