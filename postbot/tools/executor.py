"""Tool executor — lookup, validate, run with a bounded timeout."""
import asyncio
import logging
import time
from typing import Any, Optional

from ..config import settings
from ..errors import NotFoundError, PostbotError, ToolExecutionError
from .registry import registry as default_registry, ToolRegistry, ToolResult
from .schema import validate_arguments

logger = logging.getLogger(__name__)


async def invoke_tool(
    name: str,
    arguments: Any,
    registry: Optional[ToolRegistry] = None,
    timeout: Optional[float] = None,
) -> ToolResult:
    """Execute a registered tool by name.

    Raises NotFoundError, ValidationError or ToolExecutionError. The handler
    is not called unless validation passes.
    """
    tool = (registry if registry is not None else default_registry).get(name)
    if not tool:
        logger.warning(f"Unknown tool: {name}")
        raise NotFoundError(f"Tool {name} not found")

    args = validate_arguments(tool.params, arguments)
    timeout = timeout or settings.tool_timeout_s

    arg_str = ", ".join(f"{k}={v!r}" for k, v in args.items())
    logger.info(f"Executing tool: {name}({arg_str})")
    t0 = time.monotonic()

    try:
        result = await asyncio.wait_for(tool.handler(**args), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"Tool {name} timed out after {timeout:.0f}s")
        raise ToolExecutionError(f"Tool {name} timed out after {timeout:.0f}s")
    except PostbotError:
        raise
    except Exception as e:
        logger.error(f"Tool {name} failed: {e}", exc_info=True)
        raise ToolExecutionError(f"Tool {name} failed: {e}") from e

    if not isinstance(result, ToolResult) or not result.content:
        raise ToolExecutionError(f"Tool {name} returned no content")

    elapsed = time.monotonic() - t0
    logger.info(f"Tool {name}: {elapsed:.1f}s -> {result.text[:80]!r}")
    return result
