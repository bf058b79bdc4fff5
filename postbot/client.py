"""HTTP backend for the terminal front end — talks to a running tool server."""
import copy
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from .config import settings
from .errors import ExternalAPIError, ToolExecutionError, ValidationError
from .tools.registry import ContentBlock, ToolResult
from .twitter import guess_media_type

logger = logging.getLogger(__name__)

# Used when the server cannot be reached for discovery
DEFAULT_TOOLS: List[Dict[str, Any]] = [
    {
        "name": "addTwoNumbers",
        "description": "Add two numbers",
        "parameters": {
            "type": "object",
            "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
            "required": ["a", "b"],
        },
    },
    {
        "name": "createPost",
        "description": "Create a post on X with optional text and image",
        "parameters": {
            "type": "object",
            "properties": {"status": {"type": "string"}, "imagePath": {"type": "string"}},
            "required": [],
        },
    },
]


def _error_text(resp: httpx.Response) -> str:
    try:
        return resp.json().get("error", resp.text)
    except ValueError:
        return resp.text


class HttpBackend:
    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 model: Optional[str] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = (base_url or settings.server_url).rstrip("/")
        self.timeout = timeout or settings.outbound_timeout_s
        self.model = model or settings.gemini_model
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self._transport)

    async def fetch_tools(self) -> List[Dict[str, Any]]:
        async with self._client() as client:
            resp = await client.get("/tools")
        if resp.status_code != 200:
            raise ExternalAPIError(f"HTTP error: {resp.status_code} {resp.reason_phrase}",
                                   status=resp.status_code)
        return resp.json()

    async def call_tool(self, name: str, args: Dict[str, Any]) -> ToolResult:
        logger.info(f"Calling tool: {name}({args})")
        try:
            async with self._client() as client:
                resp = await client.post("/call-tool", json={"name": name, "arguments": args})
        except httpx.HTTPError as e:
            raise ToolExecutionError(f"Tool call error: {e}") from e
        if resp.status_code != 200:
            raise ToolExecutionError(f"Tool call error: {resp.status_code} - {_error_text(resp)}")
        body = resp.json()
        return ToolResult(content=[
            ContentBlock(text=block.get("text", ""), type=block.get("type", "text"))
            for block in body.get("content", [])
        ])

    async def generate(self, history: List[dict]) -> dict:
        try:
            async with self._client() as client:
                resp = await client.post("/gemini", json={"model": self.model, "contents": history})
        except httpx.HTTPError as e:
            raise ExternalAPIError(f"Server unreachable: {e}") from e
        if resp.status_code != 200:
            raise ExternalAPIError(f"Server error: {resp.status_code} - {_error_text(resp)}",
                                   status=resp.status_code)
        return resp.json()

    async def upload_image(self, path) -> str:
        path = Path(path).expanduser()
        if not path.is_file():
            raise ValidationError(f"Image file not found: {path}", errors=[("image", "file")])
        files = {"image": (path.name, path.read_bytes(), guess_media_type(path))}
        async with self._client() as client:
            resp = await client.post("/upload-image", files=files)
        if resp.status_code != 200:
            raise ExternalAPIError(_error_text(resp), status=resp.status_code)
        return resp.json()["imagePath"]


async def discover_tools(
    fetch: Callable[[], Awaitable[List[Dict[str, Any]]]],
    attempts: Optional[int] = None,
) -> List[Dict[str, Any]]:
    """Fetch tool descriptors, retrying without backoff, else the defaults."""
    attempts = attempts or settings.discovery_attempts
    for attempt in range(1, attempts + 1):
        try:
            tools = await fetch()
            logger.info(f"Connected to tool server. Tools: {[t['name'] for t in tools]}")
            return tools
        except Exception as e:
            logger.warning(f"Attempt {attempt}/{attempts} failed to fetch tools: {e}")
    logger.warning(f"Using default tools: {[t['name'] for t in DEFAULT_TOOLS]}")
    return copy.deepcopy(DEFAULT_TOOLS)
