"""Rule-based intent dispatcher shared by the web and terminal front ends.

Each utterance is classified by an ordered list of matchers; the first match
wins, so an utterance that looks like both arithmetic and a post is treated
as arithmetic. Anything no matcher claims falls through to the model.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Union

from .errors import FormatError, PostbotError
from .gemini import extract_reply

logger = logging.getLogger(__name__)

ADD_TOOL = "addTwoNumbers"
POST_TOOL = "createPost"

FORMAT_ERROR_TEXT = (
    "Invalid post format. Please specify a message or image, e.g., "
    "'write [message]' or 'post with image [path] on X'."
)


# ── Intents ───────────────────────────────────────────────────

@dataclass
class Arithmetic:
    a: Union[int, float]
    b: Union[int, float]


@dataclass
class Post:
    status: Optional[str] = None
    image_path: Optional[str] = None


@dataclass
class ListTools:
    pass


@dataclass
class Fallback:
    pass


Intent = Union[Arithmetic, Post, ListTools, Fallback]


# ── Patterns ──────────────────────────────────────────────────

_NUM = r"\d+(?:\.\d+)?"
_NUMBER = re.compile(_NUM)
_ADD_KEYWORD = re.compile(r"\badd", re.IGNORECASE)
_NUMBER_PAIR = re.compile(rf"{_NUM}\s*and\s*{_NUM}", re.IGNORECASE)

_POST_KEYWORD = re.compile(r"\b(?:post|create)", re.IGNORECASE)
_X_MARKER = re.compile(r"\bon\s+x\b", re.IGNORECASE)
_WRITE_COMMAND = re.compile(r"^\s*write\s+\S", re.IGNORECASE)

# Tried in order; the first that matches supplies the status text.
_STATUS_PATTERNS = [
    re.compile(r"\bwrite\s+(.+)", re.IGNORECASE),
    re.compile(r"\bpost\s+(?!with\s+image\b)(.+?)(?:\s+with\s+image\s+.+?)?\s+on\s+x\b", re.IGNORECASE),
    re.compile(r"\bcreate\s+(?:a\s+)?post\s+on\s+x\s+(?:and\s+)?write\s+(.+)", re.IGNORECASE),
]
_IMAGE_PATTERN = re.compile(r"\bwith\s+image\s+(.+?)(?:\s+on\s+x\b.*)?$", re.IGNORECASE)
_TRAILING_IMAGE = re.compile(r"\s+with\s+image\s+.+$", re.IGNORECASE)
_TRAILING_MARKER = re.compile(r"\s+on\s+x\s*$", re.IGNORECASE)

_LIST_TOOLS_PHRASE = "tools available"


def _to_number(token: str) -> Union[int, float]:
    return float(token) if "." in token else int(token)


def _clean_status(text: str) -> str:
    text = _TRAILING_IMAGE.sub("", text.strip())
    return _TRAILING_MARKER.sub("", text).strip()


def extract_status(text: str) -> Optional[str]:
    for pattern in _STATUS_PATTERNS:
        m = pattern.search(text)
        if m and m.group(1).strip():
            return _clean_status(m.group(1)) or None
    return None


def extract_image_path(text: str) -> Optional[str]:
    m = _IMAGE_PATTERN.search(text)
    return m.group(1).strip() if m else None


# ── Matchers (priority order) ─────────────────────────────────

def _match_arithmetic(text: str, has_attachment: bool) -> Optional[Intent]:
    if not (_ADD_KEYWORD.search(text) and _NUMBER_PAIR.search(text)):
        return None
    numbers = [_to_number(tok) for tok in _NUMBER.findall(text)]
    return Arithmetic(a=numbers[0], b=numbers[1])


def _match_post(text: str, has_attachment: bool) -> Optional[Intent]:
    triggered = (
        has_attachment
        or _WRITE_COMMAND.search(text)
        or (_POST_KEYWORD.search(text) and _X_MARKER.search(text))
    )
    if not triggered:
        return None
    return Post(status=extract_status(text), image_path=extract_image_path(text))


def _match_list_tools(text: str, has_attachment: bool) -> Optional[Intent]:
    if _LIST_TOOLS_PHRASE in text.lower():
        return ListTools()
    return None


_MATCHERS: List[Callable[[str, bool], Optional[Intent]]] = [
    _match_arithmetic,
    _match_post,
    _match_list_tools,
]


def classify(text: str, has_attachment: bool = False) -> Intent:
    """Classify an utterance. First matching rule wins."""
    text = (text or "").strip()
    for matcher in _MATCHERS:
        intent = matcher(text, has_attachment)
        if intent is not None:
            logger.info(f"Dispatcher matched: '{text}' -> {intent}")
            return intent
    return Fallback()


# ── Dispatcher ────────────────────────────────────────────────

@dataclass
class TurnOutcome:
    kind: str  # "tool" | "ai" | "error"
    text: str


class Dispatcher:
    """Runs one chat turn at a time against a backend.

    ``backend`` provides ``call_tool(name, args) -> ToolResult``,
    ``generate(history) -> dict`` (raw model response) and
    ``upload_image(attachment) -> str`` (stored image path).
    """

    def __init__(self, backend, history: Optional[List[dict]] = None,
                 tools: Optional[List[Dict[str, Any]]] = None):
        self.backend = backend
        self.history: List[dict] = history if history is not None else []
        self.tools: List[Dict[str, Any]] = list(tools or [])

    def _append(self, role: str, text: str):
        self.history.append({"role": role, "parts": [{"text": text}]})

    async def handle(self, text: str, attachment: Any = None) -> TurnOutcome:
        """Process one utterance; the outcome is always appended to history."""
        text = (text or "").strip()
        self._append("user", text or "Image post")

        intent = classify(text, has_attachment=attachment is not None)
        try:
            outcome = await self._run(intent, attachment)
        except FormatError as e:
            outcome = TurnOutcome("error", e.message)
        except Exception as e:
            logger.error(f"Dispatch failed for {intent}: {e}", exc_info=True)
            outcome = TurnOutcome("error", f"Error: {e}")

        self._append("model", outcome.text)
        return outcome

    async def _run(self, intent: Intent, attachment: Any) -> TurnOutcome:
        if isinstance(intent, Arithmetic):
            return await self._call_tool(ADD_TOOL, {"a": intent.a, "b": intent.b})
        if isinstance(intent, Post):
            return await self._post(intent, attachment)
        if isinstance(intent, ListTools):
            return self._list_tools()
        return await self._ask_model()

    async def _call_tool(self, name: str, args: Dict[str, Any]) -> TurnOutcome:
        try:
            result = await self.backend.call_tool(name, args)
        except Exception as e:
            logger.error(f"Tool call failed: {name}: {e}")
            return TurnOutcome("error", f"Tool call failed: {e}")
        return TurnOutcome("tool", result.text)

    async def _post(self, intent: Post, attachment: Any) -> TurnOutcome:
        image_path = intent.image_path
        if attachment is not None:
            try:
                image_path = await self.backend.upload_image(attachment)
            except Exception as e:
                logger.error(f"Image upload failed: {e}")
                return TurnOutcome("error", f"Image upload failed: {e}")

        if not intent.status and not image_path:
            raise FormatError(FORMAT_ERROR_TEXT)

        args: Dict[str, Any] = {}
        if intent.status:
            args["status"] = intent.status
        if image_path:
            args["imagePath"] = image_path
        return await self._call_tool(POST_TOOL, args)

    def _list_tools(self) -> TurnOutcome:
        names = ", ".join(t["name"] for t in self.tools)
        return TurnOutcome("ai", f"I have {len(self.tools)} tools available: {names}")

    async def _ask_model(self) -> TurnOutcome:
        try:
            data = await self.backend.generate(list(self.history))
            reply = extract_reply(data)
        except PostbotError as e:
            logger.error(f"Model call failed: {e}")
            return TurnOutcome("error", f"Error: {e.message}")
        if not reply:
            return TurnOutcome("error", "No response from AI.")
        return TurnOutcome("ai", reply)
