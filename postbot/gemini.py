"""Gemini generateContent proxy."""
import logging
from typing import List, Optional

import httpx

from .config import settings
from .errors import ExternalAPIError

logger = logging.getLogger(__name__)

# Chat history uses "assistant" or "model" for replies; the API only knows "model".
_ROLE_MAP = {"user": "user", "model": "model", "assistant": "model"}


def _http_client(**kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(**kwargs)


def to_api_contents(contents: List[dict]) -> List[dict]:
    """Normalise chat turns into the request shape the API expects."""
    out = []
    for turn in contents:
        role = _ROLE_MAP.get(turn.get("role", "user"), "user")
        parts = [{"text": part.get("text", "")} for part in turn.get("parts", [])]
        out.append({"role": role, "parts": parts})
    return out


async def generate_content(contents: List[dict], model: Optional[str] = None) -> dict:
    """Send the turn history to Gemini and return the raw response JSON."""
    model = model or settings.gemini_model
    if not settings.gemini_api_key:
        raise ExternalAPIError("GEMINI_API_KEY is not configured")

    url = f"{settings.gemini_base_url}/models/{model}:generateContent"
    body = {"contents": to_api_contents(contents)}
    logger.info(f"Gemini request: model={model}, turns={len(body['contents'])}")

    try:
        async with _http_client(timeout=settings.outbound_timeout_s) as client:
            resp = await client.post(url, params={"key": settings.gemini_api_key}, json=body)
    except httpx.TimeoutException as e:
        logger.error(f"Gemini API timeout after {settings.outbound_timeout_s}s")
        raise ExternalAPIError(f"Gemini API timed out: {e}") from e
    except httpx.HTTPError as e:
        logger.error(f"Gemini API request failed: {e}")
        raise ExternalAPIError(f"Gemini API request failed: {e}") from e

    if resp.status_code >= 400:
        logger.error(f"Gemini API response error: {resp.status_code} {resp.text[:500]}")
        raise ExternalAPIError(
            f"Gemini API error: {resp.reason_phrase} - {resp.text[:200]}",
            status=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as e:
        raise ExternalAPIError("Gemini API returned invalid JSON", status=resp.status_code) from e


def extract_reply(data: dict) -> str:
    """Text of the first part of the first candidate."""
    try:
        return data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError):
        raise ExternalAPIError("Invalid response format from Gemini API")
