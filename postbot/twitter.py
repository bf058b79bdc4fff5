"""X (Twitter) client — media upload and post publishing over API v2.

Requests are signed with OAuth 1.0a user-context credentials from settings.
"""
import logging
import mimetypes
from pathlib import Path
from typing import List, Optional

import httpx
from authlib.integrations.httpx_client import OAuth1Auth

from .config import settings
from .errors import ExternalAPIError

logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "image/jpeg"


def _auth() -> OAuth1Auth:
    if not settings.twitter_configured:
        raise ExternalAPIError("Missing Twitter API credentials in environment")
    return OAuth1Auth(
        client_id=settings.twitter_api_key,
        client_secret=settings.twitter_api_secret,
        token=settings.twitter_access_token,
        token_secret=settings.twitter_access_token_secret,
        force_include_body=True,
    )


def _http_client(**kwargs) -> httpx.AsyncClient:
    return httpx.AsyncClient(**kwargs)


def guess_media_type(path) -> str:
    """MIME type from the file name, JPEG when the extension is unknown."""
    media_type, _ = mimetypes.guess_type(str(path))
    if media_type and media_type.startswith("image/"):
        return media_type
    return DEFAULT_MEDIA_TYPE


async def _request(method: str, url: str, **kwargs) -> dict:
    try:
        async with _http_client(auth=_auth(), timeout=settings.outbound_timeout_s) as client:
            resp = await client.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.error(f"Twitter API timeout: {method} {url}")
        raise ExternalAPIError(f"Twitter API timed out: {e}") from e
    except httpx.HTTPError as e:
        logger.error(f"Twitter API request failed: {e}")
        raise ExternalAPIError(f"Twitter API request failed: {e}") from e

    if resp.status_code >= 400:
        logger.error(f"Twitter API error: {resp.status_code} {resp.text[:500]}")
        raise ExternalAPIError(
            f"Twitter API error {resp.status_code}: {resp.text[:200]}",
            status=resp.status_code,
        )
    try:
        return resp.json()
    except ValueError as e:
        raise ExternalAPIError("Twitter API returned invalid JSON", status=resp.status_code) from e


async def upload_media(path: Path) -> str:
    """Upload an image file and return its media id."""
    media_type = guess_media_type(path)
    data = Path(path).read_bytes()
    logger.info(f"Uploading media {path} ({media_type}, {len(data)} bytes)")
    body = await _request(
        "POST",
        f"{settings.x_api_base_url}/media/upload",
        data={"media_category": "tweet_image", "media_type": media_type},
        files={"media": (Path(path).name, data, media_type)},
    )
    media_id = (body.get("data") or {}).get("id") or body.get("media_id_string")
    if not media_id:
        raise ExternalAPIError("Twitter media upload returned no media id")
    logger.info(f"Image uploaded to Twitter, ID: {media_id}")
    return str(media_id)


async def publish_post(text: str, media_ids: Optional[List[str]] = None) -> str:
    """Publish a post and return its id."""
    payload: dict = {"text": text}
    if media_ids:
        payload["media"] = {"media_ids": list(media_ids)}
    logger.info(f"Posting tweet: {payload}")
    body = await _request("POST", f"{settings.x_api_base_url}/tweets", json=payload)
    post_id = (body.get("data") or {}).get("id")
    if not post_id:
        raise ExternalAPIError("Twitter API returned no post id")
    return str(post_id)


async def verify_credentials() -> str:
    """Return the username of the account the credentials belong to."""
    body = await _request("GET", f"{settings.x_api_base_url}/users/me")
    return (body.get("data") or {}).get("username", "")
