"""X posting tool — text and/or one image."""
import logging
from pathlib import Path
from typing import Optional

from ... import twitter
from ...config import settings
from ...errors import ExternalAPIError, ToolExecutionError, ValidationError
from ..registry import register_tool, ToolResult, ToolParam, ParamType

logger = logging.getLogger(__name__)


def resolve_image_path(image_path: str) -> Path:
    """Relative paths (e.g. ``uploads/x.png``) resolve against the project root."""
    path = Path(image_path).expanduser()
    if not path.is_absolute():
        path = settings.base_dir / path
    return path.resolve()


@register_tool(
    "createPost",
    description="Create a post on X with optional text and image",
    params=[
        ToolParam("status", ParamType.STRING, description="post text", required=False),
        ToolParam("imagePath", ParamType.STRING, description="path of an image to attach", required=False),
    ],
)
async def create_post(status: Optional[str] = None, imagePath: Optional[str] = None) -> ToolResult:
    if not status and not imagePath:
        raise ValidationError(
            "Invalid arguments: status or imagePath is required",
            errors=[("status", "string"), ("imagePath", "string")],
        )

    media_ids = []
    try:
        if imagePath:
            path = resolve_image_path(imagePath)
            if not path.is_file():
                raise ToolExecutionError(f"Image file not found: {path}")
            media_ids.append(await twitter.upload_media(path))
        post_id = await twitter.publish_post(status or "", media_ids)
    except ExternalAPIError as e:
        logger.error(f"Twitter post failed: {e}")
        raise ToolExecutionError(f"Failed to post tweet: {e}") from e

    logger.info(f"Tweet posted, ID: {post_id}")
    if status:
        text = f"Tweeted: {status}{' with image' if imagePath else ''}"
    else:
        text = f"Tweeted image: {Path(imagePath).name}"
    return ToolResult.from_text(text)
