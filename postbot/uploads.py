"""Image uploads for posts."""
import logging
import random
import time

from .config import settings
from .errors import ValidationError

logger = logging.getLogger(__name__)

ALLOWED_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def _unique_name(content_type: str) -> str:
    # Suffix follows the validated type so the stored name maps back to it
    suffix = ALLOWED_TYPES[content_type]
    return f"{int(time.time() * 1000)}-{random.randint(0, 999_999_999)}{suffix}"


async def save_upload(file) -> str:
    """Store an uploaded image and return its path relative to the project root.

    ``file`` is a FastAPI/Starlette ``UploadFile``.
    """
    if file is None:
        raise ValidationError("No image file uploaded", errors=[("image", "file")])
    if file.content_type not in ALLOWED_TYPES:
        raise ValidationError(
            "Invalid file type. Only JPEG, PNG, GIF, and WEBP are allowed.",
            errors=[("image", "image/jpeg|image/png|image/gif|image/webp")],
        )

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {settings.max_upload_bytes // (1024 * 1024)}MB.",
            errors=[("image", "file")],
        )
    if not data:
        raise ValidationError("Uploaded image is empty", errors=[("image", "file")])

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    name = _unique_name(file.content_type)
    target = settings.upload_dir / name
    target.write_bytes(data)
    logger.info(f"Saved upload {file.filename!r} -> {target} ({len(data)} bytes)")
    try:
        return target.relative_to(settings.base_dir).as_posix()
    except ValueError:
        return str(target)
