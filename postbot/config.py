from pydantic import BaseModel
import os
import logging
from pathlib import Path

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if it exists (before reading os.getenv)
_env_path = BASE_DIR / ".env"
if _env_path.exists():
    with open(_env_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#") and "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip().strip('"').strip("'")
                # Only set if not already in environment (env vars take precedence)
                if key not in os.environ:
                    os.environ[key] = value


def _sanitize_ascii(val: str) -> str:
    """Strip non-ASCII characters from config values (prevents encoding errors)"""
    return val.encode('ascii', errors='ignore').decode('ascii').strip()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    # Network
    host: str = os.getenv("POSTBOT_HOST", "0.0.0.0")
    port: int = int(os.getenv("POSTBOT_PORT", "3001"))

    # Filesystem
    base_dir: Path = BASE_DIR
    upload_dir: Path = Path(os.getenv("POSTBOT_UPLOAD_DIR", str(BASE_DIR / "uploads")))
    public_dir: Path = Path(os.getenv("POSTBOT_PUBLIC_DIR", str(BASE_DIR / "public")))
    max_upload_bytes: int = int(os.getenv("POSTBOT_MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)))

    # Gemini (generative-language API)
    gemini_api_key: str = _sanitize_ascii(os.getenv("GEMINI_API_KEY", ""))
    gemini_base_url: str = _sanitize_ascii(
        os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1"))
    gemini_model: str = _sanitize_ascii(os.getenv("GEMINI_MODEL", "gemini-2.0-flash"))

    # X / Twitter (OAuth 1.0a user context)
    twitter_api_key: str = _sanitize_ascii(os.getenv("TWITTER_API_KEY", ""))
    twitter_api_secret: str = _sanitize_ascii(os.getenv("TWITTER_API_SECRET", ""))
    twitter_access_token: str = _sanitize_ascii(os.getenv("TWITTER_ACCESS_TOKEN", ""))
    twitter_access_token_secret: str = _sanitize_ascii(os.getenv("TWITTER_ACCESS_TOKEN_SECRET", ""))
    x_api_base_url: str = _sanitize_ascii(os.getenv("X_API_BASE_URL", "https://api.x.com/2"))
    twitter_verify_on_startup: bool = _env_flag("TWITTER_VERIFY_ON_STARTUP")

    # Timeouts (seconds)
    outbound_timeout_s: float = float(os.getenv("POSTBOT_OUTBOUND_TIMEOUT", "30"))
    tool_timeout_s: float = float(os.getenv("POSTBOT_TOOL_TIMEOUT", "60"))
    sse_keepalive_s: float = float(os.getenv("POSTBOT_SSE_KEEPALIVE", "15"))

    # Terminal client
    server_url: str = _sanitize_ascii(os.getenv("POSTBOT_SERVER_URL", "http://localhost:3001"))
    discovery_attempts: int = int(os.getenv("POSTBOT_DISCOVERY_ATTEMPTS", "3"))

    log_level: str = os.getenv("POSTBOT_LOG_LEVEL", "INFO")

    @property
    def twitter_configured(self) -> bool:
        return all((
            self.twitter_api_key,
            self.twitter_api_secret,
            self.twitter_access_token,
            self.twitter_access_token_secret,
        ))


settings = Settings()


def _mask(secret: str) -> str:
    return '***' + secret[-4:] if len(secret) > 4 else 'EMPTY'


# Log config for debugging
logger.info(f"Config: Gemini → {settings.gemini_base_url}, model={settings.gemini_model} "
            f"(key={_mask(settings.gemini_api_key)})")
if not settings.gemini_api_key:
    logger.warning("Config: GEMINI_API_KEY is not set, model fallback will fail")
if not settings.twitter_configured:
    logger.warning("Config: Twitter credentials incomplete, createPost will fail")
