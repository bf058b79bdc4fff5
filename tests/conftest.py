"""Shared fixtures for postbot tests."""
from unittest.mock import AsyncMock

import httpx
import pytest

from postbot.config import settings
from postbot.sessions import sessions
from postbot.tools.registry import ToolRegistry, ToolDef, ToolParam, ToolResult, ParamType


@pytest.fixture
def tool_registry():
    """A fresh registry with an echo tool and a failing tool."""
    reg = ToolRegistry()

    async def echo(text, times=1):
        return ToolResult.from_text(" ".join([text] * times))

    async def explode():
        raise RuntimeError("boom")

    reg.register(ToolDef(
        name="echo",
        description="Repeat text",
        params=[
            ToolParam("text", ParamType.STRING),
            ToolParam("times", ParamType.INTEGER, required=False),
        ],
        handler=echo,
    ))
    reg.register(ToolDef(name="explode", description="Always fails", params=[], handler=explode))
    return reg


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Point base/upload dirs at a temp directory."""
    monkeypatch.setattr(settings, "base_dir", tmp_path)
    monkeypatch.setattr(settings, "upload_dir", tmp_path / "uploads")
    return tmp_path


@pytest.fixture
def twitter_credentials(monkeypatch):
    monkeypatch.setattr(settings, "twitter_api_key", "key")
    monkeypatch.setattr(settings, "twitter_api_secret", "secret")
    monkeypatch.setattr(settings, "twitter_access_token", "token")
    monkeypatch.setattr(settings, "twitter_access_token_secret", "token-secret")


@pytest.fixture
def gemini_key(monkeypatch):
    monkeypatch.setattr(settings, "gemini_api_key", "test-key")


@pytest.fixture
def fake_twitter(monkeypatch):
    """Replace the X client calls; returns the (upload, publish) mocks."""
    upload = AsyncMock(return_value="media-1")
    publish = AsyncMock(return_value="post-1")
    monkeypatch.setattr("postbot.twitter.upload_media", upload)
    monkeypatch.setattr("postbot.twitter.publish_post", publish)
    return upload, publish

@pytest.fixture
def mock_http(monkeypatch):
    """Route a module's ``_http_client`` through an httpx.MockTransport.

    Usage: ``requests = mock_http(module, handler)``; every request the
    module sends is appended to ``requests``.
    """
    def install(module, handler):
        seen = []

        def recording(request):
            seen.append(request)
            return handler(request)

        def factory(**kwargs):
            return httpx.AsyncClient(transport=httpx.MockTransport(recording), **kwargs)

        monkeypatch.setattr(module, "_http_client", factory)
        return seen
    return install


@pytest.fixture(autouse=True)
def clean_sessions():
    sessions.clear()
    yield
    sessions.clear()
