"""HTTP tool server: discovery, invocation, uploads, model proxy, sessions."""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from . import gemini, twitter
from .config import settings
from .dispatcher import Dispatcher
from .errors import NotFoundError, PostbotError
from .rpc import handle_message
from .sessions import sessions, event_stream
from .tools import describe_tools, invoke_tool, registry
from .tools.registry import ToolResult
from .uploads import save_upload

logger = logging.getLogger(__name__)

app = FastAPI(title="postbot-server")


# ── Pydantic schemas ──────────────────────────────────────────

class CallToolRequest(BaseModel):
    name: str
    arguments: Optional[Dict[str, Any]] = None


class Part(BaseModel):
    text: str = ""


class ChatTurn(BaseModel):
    role: str
    parts: List[Part]


class GeminiRequest(BaseModel):
    model: Optional[str] = None
    contents: List[ChatTurn]


# ── Error envelope ────────────────────────────────────────────

@app.exception_handler(PostbotError)
async def postbot_error_handler(request: Request, exc: PostbotError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', []))}: {err.get('msg', '')}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


# ── Lifecycle ─────────────────────────────────────────────────

@app.on_event("startup")
async def on_startup():
    registry.freeze()
    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    logger.info(f"Tool registry ready: {registry.names()}")

    if settings.twitter_verify_on_startup:
        try:
            username = await twitter.verify_credentials()
            logger.info(f"Connected to Twitter account: {username}")
        except PostbotError as e:
            logger.warning(f"Twitter credential check failed: {e}")


# ── Tools ─────────────────────────────────────────────────────

@app.get("/health")
async def health():
    return {"ok": True, "tools": len(registry), "sessions": len(sessions)}


@app.get("/tools")
async def list_tools():
    try:
        return describe_tools(registry)
    except Exception as e:
        logger.error(f"Error in /tools endpoint: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": f"Failed to fetch tools: {e}"})


@app.post("/call-tool")
async def call_tool(req: CallToolRequest):
    logger.info(f"Received /call-tool request: {req.name} {req.arguments}")
    try:
        result = await invoke_tool(req.name, req.arguments or {}, registry=registry)
    except PostbotError as e:
        logger.error(f"Tool call error: {e}")
        return JSONResponse(status_code=e.status_code, content={"error": f"Tool call failed: {e.message}"})
    return result.to_dict()


@app.post("/upload-image")
async def upload_image(image: Optional[UploadFile] = File(None)):
    try:
        image_path = await save_upload(image)
    except PostbotError as e:
        logger.error(f"Image upload error: {e}")
        return JSONResponse(status_code=400, content={"error": e.message})
    return {"imagePath": image_path}


@app.post("/gemini")
async def gemini_proxy(req: GeminiRequest):
    contents = [turn.model_dump() for turn in req.contents]
    try:
        return await gemini.generate_content(contents, model=req.model)
    except PostbotError as e:
        logger.error(f"Gemini API call failed: {e}")
        return JSONResponse(status_code=e.status_code, content={"error": f"Gemini API call failed: {e.message}"})


# ── Sessions ──────────────────────────────────────────────────

@app.get("/sse")
async def sse(request: Request):
    transport = sessions.connect()
    return StreamingResponse(
        event_stream(transport, request, keepalive=settings.sse_keepalive_s),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@app.post("/messages")
async def messages(request: Request, sessionId: Optional[str] = None):
    try:
        transport = sessions.get(sessionId)
    except NotFoundError:
        logger.error(f"No transport found for sessionId: {sessionId}")
        return JSONResponse(status_code=400, content={"error": "No transport found for sessionId"})

    try:
        payload = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Invalid JSON body"})
    logger.info(f"[{sessionId}] Received message: {payload}")

    response = await handle_message(payload, registry)
    if response is not None:
        try:
            await transport.send(response)
        except NotFoundError:
            # Stream closed while the message was being handled
            return JSONResponse(status_code=400, content={"error": "No transport found for sessionId"})
    return JSONResponse(status_code=202, content={"status": "accepted"})


class LocalBackend:
    """Dispatcher backend that runs tools and the model in-process."""

    def __init__(self, model: Optional[str] = None):
        self.model = model

    async def call_tool(self, name: str, args: Dict[str, Any]) -> ToolResult:
        return await invoke_tool(name, args, registry=registry)

    async def generate(self, history: List[dict]) -> dict:
        return await gemini.generate_content(history, model=self.model)

    async def upload_image(self, attachment: UploadFile) -> str:
        return await save_upload(attachment)


@app.post("/chat")
async def chat(
    sessionId: Optional[str] = None,
    message: str = Form(""),
    image: Optional[UploadFile] = File(None),
):
    """Web front end turn: dispatch ``message`` against the session's history."""
    try:
        transport = sessions.get(sessionId)
    except NotFoundError:
        return JSONResponse(status_code=400, content={"error": "No transport found for sessionId"})
    if image is not None and not image.filename:
        # Browsers submit an empty file part when nothing was selected
        image = None
    if not message.strip() and image is None:
        return JSONResponse(status_code=400, content={"error": "Empty message"})

    async with transport.turn_lock:
        dispatcher = Dispatcher(LocalBackend(), history=transport.history, tools=describe_tools(registry))
        outcome = await dispatcher.handle(message, attachment=image)
    return {"kind": outcome.kind, "text": outcome.text}


# Static web front end (mounted last so API routes take precedence)
if settings.public_dir.is_dir():
    app.mount("/", StaticFiles(directory=str(settings.public_dir), html=True), name="public")
