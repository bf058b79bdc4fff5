"""Terminal chat front end.

Usage:
    python -m postbot.cli --server http://localhost:3001

Type ``/image <path>`` to attach an image to the next message and ``/quit``
to leave.
"""
import argparse
import asyncio
import logging
from pathlib import Path
from typing import Optional

from .client import HttpBackend, discover_tools
from .config import settings
from .dispatcher import Dispatcher

logger = logging.getLogger(__name__)

_PREFIX = {"tool": "Tool result: ", "ai": "AI: ", "error": "Error: "}


async def chat_loop(dispatcher: Dispatcher, read=input, write=print):
    """Run chat turns one at a time until EOF or /quit."""
    attachment: Optional[Path] = None
    while True:
        try:
            line = (await asyncio.to_thread(read, "You: ")).strip()
        except (EOFError, KeyboardInterrupt):
            break
        if not line:
            continue
        if line in ("/quit", "/exit"):
            break
        if line.startswith("/image "):
            attachment = Path(line[len("/image "):].strip())
            write(f"Attached {attachment} to the next message")
            continue

        outcome = await dispatcher.handle(line, attachment=attachment)
        attachment = None
        prefix = _PREFIX[outcome.kind]
        write(outcome.text if outcome.text.startswith(prefix) else prefix + outcome.text)
    logger.info(f"Chat ended after {len(dispatcher.history) // 2} turns")


async def run(server: str, model: str, attempts: int):
    backend = HttpBackend(base_url=server, model=model)
    tools = await discover_tools(backend.fetch_tools, attempts=attempts)
    dispatcher = Dispatcher(backend, tools=tools)
    await chat_loop(dispatcher)


def main(argv=None):
    parser = argparse.ArgumentParser(description="postbot terminal chat")
    parser.add_argument("--server", default=settings.server_url, help="tool server base URL")
    parser.add_argument("--model", default=settings.gemini_model, help="Gemini model id")
    parser.add_argument("--attempts", type=int, default=settings.discovery_attempts,
                        help="tool discovery attempts before using defaults")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(run(args.server, args.model, args.attempts))


if __name__ == "__main__":
    main()
