#!/usr/bin/env python3
"""
postbot server launcher
Runs the FastAPI tool server (discovery, invocation, uploads, Gemini proxy, SSE)
"""
import os
import sys

# Fix encoding issues on servers with ASCII locale
os.environ.setdefault('PYTHONIOENCODING', 'utf-8')

import asyncio
import logging
import uvicorn
from postbot.config import settings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def run_http_server():
    """Run FastAPI HTTP server"""
    config = uvicorn.Config(
        "postbot.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()


async def main():
    logger.info("Starting postbot server...")
    logger.info(f"Python {sys.version}, encoding={sys.getdefaultencoding()}")
    logger.info(f"Server will run on http://{settings.host}:{settings.port}")
    try:
        await run_http_server()
    except Exception as e:
        logger.error(f"HTTP server exited with error: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    asyncio.run(main())
