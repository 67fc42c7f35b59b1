"""Application entry point for FastAPI server."""
import sys

import uvicorn
from loguru import logger

from src.config.settings import get_settings

if __name__ == "__main__":
    settings = get_settings()
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    print("\n" + "="*60)
    print("  Drive Relay API Service v1.0")
    print("="*60)
    print("\nEndpoints:")
    print("  POST /api/relay     - Relay a Drive file into OpenAI Files")
    print("  POST /api/convert   - Download/export a Drive file as base64")
    print("  GET  /health        - Health check")
    print("\nAPI Docs: http://localhost:8000/docs")
    print("="*60 + "\n")

    # Use import string format to enable reload mode
    uvicorn.run(
        "app.app:app",  # Import string instead of app object
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
