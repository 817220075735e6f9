#!/usr/bin/env python3
"""Startup script for the Carioca game backend"""

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def main():
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", 8000))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"Starting Carioca backend on {host}:{port}")
    logger.info(f"Health check available at: http://{host}:{port}/health")

    uvicorn.run(
        "carioca_engine.main:app",
        host=host,
        port=port,
        reload=os.getenv("RELOAD", "false").lower() == "true",
        log_level=os.getenv("LOG_LEVEL", "info").lower()
    )


if __name__ == "__main__":
    main()
