"""
Run the API with uvicorn: python run_server.py

Bind address and log level come from settings (HOST, PORT, LOG_LEVEL in
.env); the app auto-reloads in development.
"""
import logging

import uvicorn

from pharmahub.core.config import settings

logger = logging.getLogger("pharmahub.server")


def main():
    reload = settings.ENVIRONMENT == "development"
    logger.info(f"Starting PharmaHub backend on {settings.HOST}:{settings.PORT} ({settings.ENVIRONMENT})")
    uvicorn.run(
        "pharmahub.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
        reload=reload,
    )


if __name__ == "__main__":
    logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    main()
