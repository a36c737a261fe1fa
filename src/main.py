"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging and
registers API routes.  Run it with ``devotional-reply`` (see :func:`run`)
or point any ASGI server at ``src.main:app``.
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .utils.logger import setup_logging
from .config.app_config import get_app_config
from .controllers.reply_controller import router as reply_router
from .utils.error_handler import (
    InputValidationError,
    input_validation_exception_handler,
    unhandled_exception_handler,
)


def create_app() -> FastAPI:
    """Create and configure a FastAPI application."""
    setup_logging()
    app_config = get_app_config()

    app = FastAPI(title="Devotional Reply Service", version="0.1.0", debug=app_config.app_debug)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InputValidationError, input_validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(reply_router)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        logger.debug("Health check invoked")
        return {"status": "ok"}

    return app


# Create an application instance for ASGI servers
app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    app_config = get_app_config()
    # uvicorn has no SUCCESS level
    log_level = "info" if app_config.log_level == "SUCCESS" else app_config.log_level.lower()
    uvicorn.run(app, host=app_config.app_host, port=app_config.app_port, log_level=log_level)


if __name__ == "__main__":
    run()
