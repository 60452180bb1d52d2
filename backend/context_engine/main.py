"""
Context Engine - FastAPI Application
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from context_engine import __version__
from context_engine.core.config import Settings, settings
from context_engine.core.exceptions import ContextEngineError
from context_engine.core.logging import setup_logging, get_logger
from context_engine.api import contexts, search
from context_engine.services.context import ContextManager

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging(app.state.settings)
    logger.info("Starting Context Engine", version=__version__)

    yield

    # Shutdown
    logger.info("Shutting down Context Engine", contexts=app.state.context_manager.store.count())


async def handle_context_engine_error(request: Request, exc: ContextEngineError) -> JSONResponse:
    """Render core errors as JSON with their mapped status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request failed",
        code=exc.code,
        message=exc.message,
        path=request.url.path,
        method=request.method,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_app(config: Optional[Settings] = None, manager: Optional[ContextManager] = None) -> FastAPI:
    """
    Build the application.

    The context manager is created eagerly so invalid chunking or embedding
    settings fail at startup rather than on the first request.
    """
    config = config or settings

    app = FastAPI(
        title="Context Engine API",
        description="Chunked context storage with similarity search",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = config
    app.state.context_manager = manager or ContextManager(config)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ContextEngineError, handle_context_engine_error)

    # Include routers
    app.include_router(contexts.router, prefix="/contexts", tags=["contexts"])
    app.include_router(search.router, tags=["search"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "context-engine",
            "contexts": app.state.context_manager.store.count(),
        }

    return app


app = create_app()


def run() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run(
        "context_engine.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
