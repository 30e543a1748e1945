"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures
lifespan (job orchestrator startup and shutdown).

Dependencies: fastapi, ai_orchestrator.api, ai_orchestrator.application, ai_orchestrator.configs
System role: Application initialization and configuration
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ai_orchestrator.api import api_router
from ai_orchestrator.application.orchestrator import AIJobOrchestrator
from ai_orchestrator.boundary.db.connection import (
    get_async_engine,
    get_async_session_factory,
)
from ai_orchestrator.configs import get_settings
from ai_orchestrator.observability.logger import configure_logging
from ai_orchestrator.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Builds the job orchestrator unless one was injected, recovers stranded
    jobs and resumes the queue. On shutdown, in-flight monitors get a short
    drain window before they are cancelled.
    """
    # Startup
    settings = get_settings()
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    engine = None
    orchestrator: AIJobOrchestrator | None = getattr(app.state, "orchestrator", None)
    if orchestrator is None:
        engine = get_async_engine(settings.database)
        orchestrator = AIJobOrchestrator(get_async_session_factory(engine), settings)
        app.state.orchestrator = orchestrator

    try:
        await orchestrator.start()
    except Exception as e:
        logger.exception(
            "Failed to start AI job orchestrator",
            extra={"error": str(e)},
        )
        raise

    logger.info("Application startup complete: orchestrator running")

    yield

    # Shutdown
    await orchestrator.shutdown()
    if engine is not None:
        await engine.dispose()
    logger.info("Application shutdown")


def create_app(orchestrator: AIJobOrchestrator | None = None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        orchestrator: Pre-built orchestrator (tests); built at startup when omitted

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="AI Job Orchestration API",
        description="Queued AI labeling, learning and taxonomy sync jobs",
        version="0.1.0",
        lifespan=lifespan,
    )
    if orchestrator is not None:
        app.state.orchestrator = orchestrator

    # Add observability middleware (added first = last to execute)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "ai_orchestrator.main:app",
        host="localhost",
        port=8082,
        reload=True,
    )
