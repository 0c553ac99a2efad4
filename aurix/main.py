from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from aurix.api.documents import router as documents_router
from aurix.api.events import router as events_router
from aurix.api.overload import router as overload_router
from aurix.context import AppContext
from aurix.engine import ExecutionLimitExceeded, RoutingError, ValidationError
from aurix.logger import configure_logging, get_logger
from aurix.settings import settings

logger = get_logger(__name__)


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the API. Tests pass their own context; the server builds one from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler - runs on startup/shutdown."""
        configure_logging(settings.LOG_LEVEL)
        app.state.context = context or AppContext.from_settings()
        await app.state.context.start()
        logger.info("Aurix API ready")

        yield

        await app.state.context.close()
        logger.info("Shutting down...")

    app = FastAPI(title="Aurix", lifespan=lifespan)

    # Allow CORS for the desktop renderer in development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(overload_router)
    app.include_router(documents_router)
    app.include_router(events_router)

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=422, content={"detail": str(exc), "record": exc.record})

    @app.exception_handler(RoutingError)
    @app.exception_handler(ExecutionLimitExceeded)
    async def workflow_error_handler(request: Request, exc: Exception):
        logger.error("Workflow failed: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        ctx: AppContext = app.state.context
        return {
            "status": "healthy",
            "database": ctx.database is not None,
            "llm": bool(ctx.llm and ctx.llm.is_available()),
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
