import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from src.core import exceptions
from src.core.config import settings
from src.core.database import database
from src.core.events import get_event_bus
from src.core.logging_config import setup_logging
from src.core.response.handlers import (
    global_exception_handler,
    service_exception_handler,
    validation_exception_handler,
)

# Import routers from apps
from src.apps.posts import post_router
from src.apps.users import user_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: logging, tables, event bus
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    await database.create_tables()
    await database.connect()
    logger.info("Database connection established")
    bus = get_event_bus()
    yield
    # Shutdown: end live subscriptions, release connections
    logger.info("Shutting down")
    bus.close()
    await database.disconnect()


# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_INFO,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception handlers: service errors raised by dependencies, request validation, catch-all
app.add_exception_handler(exceptions.ServiceException, service_exception_handler)  # type: ignore
app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
app.add_exception_handler(Exception, global_exception_handler)


# Health check endpoint
@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with health check."""
    return {"message": "Server is running", "status": "healthy", "version": settings.PROJECT_VERSION}


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "message": "Service is running normally"}


# Include app routers
app.include_router(post_router)
app.include_router(user_router)


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,  # Enable auto-reload in development
        log_level="info",
    )
