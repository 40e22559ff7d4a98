"""FastAPI main application."""

import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config import settings
from ..core.errors import GridBoundsError, SculptError, UnknownBrushError
from .sculpt import router as sculpt_router
from .sculpt import sessions

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer()
        if settings.log_format == "console"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Terrain Sculpting API",
    description="Brush-based heightmap sculpting sessions",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(sculpt_router)


@app.exception_handler(SculptError)
async def sculpt_error_handler(request: Request, exc: SculptError):
    """Map sculpting errors to client errors."""
    status_code = 400
    if isinstance(exc, UnknownBrushError):
        status_code = 404
    elif isinstance(exc, GridBoundsError):
        status_code = 422
    logger.warning("Sculpt request failed", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.on_event("startup")
async def startup_event():
    logger.info("Starting Terrain Sculpting API", brush_directory=settings.brush_directory)


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    sessions.clear()
    logger.info("Shutting down Terrain Sculpting API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Terrain Sculpting API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "sessions": len(sessions)}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
