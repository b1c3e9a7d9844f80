import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from naolametric.config import settings
from naolametric.models.transit import FramesResponse
from naolametric.routers import frames, stops
from naolametric.services.display_mapper import error_frame
from naolametric.services.naolib_api import naolib_api_service
from naolametric.services.stop_directory import stop_directory

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        await naolib_api_service.startup()
        logger.info("Loading stop directory...")
        await stop_directory.startup(strict=settings.directory_strict_startup)
        yield
    finally:
        await stop_directory.shutdown()
        await naolib_api_service.shutdown()


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="LaMetric Time application for Nantes public transport (TAN/Naolib)",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Configure GZip compression
app.add_middleware(GZipMiddleware, minimum_size=1000)


# Include routers
app.include_router(frames.router)  # LaMetric frames
app.include_router(stops.router)   # Stop directory


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        message = "Not found"
    elif exc.status_code == 405:
        message = "Method not allowed"
    else:
        message = str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message})


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions"""
    logger.exception("Unhandled error on %s", request.url.path)

    # The display client only understands frames.
    if request.url.path == "/":
        body = FramesResponse(frames=[error_frame("API err")])
        return JSONResponse(status_code=500, content=body.model_dump())

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


# Health check endpoint
@app.get("/health", tags=["health"], response_class=PlainTextResponse)
async def health_check():
    """Liveness probe: OK once the stop directory has been loaded."""
    if stop_directory.is_ready():
        return PlainTextResponse("OK")
    return PlainTextResponse("Cache not ready", status_code=503)


@app.get("/info", tags=["health"])
async def info():
    """Self-describing API documentation"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Application LaMetric pour les transports nantais (TAN/Naolib)",
        "endpoints": [
            {"path": "/", "method": "GET", "description": "Prochains passages pour LaMetric"},
            {"path": "/stops", "method": "GET", "description": "Recherche d'arrêts"},
            {"path": "/popular-stops", "method": "GET", "description": "Arrêts populaires"},
            {"path": "/health", "method": "GET", "description": "État du serveur"},
            {"path": "/info", "method": "GET", "description": "Documentation API"},
        ],
        "parameters": [
            {"name": "stop", "type": "string", "required": True, "description": "Code arrêt (COMM, GSNO...)"},
            {"name": "line", "type": "string", "required": False, "description": "Filtre ligne (1, 2, C1...)"},
            {"name": "direction", "type": "integer", "required": False, "description": "Direction (1 ou 2)"},
            {
                "name": "limit",
                "type": "integer",
                "required": False,
                "description": f"Nombre résultats (1-{settings.arrivals_max_limit})",
            },
            {"name": "show_terminus", "type": "boolean", "required": False, "description": "Afficher destination"},
        ],
        "examples": [
            {"description": "Passages Commerce", "url": "/?stop=COMM"},
            {"description": "Ligne 1 direction 1", "url": "/?stop=COMM&line=1&direction=1"},
            {"description": "5 passages + terminus", "url": "/?stop=GSNO&limit=5&show_terminus=true"},
            {"description": "Recherche gare", "url": "/stops?search=gare"},
        ],
        "directory": stop_directory.status(),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "naolametric.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
