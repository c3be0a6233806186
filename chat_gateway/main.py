"""Main FastAPI application for the chat gateway."""

import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import settings
from .errors import GatewayError, InvalidRequestError, map_exception
from .middleware.limits import RequestSizeLimitMiddleware
from .routes import chat, models, vision
from .services.engine import EngineError, OllamaEngine
from .services.language import LanguageDetector
from .services.vision import VisionError, VisionService
from .utils.debug_logger import log_error_raised


def setup_logging():
    """Configure logging with console and optional file output."""
    log_level = logging.DEBUG if settings.DEBUG_MODE else logging.INFO
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Root logger configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(log_format))
    root_logger.addHandler(console_handler)

    # File handler (if enabled)
    if settings.LOG_TO_FILE:
        if os.path.isabs(settings.LOG_DIR):
            log_dir = Path(settings.LOG_DIR)
        else:
            project_root = Path(__file__).parent.parent
            log_dir = project_root / settings.LOG_DIR

        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / settings.LOG_FILE

        # Rotating file handler: 10MB max, keep 5 backups
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)

        return str(log_file)

    return None


# Configure logging
log_file_path = setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting chat gateway...")

    engine = OllamaEngine()
    detector = LanguageDetector()
    vision_service = VisionService(language_detector=detector)

    # Initialize route services
    chat.init_services(engine, vision_service, detector)
    models.init_engine(engine)
    vision.init_vision_service(vision_service)

    available, reason = await engine.is_available()
    if available:
        logger.info(f"Engine ready: {settings.ENGINE_MODEL} at {settings.ENGINE_BASE_URL}")
    else:
        logger.warning(f"Engine not available yet: {reason}")

    logger.info(f"Server ready on port {settings.PORT}")
    if log_file_path:
        logger.info(f"Log file: {log_file_path}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await engine.aclose()


app = FastAPI(
    title="Chat Gateway",
    description="OpenAI-compatible chat API for a local language model",
    version=settings.SERVER_VERSION,
    lifespan=lifespan,
)

# Request size limit, wrapped by CORS
app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.MAX_REQUEST_BYTES)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(chat.router, prefix="/v1")
app.include_router(models.router, prefix="/v1")
app.include_router(vision.router, prefix="/v1")
app.include_router(models.status_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return Response(status_code=200)


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "Chat Gateway",
        "version": settings.SERVER_VERSION,
        "description": "OpenAI-compatible chat API for a local language model",
        "model": settings.MODEL_NAME,
        "endpoints": {
            "chat_completions": "/v1/chat/completions",
            "multimodal_chat_completions": "/v1/chat/completions/multimodal",
            "models": "/v1/models",
            "vision_ocr": "/v1/vision/ocr",
            "vision_detect": "/v1/vision/detect",
            "vision_analyze": "/v1/vision/analyze",
            "status": "/status",
            "health": "/health",
        },
        "documentation": "/docs",
    }


def _error_response(request: Request, error: GatewayError) -> JSONResponse:
    log_error_raised(None, error.status_code, error.error_type, error.message)
    if error.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {error.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {error.message}")
    return error.to_response()


@app.exception_handler(GatewayError)
@app.exception_handler(EngineError)
@app.exception_handler(VisionError)
async def gateway_exception_handler(request: Request, exc: Exception):
    """Render gateway, engine and vision failures as OpenAI error envelopes."""
    return _error_response(request, map_exception(exc))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed JSON or request shape."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{message} ({location})"
    else:
        message = "Invalid request"
    return _error_response(request, InvalidRequestError(message))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Unknown routes and methods."""
    error = GatewayError(str(exc.detail))
    error.status_code = exc.status_code
    error.error_type = "invalid_request_error" if exc.status_code < 500 else "server_error"
    return _error_response(request, error)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.exception(f"Unhandled exception: {exc}")
    return _error_response(request, map_exception(exc))


def main():
    """Run the server."""
    import uvicorn

    uvicorn.run(
        "chat_gateway.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG_MODE,
    )


if __name__ == "__main__":
    main()
