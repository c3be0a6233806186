"""Models listing and server status routes."""

import logging
from typing import Optional

from fastapi import APIRouter

from ..config import settings
from ..errors import NotFoundError, ServiceUnavailableError
from ..models.openai import ModelInfo, ModelListResponse, ServerStatus
from ..services.engine import LanguageModelEngine

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Models"])
status_router = APIRouter(tags=["Status"])

# Global engine instance (will be set by main.py)
engine: Optional[LanguageModelEngine] = None


def init_engine(model_engine: LanguageModelEngine) -> None:
    """Initialize engine instance."""
    global engine
    engine = model_engine


async def _availability():
    if not engine:
        raise ServiceUnavailableError("Engine not initialized")
    return await engine.is_available()


@router.get("/models", response_model=ModelListResponse)
async def list_models():
    """
    List available models.

    The configured model is listed only while the engine reports it
    available; otherwise `data` is empty.
    """
    available, reason = await _availability()
    if not available:
        logger.info(f"Model list empty, engine unavailable: {reason}")
        return ModelListResponse(data=[])

    return ModelListResponse(
        data=[ModelInfo(id=settings.MODEL_NAME, owned_by=settings.MODEL_OWNER)]
    )


@router.get("/models/{model_id}", response_model=ModelInfo)
async def get_model(model_id: str):
    """
    Get information about a specific model.

    Args:
        model_id: The model identifier
    """
    available, _ = await _availability()
    if model_id != settings.MODEL_NAME or not available:
        logger.warning(f"Unknown or unavailable model requested: {model_id}")
        raise NotFoundError(f"The model '{model_id}' does not exist")

    return ModelInfo(id=model_id, owned_by=settings.MODEL_OWNER)


@status_router.get("/status", response_model=ServerStatus)
async def server_status():
    """Engine availability, supported languages and server version."""
    available, reason = await _availability()
    return ServerStatus(
        model_available=available,
        reason=reason or "Model is available",
        supported_languages=settings.supported_language_names(),
        server_version=settings.SERVER_VERSION,
    )
