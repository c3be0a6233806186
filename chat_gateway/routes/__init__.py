"""API routes for the chat gateway."""

from .chat import router as chat_router
from .models import router as models_router
from .models import status_router
from .vision import router as vision_router

__all__ = ["chat_router", "models_router", "status_router", "vision_router"]
