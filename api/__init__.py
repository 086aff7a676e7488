"""API routes module for the code overview service."""

from .generate import create_generation_app
from .chat import create_chat_app
from .overviews import router as overviews_router
from .frontend import router as frontend_router

__all__ = ["create_generation_app", "create_chat_app", "overviews_router", "frontend_router"]
