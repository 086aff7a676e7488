"""Services module for the code overview service."""

from .chat_service import ChatService
from .overview_service import OverviewService
from .overview_store import OverviewStore

__all__ = ["ChatService", "OverviewService", "OverviewStore"]
