"""Common interface for overview document stores."""

from abc import ABC, abstractmethod
from typing import List, Optional

from services.errors import OverviewNotFoundError
from services.models import ChatTurn, OverviewDocument


class OverviewStore(ABC):
    """Async storage for overview documents.

    Documents are created once and afterwards only have their chat history
    replaced as a whole. Nothing is ever deleted.
    """

    async def initialize(self):
        """Prepare the backend. Called once at startup."""

    async def close(self):
        """Release backend resources. Called once at shutdown."""

    @abstractmethod
    async def create_overview(self, document: OverviewDocument) -> OverviewDocument:
        """Persist a new overview document."""

    @abstractmethod
    async def get_overview(self, overview_id: str) -> OverviewDocument:
        """Fetch a document, raising OverviewNotFoundError when absent."""

    @abstractmethod
    async def save_chat_history(
        self,
        overview_id: str,
        turns: List[ChatTurn],
        expected_version: Optional[str] = None
    ) -> None:
        """Replace the chat history field of an existing document.

        When expected_version is given the write only succeeds if the
        document still carries that version; otherwise WriteConflictError
        is raised.
        """

    async def exists(self, overview_id: str) -> bool:
        """Check whether a document exists under overview_id."""
        try:
            await self.get_overview(overview_id)
        except OverviewNotFoundError:
            return False
        return True
