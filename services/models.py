"""Document models for stored overviews and chat transcripts."""

import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Overview ids become file names and URL path segments
OVERVIEW_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


class ChatTurn(BaseModel):
    """One speaker-tagged entry in a chat transcript."""
    user: str
    text: str


class OverviewDocument(BaseModel):
    """A stored overview and the chat held about it."""
    model_config = ConfigDict(populate_by_name=True)

    overview_id: str
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    chat_history: List[ChatTurn] = Field(default_factory=list, alias="chatHistory")
    # Opaque store revision used as a write precondition; never serialized
    version: Optional[str] = Field(default=None, exclude=True)


def new_overview_id() -> str:
    """Mint a 128-bit random overview identifier."""
    return uuid.uuid4().hex


def is_valid_overview_id(overview_id: str) -> bool:
    return bool(OVERVIEW_ID_PATTERN.match(overview_id))
