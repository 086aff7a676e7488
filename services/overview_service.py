"""Overview generation: prompt the model, store the result."""

from typing import Optional

from config import DEFAULT_OVERVIEW_PROMPT
from services.models import OverviewDocument, new_overview_id
from services.overview_store import OverviewStore


def build_overview_prompt(code: str, prompt: Optional[str] = None) -> str:
    """Prefix the submitted code with the caller's or the default instruction."""
    return (prompt or DEFAULT_OVERVIEW_PROMPT) + "\n" + code


class OverviewService:
    """Generates an overview for submitted code and persists it."""

    def __init__(self, generator, store: OverviewStore):
        self.generator = generator
        self.store = store

    async def create_overview(self, code: str, prompt: Optional[str] = None) -> OverviewDocument:
        """Generate, then store under a fresh id.

        Raises GenerationError or StoreError. Nothing is written when
        generation fails.
        """
        text = await self.generator.generate(build_overview_prompt(code, prompt))
        document = OverviewDocument(overview_id=new_overview_id(), text=text)
        await self.store.create_overview(document)
        print(f"[GENERATE] Stored overview {document.overview_id}")
        return document
