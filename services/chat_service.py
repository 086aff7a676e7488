"""Chat about a stored overview."""

from typing import List

from config import AI_SPEAKER
from services.errors import StoreError, WriteConflictError
from services.models import ChatTurn
from services.overview_store import OverviewStore

CHAT_PROMPT_TEMPLATE = """You are a senior Software engineer assistant. Based on the following code overview, answer the user's question.

--- CODE OVERVIEW CONTEXT ---
{context}
--- END CONTEXT ---

--- CHAT HISTORY ---
{history}
AI:"""


def render_transcript(turns: List[ChatTurn]) -> str:
    """Render turns as "speaker: text" lines."""
    return "\n".join(f"{turn.user}: {turn.text}" for turn in turns)


def build_chat_prompt(context: str, turns: List[ChatTurn]) -> str:
    """Combine the overview and the transcript into one prompt."""
    return CHAT_PROMPT_TEMPLATE.format(context=context, history=render_transcript(turns))


class ChatService:
    """Answers a transcript using the stored overview as grounding."""

    def __init__(self, generator, store: OverviewStore):
        self.generator = generator
        self.store = store

    async def reply(self, overview_id: str, turns: List[ChatTurn]) -> str:
        """Generate the next AI turn and persist the extended transcript.

        Store read and generation failures propagate. The history write is
        best effort: its failure is logged and the reply is still returned.
        The write is conditional on the document being unchanged since the
        read, so a concurrent chat is reported instead of overwritten.
        """
        overview = await self.store.get_overview(overview_id)

        prompt = build_chat_prompt(overview.text, turns)
        reply_text = await self.generator.generate(prompt)

        full_conversation = list(turns) + [ChatTurn(user=AI_SPEAKER, text=reply_text)]
        try:
            await self.store.save_chat_history(
                overview_id,
                full_conversation,
                expected_version=overview.version,
            )
        except WriteConflictError as e:
            print(f"[CHAT] Conflict saving chat history, concurrent chat detected: {e}")
        except StoreError as e:
            print(f"[CHAT] Failed to save chat history: {e}")

        return reply_text
