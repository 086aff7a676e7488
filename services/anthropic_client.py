"""Anthropic API client wrapper for overview and chat generation."""

import os
from typing import Optional

import anthropic
import httpx

from config import PROVIDERS, REQUEST_TIMEOUT
from services.errors import GenerationError


class AnthropicClient:
    """Wrapper for the Anthropic Messages API producing plain text."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required")
        provider = PROVIDERS["anthropic"]
        self.model = model or provider.default_model
        self.max_tokens = max_tokens or provider.max_tokens
        # Failures surface to the caller on the first attempt
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            max_retries=0,
            timeout=REQUEST_TIMEOUT,
            http_client=http_client,
        )

    async def generate(self, prompt: str) -> str:
        """Send a single-turn prompt and return the reply text."""
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise GenerationError(f"API Error: {str(e)}")

        # Only text blocks carry the answer
        return "".join(
            block.text for block in message.content
            if getattr(block, "type", None) == "text"
        )

    async def close(self):
        await self.client.close()
