"""Cloudflare Workers AI REST client for text generation."""

from typing import Optional

import httpx

from config import CLOUDFLARE_API_URL, PROVIDERS, REQUEST_TIMEOUT
from services.errors import GenerationError


class WorkersAIClient:
    """Runs text-generation models hosted on Cloudflare Workers AI."""

    def __init__(
        self,
        account_id: Optional[str],
        api_token: Optional[str],
        model: Optional[str] = None,
        base_url: str = CLOUDFLARE_API_URL,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        if not (account_id and api_token):
            raise ValueError("CF_ACCOUNT_ID and CF_API_TOKEN environment variables are required")
        self.account_id = account_id
        self.api_token = api_token
        self.model = model or PROVIDERS["workers-ai"].default_model
        self.base_url = base_url.rstrip("/")
        self._client = http_client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
        self._owns_client = http_client is None

    @property
    def run_url(self) -> str:
        return f"{self.base_url}/accounts/{self.account_id}/ai/run/{self.model}"

    async def generate(self, prompt: str) -> str:
        """Run the model on a prompt and return its response text."""
        try:
            response = await self._client.post(
                self.run_url,
                headers={"Authorization": f"Bearer {self.api_token}"},
                json={"prompt": prompt},
            )
        except httpx.HTTPError as e:
            raise GenerationError(f"Workers AI request failed: {e}")

        if not response.is_success:
            raise GenerationError(f"Workers AI error {response.status_code}: {response.text}")

        data = response.json()
        if not data.get("success", True):
            messages = "; ".join(err.get("message", "") for err in data.get("errors", []))
            raise GenerationError(f"Workers AI error: {messages or 'unknown error'}")

        result = data.get("result") or {}
        return result.get("response") or ""

    async def close(self):
        if self._owns_client:
            await self._client.aclose()
