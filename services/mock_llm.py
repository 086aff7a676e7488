"""Mock generation for deterministic testing.

When MOCK_LLM=1 environment variable is set, the service uses MockGenerator
instead of a hosted model. This enables development and testing without
external API dependencies.
"""

from typing import List

# ============================================================================
# Mock Data Constants
# ============================================================================

MOCK_OVERVIEW = """This change set adds a small feature.

- The diff introduces new lines of code.
- No existing behaviour appears to be removed.
- Consider adding tests for the new code paths.
"""

MOCK_CHAT_REPLY = "This is a mock response about the code overview."


class MockGenerator:
    """Returns canned text and records every prompt it receives."""

    def __init__(self, overview: str = MOCK_OVERVIEW, reply: str = MOCK_CHAT_REPLY):
        self.overview = overview
        self.reply = reply
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        # Chat prompts end with an open AI continuation marker
        if prompt.rstrip().endswith("AI:"):
            return self.reply
        return self.overview

    async def close(self):
        pass
