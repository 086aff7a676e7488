"""Configuration constants and environment settings for the code overview service."""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ModelConfig:
    """Configuration for a generation provider."""
    id: str
    name: str
    default_model: str
    max_tokens: int
    description: str


# Available generation providers
PROVIDERS = {
    "anthropic": ModelConfig(
        id="anthropic",
        name="Anthropic Messages API",
        default_model="claude-sonnet-4-5-20250929",
        max_tokens=4096,
        description="Hosted Claude models through the Anthropic SDK"
    ),
    "workers-ai": ModelConfig(
        id="workers-ai",
        name="Cloudflare Workers AI",
        default_model="@cf/meta/llama-3.1-8b-instruct-fp8",
        max_tokens=2048,
        description="Hosted open models through the Workers AI REST API"
    ),
}

# Default provider
DEFAULT_PROVIDER = "anthropic"

# Prompts
DEFAULT_OVERVIEW_PROMPT = "Provide a concise, accurate overview for this code:\n"
CONTEXT_PROMPT_SUFFIX = " for additional content look at the repo files\n"
CHAT_GREETING = "Hello! Ask me anything about this code overview."

# Speaker labels
AI_SPEAKER = "AI"
HUMAN_SPEAKER = "You"

# Document store
STORE_BACKENDS = {"firestore", "file"}
DEFAULT_STORE_BACKEND = "firestore"
DEFAULT_COLLECTION = "codeoverviews"
FIRESTORE_BASE_URL = "https://firestore.googleapis.com/v1"
IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
CLOUDFLARE_API_URL = "https://api.cloudflare.com/client/v4"
# Refresh a signed-in ID token this many seconds before it expires
TOKEN_EXPIRY_MARGIN = 60

# Storage paths
OVERVIEWS_PATH = "data/overviews"  # File-based overview storage

# CLI defaults
DEFAULT_ENDPOINT_URL = "http://localhost:8079/generate/"
DEFAULT_VIEWER_URL = "http://localhost:8079/"

# Upstream calls are not bounded; a hung upstream hangs its request
REQUEST_TIMEOUT: Optional[float] = None


@dataclass
class Settings:
    """Runtime settings resolved from the environment."""
    provider: str
    model: str
    mock_llm: bool
    anthropic_api_key: Optional[str]
    cf_account_id: Optional[str]
    cf_api_token: Optional[str]
    store_backend: str
    gcp_project_id: Optional[str]
    collection: str
    gcp_access_token: Optional[str]
    firebase_api_key: Optional[str]
    worker_email: Optional[str]
    worker_password: Optional[str]
    firestore_base_url: str
    identity_toolkit_url: str
    overviews_path: str


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() in ("1", "true", "yes")


def load_settings() -> Settings:
    """Read settings from environment variables.

    Raises ValueError for an unknown provider or store backend. Credentials
    are checked by the clients that need them.
    """
    provider = os.getenv("GENERATION_PROVIDER", DEFAULT_PROVIDER).lower()
    if provider not in PROVIDERS:
        raise ValueError(f"Unknown GENERATION_PROVIDER: {provider}")

    store_backend = os.getenv("STORE_BACKEND", DEFAULT_STORE_BACKEND).lower()
    if store_backend not in STORE_BACKENDS:
        raise ValueError(f"Unknown STORE_BACKEND: {store_backend}")

    return Settings(
        provider=provider,
        model=os.getenv("OVERVIEW_MODEL") or PROVIDERS[provider].default_model,
        mock_llm=_env_flag("MOCK_LLM"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
        cf_account_id=os.getenv("CF_ACCOUNT_ID"),
        cf_api_token=os.getenv("CF_API_TOKEN"),
        store_backend=store_backend,
        gcp_project_id=os.getenv("GCP_PROJECT_ID"),
        collection=os.getenv("FIRESTORE_COLLECTION", DEFAULT_COLLECTION),
        gcp_access_token=os.getenv("GCP_ACCESS_TOKEN"),
        firebase_api_key=os.getenv("FIREBASE_API_KEY"),
        worker_email=os.getenv("WORKER_EMAIL"),
        worker_password=os.getenv("WORKER_PASSWORD"),
        firestore_base_url=os.getenv("FIRESTORE_BASE_URL", FIRESTORE_BASE_URL),
        identity_toolkit_url=os.getenv("IDENTITY_TOOLKIT_URL", IDENTITY_TOOLKIT_URL),
        overviews_path=os.getenv("OVERVIEWS_PATH", OVERVIEWS_PATH),
    )
