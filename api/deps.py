"""Dependency injection providers for the API layer.

This module provides a single source of truth for shared services like
the overview store and the generation model client. Both are built once at
startup and handed to request handlers through FastAPI dependencies; tests
swap them with app.dependency_overrides.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI

from config import Settings, load_settings
from services.anthropic_client import AnthropicClient
from services.chat_service import ChatService
from services.file_overview_store import FileOverviewStore
from services.firestore_store import FirestoreOverviewStore, FirebasePasswordCredentials, StaticTokenCredentials
from services.mock_llm import MockGenerator
from services.overview_service import OverviewService
from services.overview_store import OverviewStore
from services.workers_ai_client import WorkersAIClient

# Singleton instances
_store: OverviewStore | None = None
_generator = None
_initialized: bool = False


def build_store(settings: Settings) -> OverviewStore:
    """Construct the configured overview store."""
    if settings.store_backend == "file":
        return FileOverviewStore(settings.overviews_path)

    if settings.gcp_access_token:
        credentials = StaticTokenCredentials(settings.gcp_access_token)
    else:
        credentials = FirebasePasswordCredentials(
            api_key=settings.firebase_api_key,
            email=settings.worker_email,
            password=settings.worker_password,
            identity_url=settings.identity_toolkit_url,
        )
    return FirestoreOverviewStore(
        project_id=settings.gcp_project_id,
        credentials=credentials,
        collection=settings.collection,
        base_url=settings.firestore_base_url,
    )


def build_generator(settings: Settings):
    """Construct the configured generation model client."""
    if settings.mock_llm:
        return MockGenerator()
    if settings.provider == "workers-ai":
        return WorkersAIClient(
            account_id=settings.cf_account_id,
            api_token=settings.cf_api_token,
            model=settings.model,
        )
    return AnthropicClient(api_key=settings.anthropic_api_key, model=settings.model)


async def initialize_all(settings: Optional[Settings] = None):
    """Initialize all stores and services. Called once at app startup."""
    global _store, _generator, _initialized

    if _initialized:
        return

    settings = settings or load_settings()

    # Initialize overview store
    _store = build_store(settings)
    await _store.initialize()

    # Initialize generation client
    _generator = build_generator(settings)

    _initialized = True
    print(f"[DEPS] All services initialized (store={settings.store_backend}, "
          f"provider={'mock' if settings.mock_llm else settings.provider})")


async def shutdown_all():
    """Close shared clients. Called once at app shutdown."""
    global _store, _generator, _initialized

    if _store is not None:
        await _store.close()
    if _generator is not None:
        await _generator.close()
    _store = None
    _generator = None
    _initialized = False


def get_store() -> OverviewStore:
    """Get the singleton overview store instance."""
    if not _initialized or _store is None:
        raise RuntimeError("Dependencies not initialized. Call initialize_all() first.")
    return _store


def get_generator():
    """Get the singleton generation client instance."""
    if not _initialized or _generator is None:
        raise RuntimeError("Dependencies not initialized. Call initialize_all() first.")
    return _generator


def get_overview_service(
    generator=Depends(get_generator),
    store: OverviewStore = Depends(get_store)
) -> OverviewService:
    """Build the overview service around the shared clients."""
    return OverviewService(generator, store)


def get_chat_service(
    generator=Depends(get_generator),
    store: OverviewStore = Depends(get_store)
) -> ChatService:
    """Build the chat service around the shared clients."""
    return ChatService(generator, store)


def is_initialized() -> bool:
    """Check if dependencies have been initialized."""
    return _initialized


@asynccontextmanager
async def service_lifespan(app: FastAPI):
    """Application lifespan handler: build shared clients, close them on exit."""
    await initialize_all()
    yield
    await shutdown_all()
