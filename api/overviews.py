"""Read-only overview API used by the browser front end."""

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_store
from services.errors import OverviewNotFoundError, StoreError
from services.models import OverviewDocument
from services.overview_store import OverviewStore

router = APIRouter(prefix="/api/overviews", tags=["overviews"])


async def load_overview(overview_id: str, store: OverviewStore) -> OverviewDocument:
    """Fetch a document, translating store errors to HTTP errors."""
    try:
        return await store.get_overview(overview_id)
    except OverviewNotFoundError:
        raise HTTPException(status_code=404, detail="Overview not found")
    except StoreError as e:
        raise HTTPException(status_code=502, detail=str(e))


@router.get("/{overview_id}")
async def get_overview(overview_id: str, store: OverviewStore = Depends(get_store)):
    """Get the stored overview text. A 404 means the id does not exist."""
    document = await load_overview(overview_id, store)
    return {
        "overview_id": document.overview_id,
        "text": document.text,
        "timestamp": document.timestamp.isoformat(),
    }


@router.get("/{overview_id}/chat")
async def get_chat_history(overview_id: str, store: OverviewStore = Depends(get_store)):
    """Get the stored chat transcript for an overview."""
    document = await load_overview(overview_id, store)
    return {"chatHistory": [turn.model_dump() for turn in document.chat_history]}
