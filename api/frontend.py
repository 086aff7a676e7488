"""Server-rendered front end: overview id entry, overview and chat tabs."""

from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from api.deps import get_chat_service, get_store
from config import AI_SPEAKER, CHAT_GREETING, HUMAN_SPEAKER
from services.chat_service import ChatService
from services.errors import OverviewNotFoundError, ServiceError, StoreError
from services.models import ChatTurn, OverviewDocument
from services.overview_store import OverviewStore

router = APIRouter(tags=["frontend"])

# Base directory
BASE_DIR = Path(__file__).parent.parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

TABS = ("overview", "chatbot")


def render_home(request: Request, initial_id: str = "", error: Optional[str] = None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "index.html",
        {"initial_id": initial_id, "error": error},
        status_code=status_code,
    )


def render_overview(
    request: Request,
    document: OverviewDocument,
    tab: str,
    messages: Optional[List[ChatTurn]] = None,
    error: Optional[str] = None,
    status_code: int = 200
):
    if messages is None:
        messages = document.chat_history or [ChatTurn(user=AI_SPEAKER, text=CHAT_GREETING)]
    return templates.TemplateResponse(
        request,
        "overview.html",
        {
            "overview": document,
            "tab": tab,
            "messages": messages,
            "human_speaker": HUMAN_SPEAKER,
            "error": error,
        },
        status_code=status_code,
    )


def overview_page_url(overview_id: str, tab: str = "overview") -> str:
    return f"/overviews/{overview_id}?tab={tab}"


@router.get("/", response_class=HTMLResponse)
async def home(request: Request, overviewId: Optional[str] = Query(None)):
    """Home page: enter an overview id, pre-filled from ?overviewId=."""
    return render_home(request, initial_id=overviewId or "")


@router.get("/overview")
async def proceed(
    request: Request,
    overviewId: str = Query(""),
    store: OverviewStore = Depends(get_store)
):
    """Validate the entered id before switching to the overview page."""
    overview_id = overviewId.strip()
    if not overview_id:
        return RedirectResponse("/", status_code=303)

    try:
        found = await store.exists(overview_id)
    except StoreError as e:
        return render_home(request, overview_id, error=str(e), status_code=502)
    if not found:
        return render_home(request, overview_id, error="No overview exists with this id", status_code=404)
    return RedirectResponse(overview_page_url(overview_id), status_code=303)


@router.get("/overviews/{overview_id}", response_class=HTMLResponse)
async def overview_page(
    request: Request,
    overview_id: str,
    tab: str = Query("overview"),
    store: OverviewStore = Depends(get_store)
):
    """Overview page with the overview and chatbot tabs."""
    if tab not in TABS:
        tab = "overview"
    try:
        document = await store.get_overview(overview_id)
    except OverviewNotFoundError:
        return render_home(request, overview_id, error="No overview exists with this id", status_code=404)
    except StoreError as e:
        return render_home(request, overview_id, error=str(e), status_code=502)
    return render_overview(request, document, tab)


@router.post("/overviews/{overview_id}/chat")
async def send_message(
    request: Request,
    overview_id: str,
    message: str = Form(""),
    store: OverviewStore = Depends(get_store),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Send a chat message and return to the chatbot tab."""
    chat_url = overview_page_url(overview_id, "chatbot")
    text = message.strip()
    if not text:
        return RedirectResponse(chat_url, status_code=303)

    try:
        document = await store.get_overview(overview_id)
    except OverviewNotFoundError:
        return render_home(request, overview_id, error="No overview exists with this id", status_code=404)
    except StoreError as e:
        return render_home(request, overview_id, error=str(e), status_code=502)

    turns = document.chat_history + [ChatTurn(user=HUMAN_SPEAKER, text=text)]
    try:
        await chat_service.reply(overview_id, turns)
    except ServiceError as e:
        print(f"[FRONTEND] Chat failed for {overview_id}: {e}")
        # Same status the chat endpoint answers with
        status_code = 404 if isinstance(e, OverviewNotFoundError) else 500
        return render_overview(request, document, "chatbot", messages=turns, error=str(e), status_code=status_code)

    return RedirectResponse(chat_url, status_code=303)
