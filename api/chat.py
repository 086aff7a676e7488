"""Chat endpoint for follow-up questions about a stored overview."""

from typing import List

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.deps import get_chat_service, service_lifespan
from api.errors import install_endpoint_defaults, preflight_response
from services.chat_service import ChatService
from services.errors import OverviewNotFoundError, ServiceError
from services.models import ChatTurn

router = APIRouter(tags=["chat"])


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""
    overviewId: str = Field(min_length=1)
    chatHistory: List[ChatTurn]


class ChatResponse(BaseModel):
    """The AI reply appended to the transcript."""
    response: str


@router.post("/", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    service: ChatService = Depends(get_chat_service)
):
    """Answer the transcript and persist it with the reply appended."""
    try:
        reply = await service.reply(request.overviewId, request.chatHistory)
    except OverviewNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": str(e)})
    except ServiceError as e:
        print(f"[CHAT] Worker Error: {e}")
        return JSONResponse(status_code=500, content={"error": str(e)})
    return ChatResponse(response=reply)


@router.options("/")
async def chat_options():
    """CORS preflight."""
    return preflight_response()


def create_chat_app() -> FastAPI:
    """Build the standalone chat endpoint application."""
    app = FastAPI(
        title="Code Overview Chat",
        description="Chats about a stored code overview",
        version="1.0.0",
        lifespan=service_lifespan
    )
    install_endpoint_defaults(app)
    app.include_router(router)
    return app
