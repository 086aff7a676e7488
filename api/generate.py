"""Overview generation endpoint."""

from typing import Optional

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from api.deps import get_overview_service, service_lifespan
from api.errors import install_endpoint_defaults, preflight_response
from services.errors import ServiceError
from services.overview_service import OverviewService

router = APIRouter(tags=["generate"])


class GenerateRequest(BaseModel):
    """Request body for overview generation."""
    code: str = Field(min_length=1)
    prompt: Optional[str] = None


class GenerateResponse(BaseModel):
    """Generated overview and the id it was stored under."""
    overview_id: str
    overview: str


@router.post("/", response_model=GenerateResponse)
async def generate_overview(
    request: GenerateRequest,
    service: OverviewService = Depends(get_overview_service)
):
    """Generate an overview for the submitted code and store it."""
    try:
        document = await service.create_overview(request.code, request.prompt)
    except ServiceError as e:
        print(f"[GENERATE] Worker Error: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Worker error", "message": str(e)},
        )
    return GenerateResponse(overview_id=document.overview_id, overview=document.text)


@router.options("/")
async def generate_options():
    """CORS preflight."""
    return preflight_response()


def create_generation_app() -> FastAPI:
    """Build the standalone generation endpoint application."""
    app = FastAPI(
        title="Code Overview Generation",
        description="Generates and stores an AI overview of submitted code",
        version="1.0.0",
        lifespan=service_lifespan
    )
    install_endpoint_defaults(app)
    app.include_router(router)
    return app
