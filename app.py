"""FastAPI application entry point for the code overview service."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

from api import create_chat_app, create_generation_app, frontend_router, overviews_router
from api.deps import initialize_all, shutdown_all

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Initialize all services via DI
    await initialize_all()

    yield

    # Shutdown: close shared clients
    await shutdown_all()


# Endpoint applications, also servable on their own:
#   uvicorn app:generation_app / uvicorn app:chat_app
generation_app = create_generation_app()
chat_app = create_chat_app()

# Create FastAPI app
app = FastAPI(
    title="Code Overview",
    description="AI code overviews with follow-up chat",
    version="1.0.0",
    lifespan=lifespan
)

# Mount static files
app.mount("/static", StaticFiles(directory=str(BASE_DIR / "static")), name="static")

# Mount endpoint applications
app.mount("/generate", generation_app)
app.mount("/chat", chat_app)

# Include routers
app.include_router(overviews_router)
app.include_router(frontend_router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8079, reload=True)
