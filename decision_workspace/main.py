import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .dependencies import get_settings
from .routes.cases import router as cases_router
from .routes.gate import router as gate_router
from .routes.llm import router as llm_router
from .routes.roi import router as roi_router


# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    settings = get_settings()
    print("Starting AI Decision Workspace")
    print(f"   ROI thresholds:   x={settings.roi_threshold_x:g} y={settings.roi_threshold_y:g}")
    print(f"   Problem length:   {settings.min_problem_length}..{settings.max_problem_length}")
    print(f"   LLM provider:     {settings.llm_provider}")
    for provider in ("openai", "gemini", "deepseek"):
        config = settings.provider_config(provider)
        state = "Configured" if config and config.api_key else "Not set (mock fallback)"
        print(f"   {provider.title():<8} key:    {state}")
    print("   Ready to score decisions!")

    yield

    print("Shutting down AI Decision Workspace")


app = FastAPI(
    title="AI Decision Workspace",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",      # Next.js dev server
        "http://127.0.0.1:3000",
        "http://localhost:5173",      # Vite dev server
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(roi_router)
app.include_router(gate_router)
app.include_router(cases_router)
app.include_router(llm_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "AI Decision Workspace",
        "version": __version__,
        "description": "Problem gate, ROI quadrant scoring and decision summaries",
        "docs": "/docs",
        "endpoints": {
            "roi": "POST /roi/calculate - Score an initiative into an ROI quadrant",
            "gate": "POST /gate/validate - Check a problem form against the gate",
            "cases": "POST /cases - Start a decision case",
            "llm": "GET /llm/providers - Text-generation provider status",
            "health": "GET /health - Service health check",
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "healthy",
        "service": "ai-decision-workspace",
        "version": __version__,
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if get_settings().debug else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "decision_workspace.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
