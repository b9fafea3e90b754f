import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .routers.analysis import router as analysis_router
from .routers.validation import router as validation_router
from .services.config_store import get_openai_key, get_perplexity_key


# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    # Startup
    print(f"LaunchLens API v{__version__}")
    print(f"   OpenAI Key:      {'Configured' if get_openai_key() else 'Not set (offline decisions)'}")
    print(f"   Perplexity Key:  {'Configured' if get_perplexity_key() else 'Not set (placeholder competitors)'}")
    print("   Ready to validate startup ideas!")

    yield

    print("Shutting down LaunchLens API")


app = FastAPI(
    title="LaunchLens - Startup Idea Validation",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(validation_router)
app.include_router(analysis_router)


@app.get(
    "/",
    summary="API Root",
    description="Welcome endpoint with API information",
    tags=["General"]
)
async def root():
    """Root endpoint with API information."""
    return {
        "name": "LaunchLens",
        "version": __version__,
        "description": "Validate startup ideas and research the competition",
        "docs": "/docs",
        "endpoints": {
            "validate": "POST /api/validate - Validate a startup idea",
            "analyze": "POST /api/analyze - Competitive analysis report",
            "test": "GET /api/test - Quick competitor research",
            "questions": "GET /api/questions - Intake questions",
            "health": "GET /health - Service health check",
        }
    }


@app.get(
    "/health",
    summary="Global Health Check",
    description="Check if the API server is running and which providers are configured",
    tags=["General"]
)
async def health():
    """Global health check endpoint."""
    return {
        "status": "OK",
        "service": "LaunchLens",
        "version": __version__,
        "apis": {
            "openai": bool(get_openai_key()),
            "perplexity": bool(get_perplexity_key()),
        },
    }


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "details": str(exc) if os.getenv("DEBUG", "false").lower() == "true" else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "launchlens.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("DEBUG", "true").lower() == "true",
    )
