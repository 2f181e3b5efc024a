"""FastAPI application entry point for Code Review Chat."""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from fastapi.requests import Request
from dotenv import load_dotenv

from api import review_router, pr_router, files_router, credentials_router, conversations_router
from api.deps import initialize_all
from config import MODELS, DEFAULT_MODEL, MAX_FILE_SIZE, MAX_TOTAL_UPLOAD_SIZE, SUPPORTED_FILE_TYPES
from services.errors import ReviewError

# Load environment variables
load_dotenv()

BASE_DIR = Path(__file__).parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Initialize all services via DI
    initialize_all()
    yield


# Create FastAPI app
app = FastAPI(
    title="Code Review Chat",
    description="Chat with an AI code reviewer about uploaded files or GitHub pull requests",
    version="1.0.0",
    lifespan=lifespan
)

# Mount static files
app.mount("/static", StaticFiles(directory=BASE_DIR / "static"), name="static")

# Setup templates
templates = Jinja2Templates(directory=BASE_DIR / "templates")

# Include routers
app.include_router(review_router)
app.include_router(pr_router)
app.include_router(files_router)
app.include_router(credentials_router)
app.include_router(conversations_router)


@app.exception_handler(ReviewError)
async def review_error_handler(request: Request, exc: ReviewError):
    """Render domain errors as {"message": ...} with their status code."""
    print(f"[REVIEW] {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


@app.get("/")
async def index(request: Request):
    """Serve the main application page."""
    return templates.TemplateResponse(request, "index.html", {
        "models": list(MODELS.values()),
        "default_model": DEFAULT_MODEL,
        "max_file_size": MAX_FILE_SIZE,
        "max_total_size": MAX_TOTAL_UPLOAD_SIZE,
        "supported_types": SUPPORTED_FILE_TYPES,
    })


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=8079, reload=True)
