# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the CareSync API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.exceptions import CareSyncException, caresync_exception_handler
from app.routers import health, analyze, chat, families
from app.auth import routes as auth_routes

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Logs the active configuration on startup so demo or persistent
    deployments are obvious from the first log lines.
    """
    logger.info(f"Starting CareSync API in {settings.ENVIRONMENT} mode")
    logger.info(f"Model: {settings.OPENAI_MODEL} (chat: {settings.chat_model}), base_url={settings.OPENAI_BASE_URL or 'default'}")
    logger.info(f"CORS origins: {settings.cors_origins_list}")
    if settings.DEMO_MODE:
        logger.warning("DEMO_MODE is on: /analyze returns canned demo data")
    if settings.PERSIST_RESULTS:
        logger.info(f"PERSIST_RESULTS is on: storing documents in bucket '{settings.STORAGE_BUCKET}'")

    yield

    logger.info("Shutting down CareSync API")


# Create FastAPI application
app = FastAPI(
    title="CareSync API",
    description="""
## Family Care Coordination API

CareSync turns medical paperwork into a shared family to-do list.

### How It Works

1. **Upload a document** - Discharge summaries, prescriptions, care plans (PDF)
2. **Get care tasks** - The model reads the document and proposes tasks
3. **Coordinate** - Assign tasks to family members and track progress
4. **Ask the assistant** - A streaming chat that knows the family's tasks

### Quick Start

```bash
# Analyze a document
curl -X POST http://localhost:8000/api/v1/analyze \\
  -F "file=@discharge.pdf" -F "familyId=family-123"

# Chat with the assistant (streams plain text)
curl -N -X POST http://localhost:8000/api/v1/chat \\
  -H "Content-Type: application/json" \\
  -d '{"messages": [{"role": "user", "content": "What should we do first?"}]}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Analyze",
            "description": "Extract care tasks from uploaded documents",
        },
        {
            "name": "Chat",
            "description": "Streaming care assistant",
        },
        {
            "name": "Families",
            "description": "Stored tasks, members and documents (PERSIST_RESULTS only)",
        },
        {
            "name": "Auth",
            "description": "Check Supabase access tokens",
        },
        {
            "name": "Health",
            "description": "API health and liveness checks",
        },
    ],
)


# =============================================================================
# Middleware
# =============================================================================

# CORS middleware - allows cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(CareSyncException)
async def handle_caresync_exception(request: Request, exc: CareSyncException):
    """Handle custom CareSync exceptions."""
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return await caresync_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "An unexpected error occurred",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(
    auth_routes.router,
    prefix="/api/v1/auth",
    tags=["Auth"]
)

# Health check endpoints
app.include_router(
    health.router,
    prefix="/api/v1",
    tags=["Health"]
)

# Document analysis
app.include_router(
    analyze.router,
    prefix="/api/v1",
    tags=["Analyze"]
)

# Assistant chat
app.include_router(
    chat.router,
    prefix="/api/v1",
    tags=["Chat"]
)

# Stored family data
app.include_router(
    families.router,
    prefix="/api/v1/families",
    tags=["Families"]
)


# =============================================================================
# Root Endpoint
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint - returns API info.
    """
    return {
        "name": "CareSync API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/api/v1/health",
    }
