# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Auto-Advertisement API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   poetry run uvicorn app.main:app --reload --port 3000
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import settings
from app.exceptions import (
    AutoAdException,
    EntityStoreError,
    autoad_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from app.routers import ai, businesses, health, products
from app.auth import routes as auth_routes
from app.websocket import routes as websocket_routes
from core.context import AppContext
from lib.supabase_client import SupabaseClientError

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

    Runs on startup and shutdown:
    - Startup: Build the application context (database, storage, OpenAI)
    - Shutdown: Close network clients
    """
    # Startup
    logger.info(f"Starting Auto-Advertisement API in {settings.ENVIRONMENT} mode")
    logger.info(f"CORS origins: {settings.cors_origins_list}")

    app.state.context = AppContext.create(settings)

    yield

    # Shutdown
    logger.info("Shutting down Auto-Advertisement API")
    await app.state.context.aclose()


# Create FastAPI application
app = FastAPI(
    title="Auto-Advertisement API",
    description="""
## Product Advertisement Backend

Manage businesses and products, upload product photos, and generate
advertisement images with AI. Every change is pushed to the owner's open
sessions over a websocket.

### Product Lifecycle

| Status | Next |
|--------|------|
| pending | processing |
| processing | enriched, failed |
| enriched | posted |
| failed | pending (retry) |
| posted | - |

### Quick Start

```bash
# 1. Log in (creates your account on first call)
curl -X POST http://localhost:3000/auth/login -H "Authorization: Bearer $TOKEN"

# 2. Create a product
curl -X POST http://localhost:3000/products/{businessId} \\
  -H "Authorization: Bearer $TOKEN" -H "Content-Type: application/json" \\
  -d '{"name": "Lamp", "price": 20, "imagePrompt": "cozy living room"}'

# 3. Upload its photo
curl -X POST http://localhost:3000/products/{businessId}/{productId}/image \\
  -H "Authorization: Bearer $TOKEN" -F "file=@lamp.jpg"

# 4. Generate the ad image
curl -X POST http://localhost:3000/ai/generate-ad-image \\
  -H "Authorization: Bearer $TOKEN" -H "Content-Type: application/json" \\
  -d '{"businessId": "...", "productId": "..."}'
```
""",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    openapi_tags=[
        {
            "name": "Auth",
            "description": "Login bootstrap and token verification",
        },
        {
            "name": "Businesses",
            "description": "Create and manage businesses",
        },
        {
            "name": "Products",
            "description": "Import, create, update and delete products",
        },
        {
            "name": "AI",
            "description": "Advertisement image generation",
        },
        {
            "name": "WebSocket",
            "description": "Real-time product and business updates",
        },
        {
            "name": "Health",
            "description": "API health and readiness checks",
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

@app.exception_handler(AutoAdException)
async def handle_autoad_exception(request: Request, exc: AutoAdException):
    """Handle custom Auto-Advertisement exceptions."""
    return await autoad_exception_handler(request, exc)


@app.exception_handler(SupabaseClientError)
async def handle_supabase_error(request: Request, exc: SupabaseClientError):
    """Database failures surface as ENTITY_STORE_ERROR."""
    logger.error(f"Entity store failure on {request.url.path}: {exc}")
    return await autoad_exception_handler(request, EntityStoreError(exc.code, exc.message))


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return await http_exception_handler(request, exc)


@app.exception_handler(RequestValidationError)
async def handle_validation_exception(request: Request, exc: RequestValidationError):
    return await validation_exception_handler(request, exc)


@app.exception_handler(Exception)
async def handle_general_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    )


# =============================================================================
# Routers
# =============================================================================

# Authentication endpoints
app.include_router(auth_routes.router)

# Health check endpoints
app.include_router(
    health.router,
    tags=["Health"]
)

# Business endpoints
app.include_router(
    businesses.router,
    prefix="/businesses",
    tags=["Businesses"]
)

# Product endpoints
app.include_router(
    products.router,
    prefix="/products",
    tags=["Products"]
)

# AI generation endpoints
app.include_router(
    ai.router,
    prefix="/ai",
    tags=["AI"]
)

# WebSocket endpoints (Real-time updates)
app.include_router(
    websocket_routes.router,
    tags=["WebSocket"]
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
        "success": True,
        "name": "Auto-Advertisement API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }
