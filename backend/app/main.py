"""
Drop Commerce - FastAPI Application

Main entry point for the backend API.
Provides endpoints for installment subscriptions and wallets.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config.settings import settings
from app.infrastructure.exceptions import (
    ConcurrentModificationError,
    DropCommerceError,
    DuplicateError,
    InsufficientFundsError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    PreconditionViolation,
    ValidationError,
    WalletInactiveError,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    logger.info(f"Drop Commerce Backend starting in {settings.environment} mode...")

    if settings.database_url:
        from app.infrastructure.db.database import init_db
        await init_db()
        logger.info("Database connection pool initialized")

    yield

    # Shutdown
    if settings.database_url:
        from app.infrastructure.db.database import close_db
        await close_db()
        logger.info("Database connection pool closed")

    logger.info("Drop Commerce Backend shutting down...")


app = FastAPI(
    title="Drop Commerce",
    description="Installment subscriptions and wallets for food commerce",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS configuration from Settings
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Exception Handlers
# ============================================================================

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle validation errors."""
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(InsufficientFundsError)
async def insufficient_funds_handler(request: Request, exc: InsufficientFundsError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(PermissionDeniedError)
async def permission_denied_handler(request: Request, exc: PermissionDeniedError):
    return JSONResponse(status_code=403, content=exc.to_dict())


@app.exception_handler(WalletInactiveError)
async def wallet_inactive_handler(request: Request, exc: WalletInactiveError):
    return JSONResponse(status_code=403, content=exc.to_dict())


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    """Handle not found errors."""
    return JSONResponse(status_code=404, content=exc.to_dict())


@app.exception_handler(InvalidTransitionError)
async def invalid_transition_handler(request: Request, exc: InvalidTransitionError):
    """Handle rejected status change requests."""
    return JSONResponse(status_code=409, content=exc.to_dict())


@app.exception_handler(DuplicateError)
async def duplicate_error_handler(request: Request, exc: DuplicateError):
    return JSONResponse(status_code=409, content=exc.to_dict())


@app.exception_handler(ConcurrentModificationError)
async def concurrent_modification_handler(request: Request, exc: ConcurrentModificationError):
    """The caller may re-read and retry."""
    return JSONResponse(status_code=409, content=exc.to_dict())


@app.exception_handler(PreconditionViolation)
async def precondition_violation_handler(request: Request, exc: PreconditionViolation):
    """A stored record broke an invariant; this is a server-side bug."""
    logger.error(f"Precondition violation: {exc.message} ({exc.details})")
    return JSONResponse(status_code=500, content=exc.to_dict())


@app.exception_handler(DropCommerceError)
async def general_error_handler(request: Request, exc: DropCommerceError):
    """Handle all other application errors."""
    return JSONResponse(status_code=500, content=exc.to_dict())


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "drop-commerce"}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Drop Commerce API",
        "version": "1.0.0",
        "docs": "/docs",
    }


# ============================================================================
# Import and register routers
# ============================================================================

from app.api.routes import subscriptions, wallets

app.include_router(subscriptions.router, prefix="/api", tags=["Subscriptions"])
app.include_router(wallets.router, prefix="/api", tags=["Wallets"])
