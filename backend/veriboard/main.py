"""
VeriBoard - Main FastAPI application
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import structlog

from veriboard.core.config import settings
from veriboard.core.database import init_db
from veriboard.core.logging_config import configure_logging
from veriboard.core.middleware import (
    BodySizeLimitMiddleware,
    CorrelationIDMiddleware,
    LoggingMiddleware,
    ExceptionHandlerMiddleware,
    error_response,
    exception_response,
)
from veriboard.core.exceptions import VeriBoardException
from veriboard.auth.router import router as auth_router
from veriboard.verification.router import (
    admin_router,
    candidate_router,
    company_router,
)

# Configure logging
configure_logging()
logger = structlog.get_logger()

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Job-verification platform: accounts, email codes and employment verification",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Add middleware (last added is outermost)
app.add_middleware(LoggingMiddleware)
app.add_middleware(BodySizeLimitMiddleware)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(CorrelationIDMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handlers
@app.exception_handler(VeriBoardException)
async def veriboard_exception_handler(request: Request, exc: VeriBoardException):
    """Handle VeriBoard exceptions"""
    if exc.status_code >= 500:
        logger.error("server_error", path=request.url.path, error=exc.message, details=exc.details)
    return exception_response(exc)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Field-level messages for malformed request bodies"""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response(400, "Validation failed", "ValidationError", {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), "HTTPException")


# Health check
@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


# Include routers
app.include_router(auth_router)
app.include_router(candidate_router)
app.include_router(company_router)
app.include_router(admin_router)


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize on startup"""
    logger.info("application_starting", version=settings.APP_VERSION)
    
    try:
        init_db()
    except Exception as e:
        logger.error("database_init_failed", error=str(e))


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("application_shutting_down")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "veriboard.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
