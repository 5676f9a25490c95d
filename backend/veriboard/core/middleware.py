"""
Custom middleware for request processing
"""
import time
import uuid
from typing import Any, Dict, Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
import structlog

from veriboard.core.config import settings
from veriboard.core.exceptions import VeriBoardException, PayloadTooLarge

logger = structlog.get_logger()


def error_response(
    status_code: int,
    message: str,
    error_type: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    """Uniform error body used by every handler"""
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "message": message,
            "type": error_type,
            "details": details or {},
        },
    )


def exception_response(exc: VeriBoardException) -> JSONResponse:
    return error_response(exc.status_code, exc.message, exc.__class__.__name__, exc.details)


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """Add correlation ID to requests for tracing"""
    
    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        
        # Add to context
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
        
        response = await call_next(request)
        response.headers["X-Correlation-ID"] = correlation_id
        
        return response


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests and responses"""
    
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        
        logger.info(
            "request_started",
            method=request.method,
            path=request.url.path,
        )
        
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                process_time=process_time,
            )
            
            response.headers["X-Process-Time"] = str(process_time)
            return response
            
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time=process_time,
            )
            raise


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Refuse requests whose declared body exceeds MAX_REQUEST_BODY_BYTES"""
    
    async def dispatch(self, request: Request, call_next):
        content_length = request.headers.get("content-length")
        if content_length and content_length.isdigit():
            if int(content_length) > settings.MAX_REQUEST_BODY_BYTES:
                logger.warning("request_too_large", path=request.url.path, content_length=int(content_length))
                return exception_response(PayloadTooLarge(settings.MAX_REQUEST_BODY_BYTES))
        return await call_next(request)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Handle exceptions and return proper error responses"""
    
    async def dispatch(self, request: Request, call_next):
        try:
            response = await call_next(request)
            return response
        except VeriBoardException as e:
            return exception_response(e)
        except Exception as e:
            logger.exception("unhandled_exception", error=str(e))
            return error_response(500, "Internal server error", "InternalServerError")
