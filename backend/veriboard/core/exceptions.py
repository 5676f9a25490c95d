"""
Custom exception classes for the application
"""
from typing import Optional, Dict, Any


class VeriBoardException(Exception):
    """Base exception for VeriBoard"""
    
    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(VeriBoardException):
    """Validation errors"""
    
    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=400, details=details)


class AuthenticationError(VeriBoardException):
    """Authentication related errors"""
    
    def __init__(self, message: str = "Not authorized to access this route", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=401, details=details)


class InvalidCredentials(AuthenticationError):
    """Wrong password or unknown email; the message never says which"""
    
    def __init__(self):
        super().__init__("Invalid credentials")


class AuthorizationError(VeriBoardException):
    """Authorization/permission errors"""
    
    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=403, details=details)


class NotFoundError(VeriBoardException):
    """Resource not found errors"""
    
    def __init__(self, resource: str, identifier: Optional[str] = None):
        message = f"{resource} not found"
        if identifier:
            message += f": {identifier}"
        super().__init__(message, status_code=404)


class ConflictError(VeriBoardException):
    """State conflicts"""
    
    def __init__(self, message: str = "Conflict", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status_code=409, details=details)


class AccountExists(ConflictError):
    """Registration for an email that already has an account"""
    
    def __init__(self):
        super().__init__("User already exists with this email")


class InvalidStatusTransition(ConflictError):
    """Verification status change not allowed from the current status"""
    
    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot move verification from {current} to {target}",
            details={"current_status": current, "target_status": target},
        )


class InvalidOrExpiredCode(VeriBoardException):
    """One-time code missing, wrong, consumed or past its expiry"""
    
    def __init__(self, message: str = "Invalid or expired code"):
        super().__init__(message, status_code=400)


class PayloadTooLarge(VeriBoardException):
    """Request body over the configured limit"""
    
    def __init__(self, limit: int):
        super().__init__("Request body too large", status_code=413, details={"max_bytes": limit})


class RateLimitError(VeriBoardException):
    """Too many requests in the current window"""
    
    def __init__(self, message: str = "Too many requests, please try again later", retry_after: Optional[int] = None):
        details = {"retry_after": retry_after} if retry_after else None
        super().__init__(message, status_code=429, details=details)
