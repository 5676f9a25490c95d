"""
Authentication dependencies for FastAPI routes
"""
from typing import Optional
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from jose import JWTError
import structlog

from veriboard.core.database import get_db
from veriboard.core.exceptions import AuthenticationError, AuthorizationError
from veriboard.models.user import User
from veriboard.auth.service import decode_token, get_user_by_id

logger = structlog.get_logger()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)


def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Get current authenticated user from the bearer token
    """
    if not token:
        raise AuthenticationError()
    try:
        payload = decode_token(token, "access")
        user_id = int(payload.get("sub"))
    except (JWTError, TypeError, ValueError):
        raise AuthenticationError()
    
    user = get_user_by_id(db, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError()
    
    return user


def require_account_type(*account_types: str):
    """
    Dependency factory for account-type access control
    Usage: current_user: User = Depends(require_account_type("admin"))
    """
    def account_type_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.account_type not in account_types:
            logger.warning(
                "unauthorized_access_attempt",
                user_id=current_user.id,
                account_type=current_user.account_type,
                required=list(account_types),
            )
            raise AuthorizationError(
                f"User account type {current_user.account_type} is not authorized to access this route",
                details={"required_account_types": list(account_types)},
            )
        return current_user
    
    return account_type_checker
