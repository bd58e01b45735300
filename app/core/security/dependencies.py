"""FastAPI security dependencies.

Provides:
- HTTPBearer security scheme
- require_admin dependency for mutating worksheet endpoints
"""

from typing import Any, Dict

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.logging import get_auth_logger
from .tokens import ACCESS_TOKEN_TYPE, TokenValidationResult, verify_token_detailed

logger = get_auth_logger()

# Security scheme for authentication
security = HTTPBearer()


def require_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Dict[str, Any]:
    """
    FastAPI dependency that admits requests carrying a valid access token.

    Args:
        credentials: HTTPAuthorizationCredentials from HTTPBearer security scheme

    Returns:
        Dictionary with the token subject and metadata

    Raises:
        HTTPException: If token is invalid, expired or of the wrong type
    """
    payload, result = verify_token_detailed(credentials.credentials)
    if payload is None:
        detail = (
            "Token has expired"
            if result is TokenValidationResult.EXPIRED
            else "Invalid or expired token"
        )
        logger.warning("Authentication failed", reason=result.value)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_type = payload.get("token_type")
    if token_type != ACCESS_TOKEN_TYPE:
        logger.warning("Authentication failed: Invalid token type", provided_type=token_type)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    subject = payload.get("sub")
    if not subject:
        logger.error("Authentication failed: Invalid token payload")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return {
        "subject": subject,
        "token_id": payload.get("jti"),
        "issued_at": payload.get("iat"),
        "expires_at": payload.get("exp"),
    }
