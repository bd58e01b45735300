"""JWT access token handling for the admin access gate.

Provides:
- Access token creation (for operators and tests; there is no login endpoint)
- Token verification with a detailed validation result
"""

import uuid
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import jwt

from app.core.config import settings
from app.core.logging import get_auth_logger

logger = get_auth_logger()

ACCESS_TOKEN_TYPE = "access"


class TokenValidationResult(Enum):
    """Token validation result types."""

    VALID = "valid"
    EXPIRED = "expired"
    INVALID_SIGNATURE = "invalid_signature"
    INVALID_FORMAT = "invalid_format"


def create_access_token(
    subject: str,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        subject: Identity placed in the ``sub`` claim
        expires_delta: Custom expiration time (overrides config)
        extra_claims: Additional claims to encode

    Returns:
        Encoded JWT token
    """
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode: Dict[str, Any] = dict(extra_claims or {})
    to_encode.update(
        {
            "sub": subject,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "token_type": ACCESS_TOKEN_TYPE,
        }
    )

    token = jwt.encode(
        to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )
    logger.debug("Access token created", subject=subject, expires_at=expire.isoformat())
    return token


def verify_token_detailed(
    token: str,
) -> Tuple[Optional[Dict[str, Any]], TokenValidationResult]:
    """
    Verify and decode a JWT token with detailed validation result.

    Args:
        token: JWT token to verify

    Returns:
        Tuple of (decoded token data or None, validation result)
    """
    try:
        payload = jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
        logger.debug("Token verified successfully", subject=payload.get("sub"))
        return payload, TokenValidationResult.VALID
    except jwt.ExpiredSignatureError:
        logger.debug("Token verification failed: expired signature")
        return None, TokenValidationResult.EXPIRED
    except jwt.InvalidSignatureError:
        logger.warning("Token verification failed: invalid signature")
        return None, TokenValidationResult.INVALID_SIGNATURE
    except jwt.InvalidTokenError:
        logger.warning("Token verification failed: invalid token format")
        return None, TokenValidationResult.INVALID_FORMAT
