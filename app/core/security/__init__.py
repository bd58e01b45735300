"""Security module for the admin access gate.

This module provides:
- JWT access token creation and verification
- FastAPI security dependencies

Usage:
    from app.core.security import create_access_token, require_admin
"""

# Token management
from .tokens import (
    TokenValidationResult,
    create_access_token,
    verify_token_detailed,
)

# FastAPI dependencies
from .dependencies import (
    security,
    require_admin,
)

__all__ = [
    "TokenValidationResult",
    "create_access_token",
    "verify_token_detailed",
    "security",
    "require_admin",
]
