"""
Authentication context for ScentBox.

Provides the current user for remote status and review operations, and
sign-in / sign-out notifications for the sync engine.
"""

from .session import (
    AuthContext,
    StaticAuthContext,
    SupabaseAuthContext,
    SESSION_CACHE_TTL,
)

__all__ = [
    "AuthContext",
    "StaticAuthContext",
    "SupabaseAuthContext",
    "SESSION_CACHE_TTL",
]
