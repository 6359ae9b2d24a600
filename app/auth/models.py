# =============================================================================
# app/auth/models.py - Authentication Models
# =============================================================================
# Pydantic models for authentication data.
# =============================================================================

from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID
from typing import Optional


class AuthUser(BaseModel):
    """
    Authenticated user extracted from Supabase JWT.

    This is the minimal user info available from the token itself,
    without querying the database. The raw token is kept so RLS-bound
    calls can run as the user; it never appears in serialized output.
    """
    model_config = ConfigDict(frozen=True)  # Make immutable

    id: UUID
    email: Optional[str] = None
    access_token: Optional[str] = Field(default=None, exclude=True, repr=False)


class UserResponse(BaseModel):
    """
    Current user as returned by /auth/me.

    Token data merged with the public.profiles row.
    """
    id: UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    is_admin: bool = False


class TokenVerification(BaseModel):
    valid: bool = True
    user_id: str
    email: Optional[str] = None
