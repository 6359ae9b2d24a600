# =============================================================================
# app/auth/dependencies.py - FastAPI Auth Dependencies
# =============================================================================
# Provides dependency injection for authentication.
#
# The access token is read from (first match wins):
# - Authorization: Bearer <token>
# - x-authorization / x-supabase-auth headers
# - the auth cookie (AUTH_COOKIE_NAME), for browser requests
#
# Supports both:
# - ES256/RS256 (new Supabase JWT signing keys) via JWKS
# - HS256 (legacy Supabase JWT secret), only when the secret is configured
#
# Usage:
#   from app.auth import get_current_user, AuthUser
#
#   @router.get("/protected")
#   async def protected(user: AuthUser = Depends(get_current_user)):
#       return {"user_id": user.id}
# =============================================================================

import logging
import time
from typing import Optional
from uuid import UUID
import httpx

from fastapi import HTTPException, Request, status
from jose import jwt, JWTError, ExpiredSignatureError

from app.config import settings
from app.auth.models import AuthUser

logger = logging.getLogger(__name__)

# Headers checked for a token, in order
TOKEN_HEADERS = ("authorization", "x-authorization", "x-supabase-auth")

# Cache for JWKS keys
_jwks_cache: dict = {}
_jwks_cache_time: float = 0
JWKS_CACHE_TTL = 3600  # 1 hour

# Asymmetric algorithms verified against the JWKS
JWKS_ALGORITHMS = ("ES256", "RS256")


def extract_token(request: Request) -> Optional[str]:
    """
    Find the caller's access token on a request.

    Returns:
        The bare JWT, or None when the request carries none
    """
    for header in TOKEN_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        value = value.strip()
        scheme, _, credentials = value.partition(" ")
        if scheme.lower() == "bearer":
            value = credentials.strip()
        if value:
            return value

    cookie = request.cookies.get(settings.AUTH_COOKIE_NAME)
    return cookie or None


def _get_jwks_url() -> str:
    """Get the JWKS URL from Supabase URL."""
    # Format: https://<project-ref>.supabase.co
    supabase_url = settings.SUPABASE_URL.rstrip('/')
    return f"{supabase_url}/auth/v1/.well-known/jwks.json"


def _fetch_jwks() -> dict:
    """Fetch JWKS from Supabase with caching."""
    global _jwks_cache, _jwks_cache_time

    current_time = time.time()

    # Return cached if valid
    if _jwks_cache and (current_time - _jwks_cache_time) < JWKS_CACHE_TTL:
        return _jwks_cache

    try:
        jwks_url = _get_jwks_url()
        response = httpx.get(jwks_url, timeout=10)
        response.raise_for_status()
        _jwks_cache = response.json()
        _jwks_cache_time = current_time
        logger.debug(f"Fetched JWKS from {jwks_url}")
        return _jwks_cache
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Failed to fetch JWKS: {e}")
        # Return cached even if expired, as fallback
        if _jwks_cache:
            return _jwks_cache
        return {"keys": []}


def _get_signing_key(token: str) -> tuple:
    """
    Get the appropriate signing key for a token.

    HS256 tokens need SUPABASE_JWT_SECRET; ES256/RS256 tokens need a JWKS
    key with a matching kid. Anything else is refused.

    Returns:
        Tuple of (key, algorithm) to use for verification

    Raises:
        HTTPException: 401 when no trusted key exists for the token
    """
    # Decode header without verification to get algorithm and key ID
    try:
        unverified_header = jwt.get_unverified_header(token)
    except JWTError:
        raise _unauthorized("Invalid token: unreadable header")

    alg = unverified_header.get("alg")
    kid = unverified_header.get("kid")

    # HS256 uses the legacy secret, which must be configured
    if alg == "HS256":
        if not settings.SUPABASE_JWT_SECRET:
            logger.warning("HS256 token rejected: SUPABASE_JWT_SECRET is not set")
            raise _unauthorized("Invalid token: HS256 tokens are not accepted")
        return settings.SUPABASE_JWT_SECRET, "HS256"

    if alg in JWKS_ALGORITHMS and kid:
        jwks = _fetch_jwks()
        for key in jwks.get("keys", []):
            if key.get("kid") == kid:
                return key, alg

    logger.warning(f"No signing key for alg={alg}, kid={kid}")
    raise _unauthorized("Invalid token: unknown signing key")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_token(token: str) -> AuthUser:
    """
    Verify a Supabase JWT and build the AuthUser.

    Raises:
        HTTPException: 401 if the token is invalid or expired
    """
    try:
        # Get the appropriate signing key
        signing_key, algorithm = _get_signing_key(token)

        # Decode and verify the JWT
        payload = jwt.decode(
            token,
            signing_key,
            algorithms=[algorithm],
            audience="authenticated"
        )
    except ExpiredSignatureError:
        logger.warning("JWT token has expired")
        raise _unauthorized("Token has expired")
    except JWTError as e:
        logger.warning(f"JWT validation failed: {e}")
        raise _unauthorized(f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        logger.warning("JWT token missing 'sub' claim")
        raise _unauthorized("Invalid token: missing user ID")

    # Convert string UUID to UUID object
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        logger.warning(f"Invalid UUID in token: {user_id}")
        raise _unauthorized("Invalid token: malformed user ID")

    logger.debug(f"Authenticated user: {user_id}")
    return AuthUser(id=user_uuid, email=payload.get("email"), access_token=token)


async def get_current_user(request: Request) -> AuthUser:
    """
    Extract and validate user from Supabase JWT token.

    This dependency:
    1. Finds the token in the headers or the auth cookie
    2. Verifies the JWT signature (supports ES256 and HS256)
    3. Validates the token hasn't expired
    4. Returns an AuthUser with the user's ID, email and token

    Raises:
        HTTPException: 401 if token is missing, invalid or expired
    """
    token = extract_token(request)
    if not token:
        raise _unauthorized("Not signed in.")
    return verify_token(token)


async def get_current_user_optional(request: Request) -> Optional[AuthUser]:
    """
    Optionally get the current user from JWT token.

    Returns None if no token is provided, instead of raising an error.
    Useful for endpoints that work with or without authentication.

    Usage:
        @router.get("/public-or-private")
        async def flexible_route(user: AuthUser | None = Depends(get_current_user_optional)):
            if user:
                return {"user_id": user.id}
            return {"message": "anonymous access"}
    """
    token = extract_token(request)
    if not token:
        return None

    try:
        return verify_token(token)
    except HTTPException:
        # If token is invalid, treat as no auth rather than error
        return None
