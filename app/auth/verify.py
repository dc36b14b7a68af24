"""
verify.py
---------
Purpose:
    JWT verification using Supabase JWKS (ES256).

Notes:
    - Fetches JWKS from Supabase and caches keys.
    - Provides `auth_dependency` for protected routes.
    - Failures raise AuthError so every route answers 401 {"error": "Unauthorized"}.
"""

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from app.config import settings
from app.features.ready_plans.domain.errors import AuthError
from app.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_jwk_client = PyJWKClient(settings.jwks_url())
# auto_error=False so a missing header reaches our own 401 shape instead of FastAPI's 403
_security = HTTPBearer(auto_error=False)


def verify_jwt(token: str) -> dict:
    try:
        signing_key = _jwk_client.get_signing_key_from_jwt(token)
        decoded = jwt.decode(
            token,
            signing_key.key,
            algorithms=["ES256"],  # Supabase now uses ES256
            audience=settings.SUPABASE_JWT_AUDIENCE,
            options={"verify_exp": True},
        )
        return decoded
    except jwt.PyJWTError as e:
        logger.info("JWT verification failed", error=str(e))
        raise AuthError() from e


def auth_dependency(
    credentials: HTTPAuthorizationCredentials | None = Depends(_security),
) -> dict:
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return verify_jwt(credentials.credentials)


def get_current_user_id(claims: dict = Depends(auth_dependency)) -> str:
    user_id = claims.get("sub")
    if not user_id:
        raise AuthError()
    return user_id
