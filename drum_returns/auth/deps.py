"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_principal → verify the bearer token, return Principal
  require_admin         → admin or supervisor only
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from drum_returns.auth.permissions import (
    Principal,
    authenticate,
    ensure_administrative,
)

# auto_error=False so a missing header surfaces as AuthenticationError
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
) -> Principal:
    return authenticate(token)


async def require_admin(
    principal: Principal = Depends(get_current_principal),
) -> Principal:
    """Restrict endpoint to administrative roles."""
    ensure_administrative(principal)
    return principal

