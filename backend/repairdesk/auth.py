"""Authentication helpers and FastAPI security dependencies.

This module verifies bearer tokens and enforces roles. The identity is
taken from the token itself; there is no per-request user lookup.

- `get_current_identity` authenticates: 401 when no bearer token is
  sent, 403 when the token is invalid or expired.
- `require_roles(...)` authorizes: 403 when the authenticated role is
  not one of the allowed roles.
"""

from typing import Optional
from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError
import jwt
from .config import settings
from .models import Role

bearer_scheme = HTTPBearer(auto_error=False)


class Identity(BaseModel):
    """Decoded token claims attached to the request."""
    id: int
    email: str
    role: Role


def decode_token(token: str) -> Identity:
    """Decode and verify a JWT token.

    Returns the identity on success or raises an HTTPException with
    status 403 on failure.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=403, detail='token expired')
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=403, detail='invalid token')
    try:
        return Identity(id=payload.get('id'), email=payload.get('email'), role=payload.get('role'))
    except ValidationError:
        raise HTTPException(status_code=403, detail='invalid token payload')


def get_current_identity(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Identity:
    """FastAPI dependency that returns the authenticated identity.

    The identity is also stored on `request.state.identity` for
    middleware and logging.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail='Unauthorized', headers={'WWW-Authenticate': 'Bearer'})
    identity = decode_token(credentials.credentials)
    request.state.identity = identity
    return identity


def require_roles(*roles: Role):
    """Build a dependency that admits only identities holding one of `roles`."""
    allowed = frozenset(Role(r) for r in roles)

    def _check(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise HTTPException(status_code=403, detail='Access denied')
        return identity

    return _check


require_admin = require_roles(Role.admin)
require_customer = require_roles(Role.customer)
