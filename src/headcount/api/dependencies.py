"""Shared API dependencies."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from headcount.core.settings import settings
from headcount.db.session import get_db

# Optional bearer scheme; enforcement depends on ADMIN_TOKEN being configured
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def require_admin(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> None:
    """Guard administrative routes with the configured bearer token.

    Raises:
        HTTPException: If a token is configured and the request does not carry it
    """
    expected = settings.admin_token
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(credentials.credentials, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid admin token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type alias for admin guard dependency
AdminDep = Annotated[None, Depends(require_admin)]
