import uuid

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.user import User
from app.services.auth import get_user_by_id, user_id_from_token
from app.services.builder.exceptions import NotAuthenticatedError

security = HTTPBearer(auto_error=False)


def _user_id_from_access_token(token: str) -> uuid.UUID:
    try:
        user_id = user_id_from_token(token, "access")
    except jwt.ExpiredSignatureError:
        raise NotAuthenticatedError("Token has expired")
    except jwt.PyJWTError:
        raise NotAuthenticatedError("Invalid token")
    if user_id is None:
        raise NotAuthenticatedError("Invalid token payload")
    return user_id


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Extract the current user from a Bearer access token.

    Raises:
        NotAuthenticatedError: No token, a bad token, or an unknown user (401).
        HTTPException: 403 if the account is deactivated.
    """
    if credentials is None:
        raise NotAuthenticatedError()

    user_id = _user_id_from_access_token(credentials.credentials)
    user = get_user_by_id(db, user_id)
    if user is None:
        raise NotAuthenticatedError("User not found")
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is deactivated",
        )
    return user


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User | None:
    """Like :func:`get_current_user`, but anonymous callers get ``None``.

    Respondents may fill in a published form without signing in. A token
    that is present but invalid is still rejected.
    """
    if credentials is None:
        return None
    return get_current_user(credentials, db)
