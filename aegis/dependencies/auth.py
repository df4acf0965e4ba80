import logging
from typing import Optional

from fastapi import Depends, Header, Request
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.orm import Session, defer

from aegis.config import Settings
from aegis.database import get_db, get_settings
from aegis.errors import AuthError
from aegis.models.user import User
from aegis.schemas.user import UserPublic
from aegis.utils.auth import decode_token

logger = logging.getLogger(__name__)


def _extract_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if authorization:
        parts = authorization.split()
        if len(parts) == 2 and parts[0].lower() == "bearer":
            return parts[1]
    return None


def _resolve(token: str, db: Session, settings: Settings) -> UserPublic:
    try:
        # jwt.decode validates exp automatically
        user_id = decode_token(token, settings)
    except ExpiredSignatureError:
        raise AuthError("Token has expired")
    except JWTError:
        raise AuthError("Invalid token")

    user = (
        db.query(User)
        .options(defer(User.password_hash))
        .filter(User.id == user_id)
        .first()
    )
    if user is None:
        raise AuthError("User not found")
    return UserPublic.model_validate(user)


def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> UserPublic:
    """Strict gate; rejects the request with 401 when no valid identity resolves."""
    token = _extract_token(authorization)
    if not token:
        raise AuthError()
    try:
        user = _resolve(token, db, settings)
    except AuthError as exc:
        logger.info("Token verification failed on %s: %s", request.url.path, exc.message)
        raise
    request.state.user = user
    return user


def get_current_user_optional(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[UserPublic]:
    """Lenient gate; returns the caller when the token checks out, else None."""
    request.state.user = None
    token = _extract_token(authorization)
    if not token:
        return None
    try:
        user = _resolve(token, db, settings)
    except AuthError as exc:
        logger.debug("Optional auth failed: %s", exc.message)
        return None
    request.state.user = user
    return user
