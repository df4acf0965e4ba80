"""Credential store: accounts, password checks and profile changes.

Uniqueness of email and username is enforced by unique indexes on the
``users`` table. The lookups below only exist to give a friendlier message
before the insert; a concurrent duplicate still fails at commit and is
translated to a 409 by the IntegrityError handler.
"""
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from aegis.errors import AuthError, BadRequestError, ConflictError, NotFoundError
from aegis.models.user import User
from aegis.schemas.user import UserPublic
from aegis.utils.auth import hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"
EMAIL_TAKEN = "Email already registered"
USERNAME_TAKEN = "Username already taken"
USER_NOT_FOUND = "User not found"


def _hash(password: str) -> str:
    try:
        return hash_password(password)
    except ValueError as e:
        # map hashing/validation errors to a 400 so client gets a clear message
        raise BadRequestError(str(e))


def _find_existing(db: Session, email: str, username: str) -> User | None:
    return db.query(User).filter(or_(User.email == email, User.username == username)).first()


def register(db: Session, email: str, username: str, password: str) -> UserPublic:
    email = email.lower()
    username = username.lower()
    existing = _find_existing(db, email, username)
    if existing:
        logger.info("Signup rejected, account exists for %s / %s", email, username)
        raise ConflictError(EMAIL_TAKEN if existing.email == email else USERNAME_TAKEN)

    user = User(email=email, username=username, password_hash=_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User %s registered", user.id)
    return UserPublic.model_validate(user)


def authenticate(db: Session, identifier: str, password: str) -> UserPublic:
    """Resolve an email-or-username plus password to a user.

    Unknown identifiers and wrong passwords fail with the same message.
    """
    ident = identifier.strip().lower()
    user = db.query(User).filter(or_(User.email == ident, User.username == ident)).first()
    if not verify_password(password, user.password_hash if user else None):
        raise AuthError(INVALID_CREDENTIALS)
    return UserPublic.model_validate(user)


def get_profile(db: Session, user_id: int) -> UserPublic:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return UserPublic.model_validate(user)


def update_profile(db: Session, user_id: int, patch: dict) -> UserPublic:
    """Apply ``username``, ``email`` and ``password`` from ``patch``.

    Each new username or email is checked against every other account
    before anything is written. A new password is hashed exactly once here;
    the stored hash is never fed back through the hasher.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)

    username = (patch.get("username") or "").lower()
    email = (patch.get("email") or "").lower()
    others = db.query(User).filter(User.id != user.id)
    if username and others.filter(User.username == username).first():
        raise ConflictError(USERNAME_TAKEN)
    if email and others.filter(User.email == email).first():
        raise ConflictError(EMAIL_TAKEN)

    if username:
        user.username = username
    if email:
        user.email = email
    if patch.get("password"):
        user.password_hash = _hash(patch["password"])

    db.commit()
    db.refresh(user)
    return UserPublic.model_validate(user)
