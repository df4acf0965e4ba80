from datetime import datetime, UTC

from jose import jwt, JWTError
from passlib.context import CryptContext

from aegis.config import PASSWORD_MAX_BYTES, Settings

# cost factor 10 keeps a login around the tens-of-milliseconds mark
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)


def hash_password(password: str) -> str:
    """Return the bcrypt hash stored in ``users.password_hash``.

    bcrypt would silently ignore everything past 72 bytes, so longer
    passwords raise ValueError instead of hashing a prefix.
    """
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValueError("password too long: must be at most 72 bytes when UTF-8 encoded")
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str | None) -> bool:
    """Check a login attempt against the stored hash.

    ``hashed`` is None when the identifier matched no account; a dummy bcrypt
    round still runs so that case takes as long as a wrong password.
    """
    if hashed is None:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def create_token(user_id: int, settings: Settings, lifetime: int | None = None) -> str:
    """Sign a bearer token for ``user_id``.

    There is no revocation list: a token is valid until it expires, and
    rotating ``JWT_SECRET`` invalidates every outstanding token.
    """
    seconds = settings.token_lifetime if lifetime is None else lifetime
    issued_at = int(datetime.now(UTC).timestamp())
    # whole seconds, floored the same way jose floors "now" when checking exp
    payload = {"sub": str(user_id), "iat": issued_at, "exp": issued_at + seconds}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str, settings: Settings) -> int:
    """Return the user id carried by ``token``.

    Raises ``jose.ExpiredSignatureError`` for an expired token and
    ``jose.JWTError`` for anything else that fails verification.
    """
    payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    sub = payload.get("sub")
    try:
        return int(sub)
    except (TypeError, ValueError):
        raise JWTError("Invalid token: missing user")
