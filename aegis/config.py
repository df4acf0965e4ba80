import os
import re

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
PASSWORD_MIN_LENGTH = 8
# bcrypt only looks at the first 72 bytes of a secret
PASSWORD_MAX_BYTES = 72
TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 2000
SEARCH_MAX_LENGTH = 100
PAGE_LIMIT_MAX = 100
# ids and offsets are stored as signed 64-bit integers
MAX_ROW_ID = 2**63 - 1
PAGE_MAX = MAX_ROW_ID // PAGE_LIMIT_MAX

DEFAULT_SECRET = "change-me-in-production"
_DEFAULT_ORIGINS = "http://localhost:5173,http://localhost:8081,http://localhost:3000,http://127.0.0.1:5173"

_DURATION = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


def parse_duration(value: str) -> int:
    """Convert "7d", "12h", "30m", "45s" or a bare number of seconds to seconds."""
    match = _DURATION.match(value or "")
    if not match:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _UNIT_SECONDS[unit]


def _origins() -> list[str]:
    raw = os.environ.get("CORS_ALLOW_ORIGINS", _DEFAULT_ORIGINS)
    origins = [o.strip().rstrip("/") for o in raw.split(",") if o.strip()]
    frontend = os.environ.get("FRONTEND_URL", "").strip().rstrip("/")
    if frontend and frontend not in origins:
        origins.append(frontend)
    return origins


class Settings(BaseModel):
    environment: str = "development"
    database_url: str = "sqlite:///./aegis.db"
    jwt_secret: str = DEFAULT_SECRET
    jwt_algorithm: str = "HS256"
    token_lifetime: int = 7 * 86400
    cors_origins: list[str] = []
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000
    shutdown_grace_seconds: int = 10

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            environment=os.environ.get("APP_ENV", os.environ.get("NODE_ENV", "development")),
            database_url=os.environ.get("DATABASE_URL", "sqlite:///./aegis.db"),
            jwt_secret=os.environ.get("JWT_SECRET", DEFAULT_SECRET),
            jwt_algorithm=os.environ.get("JWT_ALGORITHM", "HS256"),
            token_lifetime=parse_duration(os.environ.get("JWT_EXPIRES_IN", "7d")),
            cors_origins=_origins(),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", 5000)),
            shutdown_grace_seconds=int(os.environ.get("SHUTDOWN_GRACE_SECONDS", 10)),
        )
