import re
from datetime import datetime
from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StringConstraints, ValidationInfo, field_validator

from aegis.config import PASSWORD_MAX_BYTES, PASSWORD_MIN_LENGTH, USERNAME_MAX_LENGTH, USERNAME_MIN_LENGTH
from aegis.errors import RuleViolations

SPECIAL_CHARS = '!@#$%^&*(),.?":{}|<>'
_SPECIAL = re.compile("[" + re.escape(SPECIAL_CHARS) + "]")
_USERNAME = re.compile(r"^[a-zA-Z0-9_-]+$")

Username = Annotated[str, StringConstraints(strip_whitespace=True)]
NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _username_problems(v: str) -> list[str]:
    problems = []
    if not USERNAME_MIN_LENGTH <= len(v) <= USERNAME_MAX_LENGTH:
        problems.append(f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters")
    if not _USERNAME.match(v):
        problems.append("Username can only contain letters, numbers, underscores, and hyphens")
    return problems


def _password_problems(v: str, strength: bool) -> list[str]:
    problems = []
    if len(v) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if strength:
        if not re.search(r"[A-Z]", v):
            problems.append("Password must contain at least one uppercase letter")
        if not re.search(r"[a-z]", v):
            problems.append("Password must contain at least one lowercase letter")
        if not re.search(r"[0-9]", v):
            problems.append("Password must contain at least one number")
        if not _SPECIAL.search(v):
            problems.append(f"Password must contain at least one special character ({SPECIAL_CHARS})")
    if len(v.encode("utf-8")) > PASSWORD_MAX_BYTES:
        problems.append(f"Password too long: must be at most {PASSWORD_MAX_BYTES} bytes when UTF-8 encoded")
    return problems


def _check(problems: list[str], value):
    if problems:
        raise RuleViolations(problems)
    return value


class SignupRequest(BaseModel):
    email: EmailStr
    username: Username
    password: str
    confirm_password: str = Field(alias="confirmPassword")

    @field_validator("username")
    @classmethod
    def username_rules(cls, v: str) -> str:
        return _check(_username_problems(v), v)

    @field_validator("password")
    @classmethod
    def password_strength(cls, v: str) -> str:
        """Report every unmet strength rule at once, not just the first."""
        return _check(_password_problems(v, strength=True), v)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, v: str, info: ValidationInfo) -> str:
        # skipped when password itself was rejected
        if "password" in info.data and v != info.data["password"]:
            raise ValueError("Passwords do not match")
        return v


class LoginRequest(BaseModel):
    email_or_username: NonBlank = Field(alias="emailOrUsername")
    password: Annotated[str, StringConstraints(min_length=1)]


class ProfileUpdate(BaseModel):
    username: Optional[Username] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None

    @field_validator("username")
    @classmethod
    def username_rules(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check(_username_problems(v), v)

    @field_validator("password")
    @classmethod
    def password_length(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else _check(_password_problems(v, strength=False), v)


class UserPublic(BaseModel):
    """Outward projection of a user; the password hash never appears here."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    username: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
