import uuid
from datetime import date, datetime, timezone
from typing import Any, List, Optional

from email_validator import EmailNotValidError, validate_email
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import ProjectStatus

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 255
PASSWORD_MIN_LENGTH = 6


class ValidationResult(BaseModel):
    loc: str
    msg: str


def _check_name(value: Optional[str], label: str = "Name") -> str:
    if value is None or not value.strip():
        raise ValueError(f"{label} is required")
    if len(value.strip()) < NAME_MIN_LENGTH:
        raise ValueError(f"{label} must be at least {NAME_MIN_LENGTH} characters")
    if len(value) > NAME_MAX_LENGTH:
        raise ValueError(f"{label} must be at most {NAME_MAX_LENGTH} characters")
    return value


def _check_email(value: str) -> str:
    if not value.strip():
        raise ValueError("Email is required")
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        raise ValueError("Invalid email") from None
    # Stored exactly as entered; lookups are case-sensitive.
    return value


def _check_password(value: str) -> str:
    if not value:
        raise ValueError("Password is required")
    if len(value) < PASSWORD_MIN_LENGTH:
        raise ValueError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters"
        )
    return value


def parse_start_date(value: Any) -> datetime:
    """Accept ISO-8601 dates or datetimes and normalise to naive UTC."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError("Start date is required")
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            raise ValueError("Invalid date") from None
    else:
        raise ValueError("Invalid date")

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except OverflowError:
            # offset pushes the instant outside the datetime range
            raise ValueError("Invalid date") from None
    return parsed


# ----- Auth Schemas -----


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)
    confirm_password: str = Field(
        default="", alias="confirmPassword", validate_default=True
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        return _check_name(value)

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("confirm_password")
    @classmethod
    def validate_confirmation(cls, value: str) -> str:
        if not value:
            raise ValueError("Password confirmation is required")
        return value

    @model_validator(mode="after")
    def passwords_match(self) -> "RegisterRequest":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    email: str = Field(default="", validate_default=True)
    password: str = Field(default="", validate_default=True)

    @field_validator("email")
    @classmethod
    def validate_email_shape(cls, value: str) -> str:
        return _check_email(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)


class UserOut(BaseModel):
    """Public user fields; the password hash never leaves the server."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserOut


class TokenClaims(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    user_id: uuid.UUID = Field(alias="userId")
    email: str


# ----- Project Schemas -----


class ProjectCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    name: str = Field(default="", validate_default=True)
    description: Optional[str] = None
    status: ProjectStatus = Field(default=None, validate_default=True)
    start_date: datetime = Field(default="", validate_default=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: Optional[str]) -> str:
        return _check_name(value, label="Project name")

    @field_validator("status", mode="before")
    @classmethod
    def validate_status(cls, value: Any) -> ProjectStatus:
        if isinstance(value, ProjectStatus):
            return value
        if value is None or value == "":
            raise ValueError("Status is required")
        try:
            return ProjectStatus(value)
        except ValueError:
            allowed = ", ".join(s.value for s in ProjectStatus)
            raise ValueError(f"Status must be one of: {allowed}") from None

    @field_validator("start_date", mode="before")
    @classmethod
    def validate_start_date(cls, value: Any) -> datetime:
        return parse_start_date(value)


class ProjectUpdate(ProjectCreate):
    """Partial update: only the fields present in the payload are applied."""

    name: Optional[str] = None
    status: Optional[ProjectStatus] = None
    start_date: Optional[datetime] = None


class ProjectOut(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, populate_by_name=True, alias_generator=to_camel
    )

    id: uuid.UUID
    name: str
    description: Optional[str] = None
    status: ProjectStatus
    start_date: datetime
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime


class ProjectStats(BaseModel):
    total: int = 0
    pendente: int = 0
    andamento: int = 0
    concluido: int = 0


class HealthOut(BaseModel):
    status: str = "ok"


def _error_message(error: dict) -> str:
    if error.get("type") == "value_error":
        ctx_error = (error.get("ctx") or {}).get("error")
        if ctx_error:
            return str(ctx_error)
        return error.get("msg", "").removeprefix("Value error, ")
    if error.get("type") == "missing":
        field = error.get("loc", ("field",))[-1]
        if field == "body":
            return "Request body is required"
        return f"{field} is required"
    return error.get("msg", "Invalid request payload")


def format_errors(errors: List[dict]) -> List[ValidationResult]:
    return [
        ValidationResult(
            loc=".".join(str(p) for p in error.get("loc", ())),
            msg=_error_message(error),
        )
        for error in errors
    ]


def first_error_message(errors: List[dict]) -> str:
    results = format_errors(errors)
    if not results:
        return "Invalid request payload"
    return results[0].msg
