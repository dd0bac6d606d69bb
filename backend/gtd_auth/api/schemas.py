"""
Request and response models for the HTTP layer.

Validation failures raised here surface as 400 responses with per-field
details. New passwords are checked against the configured password policy
before any service code runs.
"""

import re
from datetime import datetime
from typing import List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    TypeAdapter,
    ValidationError as PydanticValidationError,
    field_validator,
    model_validator,
)

from gtd_auth.core.enums import UserRole, UserStatus
from gtd_auth.models.entities import User
from gtd_auth.services.auth.password import PasswordPolicy

_email_adapter = TypeAdapter(EmailStr)
PHONE_PATTERN = re.compile(r"^\+?[0-9()\-\s.]+$")


def validate_identifier(value: str) -> str:
    """A non-empty username, or a valid email address when it contains '@'."""
    identifier = value.strip()
    if not identifier:
        raise ValueError("Identifier is required")
    if "@" in identifier:
        # Normalized the same way stored emails are.
        try:
            return _email_adapter.validate_python(identifier)
        except PydanticValidationError:
            raise ValueError("Identifier must be a valid username or email")
    return identifier


def validate_username(value: str) -> str:
    username = value.strip()
    if not username:
        raise ValueError("Username cannot be blank")
    if "@" in username:
        raise ValueError("Username cannot contain '@'")
    return username


def validate_new_password(value: str) -> str:
    problems = PasswordPolicy.from_settings().violations(value)
    if problems:
        raise ValueError("; ".join(problems))
    return value


def validate_phone(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if len(value) < 7:
        raise ValueError("Phone number is too short")
    if len(value) > 20:
        raise ValueError("Phone number is too long")
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number format is invalid")
    return value


class ApiModel(BaseModel):
    """Accepts both snake_case names and the camelCase aliases used on the wire."""
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------
# Auth
# ---------------------------
class LoginRequest(ApiModel):
    identifier: str
    password: str = Field(..., min_length=1)

    @field_validator("identifier")
    @classmethod
    def check_identifier(cls, v: str) -> str:
        return validate_identifier(v)


class LoginResponse(ApiModel):
    user_id: str = Field(..., alias="userId")
    username: str
    role: UserRole


class ResetRequest(ApiModel):
    identifier: str

    @field_validator("identifier")
    @classmethod
    def check_identifier(cls, v: str) -> str:
        return validate_identifier(v)


class ResetConfirmRequest(ApiModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., alias="newPassword")

    @field_validator("new_password")
    @classmethod
    def check_password(cls, v: str) -> str:
        return validate_new_password(v)


class StatusResponse(BaseModel):
    status: str = "ok"


# ---------------------------
# Admin
# ---------------------------
class CreateUserRequest(ApiModel):
    username: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    role: UserRole

    @field_validator("username")
    @classmethod
    def check_username(cls, v: str) -> str:
        return validate_username(v)

    @field_validator("name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v


class CreateUserResponse(ApiModel):
    user_id: str = Field(..., alias="userId")
    reset_token: str = Field(..., alias="resetToken")


class ResetTokenResponse(ApiModel):
    reset_token: str = Field(..., alias="resetToken")


class UserSummary(ApiModel):
    id: str
    username: str
    email: Optional[str] = None
    name: str
    role: UserRole
    status: UserStatus
    last_login_at: Optional[datetime] = Field(None, alias="lastLoginAt")
    created_at: datetime = Field(..., alias="createdAt")

    @classmethod
    def from_user(cls, user: User) -> "UserSummary":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            name=user.name,
            role=user.role,
            status=user.status,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )


class UserListResponse(BaseModel):
    users: List[UserSummary]


# ---------------------------
# Account
# ---------------------------
class ProfileResponse(ApiModel):
    id: str
    username: str
    email: Optional[str] = None
    phone: Optional[str] = None
    name: str
    role: UserRole
    status: UserStatus

    @classmethod
    def from_user(cls, user: User) -> "ProfileResponse":
        return cls(
            id=str(user.id),
            username=user.username,
            email=user.email,
            phone=user.phone,
            name=user.name,
            role=user.role,
            status=user.status,
        )


class UpdateProfileRequest(ApiModel):
    """
    Partial profile update.

    ``email`` and ``phone`` may be set to null to clear them. Changing the
    username, email or phone requires the current password.
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    username: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    current_password: Optional[str] = Field(None, alias="currentPassword", min_length=1)

    @field_validator("username")
    @classmethod
    def check_username(cls, v: Optional[str]) -> Optional[str]:
        return v if v is None else validate_username(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @property
    def requires_password(self) -> bool:
        return bool({"username", "email", "phone"} & self.model_fields_set)

    @model_validator(mode="after")
    def check_fields(self) -> "UpdateProfileRequest":
        if not {"username", "name", "email", "phone"} & self.model_fields_set:
            raise ValueError("At least one field must be provided")
        if "username" in self.model_fields_set and self.username is None:
            raise ValueError("Username cannot be null")
        if "name" in self.model_fields_set and self.name is None:
            raise ValueError("Name cannot be null")
        if self.requires_password and not (self.current_password or "").strip():
            raise ValueError("Current password is required for this change")
        return self
