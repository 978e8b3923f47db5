"""
Pydantic models for account requests and responses.
"""

import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, model_validator, validator

USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_]+$')
PASSWORD_PATTERN = re.compile(r'^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)[A-Za-z\d@$!%*?&]{8,}$')

# bcrypt ignores everything past 72 bytes
MAX_PASSWORD_BYTES = 72


class UserRole(str, Enum):
    """Account roles."""
    USER = "user"


def _strip(v):
    return v.strip() if isinstance(v, str) else v


def _check_username(v: str) -> str:
    if not USERNAME_PATTERN.match(v):
        raise ValueError('Username can only contain letters, numbers and underscores')
    return v


def _check_password_length(v: str) -> str:
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f'Password must not exceed {MAX_PASSWORD_BYTES} bytes')
    return v


class RegisterRequest(BaseModel):
    """Body of POST /api/users."""
    username: str = Field(..., min_length=3, max_length=30, description="Unique username")
    email: EmailStr = Field(..., description="Unique email address")
    password: str = Field(..., min_length=8, description="Plain-text password")

    @validator('username', 'email', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    @validator('username')
    def validate_username(cls, v):
        return _check_username(v)

    @validator('email')
    def normalize_email(cls, v):
        return v.lower()

    @validator('password')
    def validate_password(cls, v):
        """Require lower case, upper case and a digit."""
        if not PASSWORD_PATTERN.match(v):
            raise ValueError(
                'Password must be at least 8 characters and contain upper case, '
                'lower case and a digit'
            )
        return _check_password_length(v)

    class Config:
        json_schema_extra = {
            "example": {
                "username": "alice123",
                "email": "alice@example.com",
                "password": "Abcdef12"
            }
        }


class LoginRequest(BaseModel):
    """Body of POST /api/users/login."""
    email: EmailStr = Field(..., description="Account email")
    password: str = Field(..., min_length=1, description="Plain-text password")

    @validator('email', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    @validator('email')
    def normalize_email(cls, v):
        return v.lower()


class UpdateProfileRequest(BaseModel):
    """Body of PUT /api/users/me. Every field is optional."""
    username: Optional[str] = Field(None, min_length=3, max_length=30)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=8, description="New password")
    current_password: Optional[str] = Field(None, description="Required when changing the password")
    profile: Optional[Dict[str, Any]] = Field(None, description="Fields merged into the profile map")

    @validator('username', 'email', pre=True)
    def strip_whitespace(cls, v):
        return _strip(v)

    @validator('username')
    def validate_username(cls, v):
        if v is None:
            return v
        return _check_username(v)

    @validator('email')
    def normalize_email(cls, v):
        if v is None:
            return v
        return v.lower()

    @validator('password')
    def validate_password(cls, v):
        if v is None:
            return v
        return _check_password_length(v)

    @model_validator(mode='after')
    def require_current_password(self):
        if self.password and not self.current_password:
            raise ValueError('current_password is required to change the password')
        return self


class UserProfile(BaseModel):
    """Public view of an account."""
    id: str = Field(..., description="User identifier")
    username: str
    email: str
    role: UserRole = UserRole.USER
    profile: Dict[str, Any] = Field(default_factory=dict)
    join_date: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UserProfile":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            role=doc.get("role", UserRole.USER),
            profile=doc.get("profile") or {},
            join_date=doc.get("join_date"),
        )


class AuthenticatedUser(UserProfile):
    """Profile returned by register and login, with a session token."""
    token: str = Field(..., description="Signed session token")


class UpdatedProfile(BaseModel):
    """Result of a profile update."""
    id: str
    username: str
    email: str
    profile: Dict[str, Any] = Field(default_factory=dict)
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "UpdatedProfile":
        return cls(
            id=str(doc["_id"]),
            username=doc["username"],
            email=doc["email"],
            profile=doc.get("profile") or {},
            updated_at=doc.get("updated_at"),
        )
