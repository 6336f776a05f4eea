# ============================================================================
# Tony Poem Foundation Site - Data Models
# ============================================================================
"""
Pydantic models for form input and JSON responses.

Form models validate what visitors and administrators submit before anything
reaches the content repository. Each exposes `to_fields()`, the document
fields stored for the record (camelCase keys as the site stores them).

Response models:
    - ErrorResponse: JSON error body for non-HTML clients
    - HealthResponse: /health payload
"""

from datetime import date as date_type, datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError, field_validator


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class _FormModel(BaseModel):
    @field_validator("*", mode="before")
    @classmethod
    def _strip_strings(cls, value: Any) -> Any:
        return _strip(value)

    def to_fields(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# ============================================================================
# PUBLIC FORMS
# ============================================================================

class ContactForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=5000)


class DonationForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr


# ============================================================================
# ADMIN FORMS
# ============================================================================

class LoginForm(_FormModel):
    email: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1, max_length=200)


class LeaderForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1, max_length=200)
    department: str = Field(default="", max_length=200)
    email: EmailStr
    bio: str = Field(default="", max_length=5000)


class TestimonialForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=200)
    title: str = Field(default="", max_length=200)
    department: str = Field(default="", max_length=200)
    email: EmailStr
    bio: str = Field(..., min_length=1, max_length=5000)


class PostForm(_FormModel):
    title: str = Field(..., min_length=1, max_length=300)
    topic: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1)

    def to_fields(self) -> Dict[str, Any]:
        fields = super().to_fields()
        fields["date"] = datetime.now(timezone.utc).isoformat()
        return fields


class ProgramForm(_FormModel):
    name: str = Field(..., min_length=1, max_length=300)
    date: date_type
    description: str = Field(..., min_length=1)


def validation_messages(exc: ValidationError) -> List[str]:
    """Human-readable messages for a form ValidationError."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "__root__")
        label = location.replace("_", " ").capitalize() if location else "Form"
        messages.append(f"{label}: {error.get('msg', 'invalid value')}")
    return messages


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response model."""
    error: str
    detail: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.now)


class HealthResponse(BaseModel):
    """Health of the site's backing services."""
    status: str
    version: str
    database: Dict[str, Any]
    storage: Dict[str, Any]
