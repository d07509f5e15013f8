"""
API request and response models for userauth REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields are Optional and default to "" instead of being required: a
missing or null field must reach AuthService and come back as invalid_input
(400), the same outcome as an empty one, rather than a generic 422. No length
limits are applied here; non-emptiness is the only input rule.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    display_name: Optional[str] = ""
    email: Optional[str] = ""
    login_name: Optional[str] = ""
    # Not stripped: whitespace is a legitimate password character.
    password: Optional[str] = ""

    def normalized(self) -> "RegisterRequest":
        """Return a copy with surrounding whitespace removed from identity fields."""
        return self.model_copy(
            update={
                "display_name": (self.display_name or "").strip(),
                "email": (self.email or "").strip(),
                "login_name": (self.login_name or "").strip(),
            }
        )


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    identity is matched against both login name and email.
    """

    identity: Optional[str] = ""
    password: Optional[str] = ""


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountResponse(BaseModel):
    """Non-secret account fields returned by register and list endpoints."""

    model_config = ConfigDict(frozen=True)

    id: int
    display_name: str
    email: str
    login_name: str
    created_at: str


class LoginResponse(BaseModel):
    """Response for a successful POST /api/v1/auth/login."""

    model_config = ConfigDict(frozen=True)

    id: int
    display_name: str
    email: str
    login_name: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
