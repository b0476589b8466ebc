"""installkit - Pydantic models for the install API.

Request/response validation for services/install_api.
"""

from pydantic import BaseModel, ConfigDict, Field

# --- Request Models ---


class ImportTemplateRequest(BaseModel):
    """Request payload for a seed template import."""

    model_config = ConfigDict(extra="forbid")

    template: str = Field(
        ...,
        min_length=1,
        description="Template name relative to the templates root",
    )
    preserve_data: bool = Field(
        default=False,
        description="Keep existing rows instead of emptying prefixed tables first",
    )


class CreateAdminRequest(BaseModel):
    """Request payload for the first administrator account."""

    model_config = ConfigDict(extra="forbid")

    username: str = Field(..., min_length=1, max_length=64, description="Login name")
    name: str = Field(..., min_length=1, max_length=255, description="Display name")
    email: str = Field(
        ...,
        max_length=255,
        pattern=r"^[^@\s]+@[^@\s]+$",
        description="Contact address",
    )
    password: str = Field(..., min_length=8, description="Plaintext password (stored hashed)")
    language: str = Field(default="en", min_length=2, max_length=5, description="Backend language")


# --- Response Models ---


class InstallStatusResponse(BaseModel):
    """Readiness predicates of the installation target."""

    model_config = ConfigDict(extra="forbid")

    locked: bool = Field(..., description="Too many failed logins")
    license_required: bool = Field(..., description="License not yet accepted")
    can_write_files: bool = Field(..., description="Application root is writable")
    can_connect: bool = Field(..., description="Database reachable and schema selectable")
    fresh_installation: bool = Field(default=False, description="No application content yet")
    old_database: bool = Field(default=False, description="Legacy schema detected")
    has_admin: bool = Field(default=False, description="An administrator account exists")


class LoginCountResponse(BaseModel):
    """Failed-login counter after an update."""

    model_config = ConfigDict(extra="forbid")

    login_count: int = Field(..., ge=0, description="Failed logins since last reset")
    locked: bool = Field(..., description="Lock threshold reached")


class TemplateListResponse(BaseModel):
    """Available seed templates."""

    model_config = ConfigDict(extra="forbid")

    templates: list[str] = Field(default_factory=list, description="Template names, ascending")


class ImportTemplateResponse(BaseModel):
    """Result of a successful template import."""

    model_config = ConfigDict(extra="forbid")

    status: str = Field(default="success", description="Operation status")
    template: str = Field(..., description="Imported template")
    truncated_tables: list[str] = Field(default_factory=list, description="Tables emptied first")
    statements: int = Field(..., ge=0, description="INSERT statements executed")


class RunOnceResponse(BaseModel):
    """Run-once scripts executed by a request."""

    model_config = ConfigDict(extra="forbid")

    executed: list[str] = Field(default_factory=list, description="Scripts that ran")


class StatusResponse(BaseModel):
    """Generic success response."""

    model_config = ConfigDict(extra="forbid")

    status: str = Field(default="success", description="Operation status")


class InstallErrorResponse(BaseModel):
    """Response for failed install operations."""

    model_config = ConfigDict(extra="forbid")

    status: str = Field(default="error", description="Operation status")
    error_code: str = Field(..., description="Installer error code")
    error_message: str = Field(..., description="Human-readable error description")


__all__ = [
    "ImportTemplateRequest",
    "CreateAdminRequest",
    "InstallStatusResponse",
    "LoginCountResponse",
    "TemplateListResponse",
    "ImportTemplateResponse",
    "RunOnceResponse",
    "StatusResponse",
    "InstallErrorResponse",
]
