# =============================================================================
# core/models/org.py - Company and Home Schemas
# =============================================================================

from pydantic import BaseModel, Field, field_validator


class _Named(BaseModel):
    """Names are trimmed and must not be blank."""
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value


class CompanyCreateRequest(_Named):
    pass


class CompanyRenameRequest(_Named):
    company_id: str = Field(..., min_length=1)


class HomeCreateRequest(_Named):
    """Admin console: create a home under any (admin) or own (company) company."""
    company_id: str = Field(..., min_length=1)


class HomeRenameRequest(_Named):
    home_id: str = Field(..., min_length=1)


class SelfHomeCreateRequest(_Named):
    """Company console: the company is always the caller's own."""


class Home(BaseModel):
    id: str
    name: str
    company_id: str | None = None


class HomeCreateResponse(BaseModel):
    ok: bool = True
    home: Home
