"""Pydantic schemas for API requests and responses.

Field names are snake_case in Python and camelCase on the wire.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    """Request to shorten a URL."""

    original_url: str = Field(..., description="The URL to shorten", min_length=1)
    custom_alias: Optional[str] = Field(None, alias="alias", description="Optional requested short code")
    expires_at: Optional[datetime] = Field(None, description="Optional expiry; naive values are UTC")

    @field_validator("custom_alias", "expires_at", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty form values as not provided."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "originalUrl": "https://example.com/very/long/path/to/resource",
                },
                {
                    "originalUrl": "https://github.com/user/repo",
                    "alias": "myrepo",
                    "expiresAt": "2030-03-30T23:59",
                },
            ]
        },
    )


class ShortenResponse(CamelModel):
    """Response after shortening a URL."""

    url: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    expires_at: Optional[datetime] = Field(None, description="Expiry timestamp")


class InfoResponse(CamelModel):
    """Link information."""

    original_url: str
    created_at: datetime
    click_count: int
    expires_at: Optional[datetime] = None


class AnalyticsResponse(CamelModel):
    """Click analytics for one link."""

    click_count: int
    ip_addresses: List[str] = Field(..., description="Source IP per click, most recent first")


class LinkSummary(CamelModel):
    """One entry of the recent links listing."""

    code: str
    original_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    click_count: int


class HealthResponse(CamelModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")


class StatisticsResponse(CamelModel):
    """Statistics response."""

    total_links: int
    total_clicks: int
    database: str
    cache_enabled: bool
    custom_codes_enabled: bool
