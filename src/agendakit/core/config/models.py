"""
Configuration data models for agendakit.

These models define the structure of .agendakit.json and
~/.config/agendakit/config.json files, with validation and type safety
via Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ApiConfig(BaseModel):
    """
    Agenda store endpoint.

    The endpoint is a deployed spreadsheet script answering action-based
    GET and POST requests.
    """
    url: Optional[str] = Field(
        default=None,
        description="Script endpoint URL (required for any store access)"
    )
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-request timeout in seconds"
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat blank strings as unset and require an http(s) scheme."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("api.url must start with http:// or https://")
        return v


class ViewerConfig(BaseModel):
    """
    Public agenda viewer behavior.
    """
    poll_interval: float = Field(
        default=30.0,
        ge=1.0,
        description="Seconds between background refreshes of the public agenda"
    )


class ShareConfig(BaseModel):
    """
    Shareable link settings.
    """
    base_url: str = Field(
        default="http://localhost:5173",
        description="Origin the agenda front end is served from"
    )


class ImagesConfig(BaseModel):
    """
    Image link rewriting.
    """
    thumbnail_width: int = Field(
        default=1500,
        ge=1,
        description="Width requested from the Drive thumbnail endpoint"
    )


class AgendaConfig(BaseModel):
    """
    Top-level agendakit configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = AgendaConfig(
        ...     api=ApiConfig(url="https://script.google.com/macros/s/XYZ/exec"),
        ...     viewer=ViewerConfig(poll_interval=10),
        ... )
        >>> config.viewer.poll_interval
        10.0
    """
    api: ApiConfig = Field(
        default_factory=ApiConfig,
        description="Agenda store endpoint"
    )
    viewer: ViewerConfig = Field(
        default_factory=ViewerConfig,
        description="Public viewer polling"
    )
    share: ShareConfig = Field(
        default_factory=ShareConfig,
        description="Shareable link settings"
    )
    images: ImagesConfig = Field(
        default_factory=ImagesConfig,
        description="Image link rewriting"
    )
