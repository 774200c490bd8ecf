"""Typed application settings with Pydantic validation."""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import tomllib
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_PAGE_SIZE = 25
MIN_COLUMN_WIDTH = 80
DEFAULT_COLUMN_WIDTH = 120
DEFAULT_APP_URL = "https://deals.example.com"


class ListSettings(BaseModel):
    """Settings for the deals list view."""

    model_config = ConfigDict(validate_assignment=True)

    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1)
    min_column_width: int = Field(MIN_COLUMN_WIDTH, ge=1)
    default_column_width: int = DEFAULT_COLUMN_WIDTH
    sort_field: str = "modified_at"
    sort_direction: Literal["asc", "desc"] = "desc"
    preferences_path: str | None = None

    @field_validator("default_column_width", mode="before")
    @classmethod
    def _normalise_default_width(cls, value: int | str | None) -> int:
        """Fall back to the stock width for empty or non-positive values."""
        if value is None or value == "":
            return DEFAULT_COLUMN_WIDTH
        if isinstance(value, bool):
            raise TypeError("Boolean is not a valid column width")
        numeric = int(value)
        if numeric <= 0:
            return DEFAULT_COLUMN_WIDTH
        return numeric


class NotificationSettings(BaseModel):
    """Credentials and endpoints for task notification e-mails."""

    model_config = ConfigDict(validate_assignment=True)

    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = ""
    sender_email: str | None = None
    app_url: str = DEFAULT_APP_URL
    authority_url: str = "https://login.microsoftonline.com"
    graph_url: str = "https://graph.microsoft.com/v1.0"
    scope: str = "https://graph.microsoft.com/.default"
    timeout_seconds: float = Field(10.0, gt=0)

    @field_validator("sender_email", mode="before")
    @classmethod
    def _normalise_sender(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def has_credentials(self) -> bool:
        """Return ``True`` when tenant, client id and secret are all set."""
        return bool(self.tenant_id and self.client_id and self.client_secret)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> NotificationSettings:
        """Build settings from ``AZURE_EMAIL_*``, ``AZURE_SENDER_EMAIL`` and ``APP_URL``."""
        env = os.environ if environ is None else environ
        data: dict[str, str] = {}
        for key, name in (
            ("tenant_id", "AZURE_EMAIL_TENANT_ID"),
            ("client_id", "AZURE_EMAIL_CLIENT_ID"),
            ("client_secret", "AZURE_EMAIL_CLIENT_SECRET"),
            ("sender_email", "AZURE_SENDER_EMAIL"),
            ("app_url", "APP_URL"),
        ):
            value = env.get(name)
            if value:
                data[key] = value
        return cls.model_validate(data)


class AppSettings(BaseModel):
    """Aggregate settings for the application."""

    model_config = ConfigDict(validate_assignment=True)

    listing: ListSettings = Field(default_factory=ListSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


def load_app_settings(path: str | Path) -> AppSettings:
    """Load :class:`AppSettings` from *path* with validation.

    ``.toml`` files are parsed with :mod:`tomllib`, everything else as JSON.
    Validation errors are wrapped into :class:`ValueError`.
    """
    p = Path(path)
    with p.open("rb") as fh:
        data = tomllib.load(fh) if p.suffix.lower() == ".toml" else json.load(fh)
    try:
        return AppSettings.model_validate(data)
    except ValidationError as exc:
        raise ValueError(str(exc)) from exc
