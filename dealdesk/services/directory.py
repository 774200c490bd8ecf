"""User directory ports and a small in-memory implementation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class Profile(BaseModel):
    """User profile as returned by the directory."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    full_name: str = ""
    email: str | None = Field(None, alias="Email ID")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("full_name", mode="before")
    @classmethod
    def _normalise_name(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("email", mode="before")
    @classmethod
    def _normalise_email(cls, value: Any) -> Any:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class NotificationPreferences(BaseModel):
    """Per-user switches controlling task e-mails."""

    model_config = ConfigDict(extra="ignore")

    email_notifications: bool | None = None
    task_reminders: bool | None = None

    @property
    def allows_task_email(self) -> bool:
        """Return ``False`` only when a switch is explicitly turned off."""
        return self.email_notifications is not False and self.task_reminders is not False


class OwnerDirectory(Protocol):
    """Source of profiles offered in the lead owner dropdown."""

    async def fetch_profiles(self) -> Iterable[Mapping[str, Any]]:
        """Return raw profile records with at least ``id`` and ``full_name``."""


class RecipientDirectory(Protocol):
    """Lookups needed to address a notification e-mail."""

    async def get_profile(self, user_id: str) -> Profile | None:
        """Return the profile of *user_id* or ``None`` when unknown."""

    async def get_preferences(self, user_id: str) -> NotificationPreferences | None:
        """Return notification preferences of *user_id* if any are stored."""

    async def default_sender(self) -> str | None:
        """Return an address usable as sender when none is configured."""


@dataclass(frozen=True)
class OwnerOption:
    """Entry of the lead owner dropdown."""

    id: str
    label: str


async def load_owner_options(directory: OwnerDirectory | None) -> list[OwnerOption]:
    """Fetch owner options from *directory*.

    Any failure of the directory degrades to an empty list so the list
    view stays usable. Records that do not validate are skipped.
    """
    if directory is None:
        return []
    try:
        records = list(await directory.fetch_profiles() or [])
    except Exception as exc:
        logger.warning("Failed to load owner profiles: %s", exc)
        return []
    options: list[OwnerOption] = []
    for record in records:
        try:
            profile = Profile.model_validate(record)
        except ValidationError as exc:
            logger.warning("Skipping malformed profile %r: %s", record, exc)
            continue
        options.append(OwnerOption(profile.id, profile.full_name or profile.id))
    return options


class InMemoryDirectory:
    """Directory backed by in-process data; serves both ports."""

    def __init__(
        self,
        profiles: Iterable[Mapping[str, Any] | Profile] = (),
        preferences: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> None:
        """Index *profiles* by id and keep *preferences* keyed by user id."""
        self._profiles: dict[str, Profile] = {}
        for record in profiles:
            profile = record if isinstance(record, Profile) else Profile.model_validate(record)
            self._profiles[profile.id] = profile
        self._preferences = {
            user_id: NotificationPreferences.model_validate(data)
            for user_id, data in (preferences or {}).items()
        }

    async def fetch_profiles(self) -> list[dict[str, Any]]:
        return [
            {"id": profile.id, "full_name": profile.full_name}
            for profile in self._profiles.values()
        ]

    async def get_profile(self, user_id: str) -> Profile | None:
        return self._profiles.get(user_id)

    async def get_preferences(self, user_id: str) -> NotificationPreferences | None:
        return self._preferences.get(user_id)

    async def default_sender(self) -> str | None:
        for profile in self._profiles.values():
            return profile.email
        return None
