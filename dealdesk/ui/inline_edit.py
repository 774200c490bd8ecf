"""Dispatch single-cell edits to the deal update collaborator."""

from __future__ import annotations

import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..core.fields import DealField, FieldValue, coerce_edit, resolve_field, to_raw
from ..errors import InvalidFieldValueError, UnknownFieldError
from ..i18n import _
from ..telemetry import log_event
from .notices import Notice, NoticeLevel, NoticeSink, discard_notice

logger = logging.getLogger(__name__)

UpdateDeal = Callable[[str, dict[str, Any]], Awaitable[Any] | Any]


class EditStatus(str, Enum):
    UPDATED = "updated"
    FAILED = "failed"
    REJECTED = "rejected"


@dataclass(frozen=True)
class EditOutcome:
    """Result of one inline edit submission."""

    deal_id: str
    field: str
    status: EditStatus
    value: FieldValue | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is EditStatus.UPDATED


class InlineEditDispatcher:
    """Send cell edits to ``update_deal`` and report the outcome.

    Nothing is applied locally: on success the caller provides the updated
    collection on its next render, on failure the cell shows the old value
    because no state changed. While an edit of a cell is pending, further
    edits of the same cell are rejected; edits of other cells proceed
    independently.
    """

    def __init__(self, update_deal: UpdateDeal, notify: NoticeSink | None = None) -> None:
        """Use *update_deal* as collaborator and *notify* for user notices."""
        self._update_deal = update_deal
        self._notify = notify or discard_notice
        self._pending: set[tuple[str, DealField]] = set()

    def is_pending(self, deal_id: str, field: DealField | str) -> bool:
        """Return ``True`` while an edit of the cell is in flight."""
        try:
            resolved = resolve_field(field)
        except UnknownFieldError:
            return False
        return (deal_id, resolved) in self._pending

    @property
    def pending(self) -> frozenset[tuple[str, DealField]]:
        return frozenset(self._pending)

    def _failed(self, deal_id: str, field: str, error: str) -> EditOutcome:
        self._notify(
            Notice(
                _("Update failed"),
                _("Failed to update deal field {field}").format(field=field),
                NoticeLevel.ERROR,
            )
        )
        return EditOutcome(deal_id, field, EditStatus.FAILED, error=error)

    async def submit(self, deal_id: str, field: DealField | str, value: Any) -> EditOutcome:
        """Coerce *value* for *field* and forward it to the collaborator."""
        name = field.value if isinstance(field, DealField) else str(field)
        try:
            resolved, typed = coerce_edit(field, value)
        except (UnknownFieldError, InvalidFieldValueError) as exc:
            logger.warning("Rejected inline edit of %s.%s: %s", deal_id, name, exc)
            return self._failed(deal_id, name, str(exc))

        key = (deal_id, resolved)
        if key in self._pending:
            logger.info("Edit of %s.%s ignored: previous edit still pending", deal_id, name)
            return EditOutcome(
                deal_id, name, EditStatus.REJECTED, typed, error="edit already pending"
            )

        self._pending.add(key)
        start = time.monotonic()
        payload = {name: to_raw(typed)}
        try:
            result = self._update_deal(deal_id, payload)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            log_event(
                "DEAL_UPDATE_FAILED",
                {"deal_id": deal_id, "field": name, "error": str(exc)},
                start_time=start,
                level=logging.WARNING,
            )
            return self._failed(deal_id, name, str(exc))
        finally:
            self._pending.discard(key)

        if result is False:
            log_event(
                "DEAL_UPDATE_FAILED",
                {"deal_id": deal_id, "field": name, "error": "rejected"},
                start_time=start,
                level=logging.WARNING,
            )
            return self._failed(deal_id, name, "rejected by collaborator")

        log_event("DEAL_UPDATED", {"deal_id": deal_id, "fields": payload}, start_time=start)
        self._notify(Notice(_("Deal updated"), _("Field updated successfully")))
        return EditOutcome(deal_id, name, EditStatus.UPDATED, typed)
