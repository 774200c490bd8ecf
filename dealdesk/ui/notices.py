"""One-line user notices emitted by list actions."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum


class NoticeLevel(str, Enum):
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """Short message shown to the user after an action."""

    title: str
    description: str = ""
    level: NoticeLevel = NoticeLevel.INFO


NoticeSink = Callable[[Notice], None]


def discard_notice(_notice: Notice) -> None:
    """Sink used when the host does not display notices."""


class NoticeRecorder:
    """Sink collecting notices in memory."""

    def __init__(self) -> None:
        """Start with an empty history."""
        self.notices: list[Notice] = []

    def __call__(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def last(self) -> Notice | None:
        return self.notices[-1] if self.notices else None
