"""Report sink contract used by the gate service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

PLACEHOLDER_LOCATOR = "https://github.com/placeholder"


class ReportSinkError(RuntimeError):
    """Raised when a rendered report cannot be published."""


@dataclass(frozen=True, slots=True)
class CommentHandle:
    """Reference to a previously published report."""

    id: int
    url: str


class ReportSink(ABC):
    """Publish a rendered report, replacing an earlier copy when one exists."""

    @abstractmethod
    def find_existing(self, title: str) -> CommentHandle | None:
        """Return the handle of an earlier report with ``title``, if any."""

    @abstractmethod
    def create_or_update(self, handle: CommentHandle | None, body: str) -> str:
        """Publish ``body`` and return a locator (URL) for it."""

    def publish(self, title: str, body: str) -> str:
        return self.create_or_update(self.find_existing(title), body)
