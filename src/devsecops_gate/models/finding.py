"""Finding models shared across scanner adapters and reporting layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Severity(str, Enum):
    """Severity levels every scanner output is normalized into."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def parse(cls, raw: object) -> Severity | None:
        """Return the level named by ``raw`` (case-insensitive), or ``None``."""

        if isinstance(raw, Severity):
            return raw
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return None


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


@dataclass(frozen=True, slots=True)
class Finding:
    """A normalized issue reported by the vulnerability or misconfiguration scanner.

    ``subject`` names the affected package (Trivy) or resource (Checkov).
    """

    identifier: str
    severity: Severity
    description: str
    subject: str


@dataclass(frozen=True, slots=True)
class PolicyFinding:
    """A single policy deny; ``subject`` is the file the policy was evaluated on."""

    identifier: str
    description: str
    subject: str
