"""Per-tool scan outcomes, gate verdicts and the threshold policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Mapping

from .finding import Finding, PolicyFinding, Severity

FINDINGS_CAP = 10


class ToolName(str, Enum):
    """Scanners whose results feed the gate."""

    TRIVY = "trivy"
    CHECKOV = "checkov"
    OPA = "opa"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    ToolName.TRIVY: "Trivy",
    ToolName.CHECKOV: "Checkov",
    ToolName.OPA: "OPA",
}


class ToolStatus(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


class ThresholdPolicy(str, Enum):
    """Minimum severity that blocks a merge."""

    CRITICAL = "critical"
    HIGH = "high"
    OFF = "off"

    @classmethod
    def parse(cls, raw: str | None) -> ThresholdPolicy:
        """Case-insensitive lookup; unrecognized values fall back to ``HIGH``."""

        if isinstance(raw, ThresholdPolicy):
            return raw
        normalized = (raw or "").strip().lower()
        for policy in cls:
            if policy.value == normalized:
                return policy
        return cls.HIGH


@dataclass(slots=True)
class ScanOutcome:
    """Severity counts plus the first findings reported by one scanner.

    Counters always reflect every recorded finding; ``findings`` is capped at
    :data:`FINDINGS_CAP` entries in emission order.
    """

    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0
    findings: List[Finding] = field(default_factory=list)

    @classmethod
    def empty(cls) -> ScanOutcome:
        return cls()

    @property
    def total(self) -> int:
        return self.critical + self.high + self.medium + self.low

    def count(self, severity: Severity) -> int:
        return getattr(self, severity.value)

    def record(self, finding: Finding) -> None:
        attribute = finding.severity.value
        setattr(self, attribute, getattr(self, attribute) + 1)
        if len(self.findings) < FINDINGS_CAP:
            self.findings.append(finding)


@dataclass(slots=True)
class PolicyScanOutcome:
    """Deny count plus the first policy violations reported by the evaluator."""

    deny_count: int = 0
    findings: List[PolicyFinding] = field(default_factory=list)

    @classmethod
    def empty(cls) -> PolicyScanOutcome:
        return cls()

    @property
    def total(self) -> int:
        return self.deny_count

    def record(self, finding: PolicyFinding) -> None:
        self.deny_count += 1
        if len(self.findings) < FINDINGS_CAP:
            self.findings.append(finding)


@dataclass(slots=True)
class ScanResults:
    """Exactly one outcome per scanner for a single gate run."""

    trivy: ScanOutcome = field(default_factory=ScanOutcome)
    checkov: ScanOutcome = field(default_factory=ScanOutcome)
    opa: PolicyScanOutcome = field(default_factory=PolicyScanOutcome)

    @property
    def has_findings(self) -> bool:
        return bool(self.trivy.findings or self.checkov.findings or self.opa.findings)


@dataclass(frozen=True, slots=True)
class GateResult:
    """Blocking verdict plus the per-tool status shown in reports."""

    blocking: bool
    tool_status: Mapping[ToolName, ToolStatus]
