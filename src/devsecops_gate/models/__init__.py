"""Data models for normalized scanner findings and gate results."""

from .finding import Finding, PolicyFinding, Severity
from .outcome import (
    FINDINGS_CAP,
    GateResult,
    PolicyScanOutcome,
    ScanOutcome,
    ScanResults,
    ThresholdPolicy,
    ToolName,
    ToolStatus,
)

__all__ = [
    "FINDINGS_CAP",
    "Finding",
    "GateResult",
    "PolicyFinding",
    "PolicyScanOutcome",
    "ScanOutcome",
    "ScanResults",
    "Severity",
    "ThresholdPolicy",
    "ToolName",
    "ToolStatus",
]
