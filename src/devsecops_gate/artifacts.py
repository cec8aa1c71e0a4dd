"""Persist and reload the machine-readable scan summary artifact."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Sequence

from .models import (
    Finding,
    PolicyFinding,
    PolicyScanOutcome,
    ScanOutcome,
    ScanResults,
    Severity,
)

ARTIFACTS_DIRNAME = "devsecops-reports"
SUMMARY_FILENAME = "devsecops-summary.json"


def build_summary(results: ScanResults, *, now: datetime | None = None) -> dict[str, Any]:
    """Return the JSON-serializable summary document for ``results``."""

    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "timestamp": timestamp,
        "summary": {
            "trivy": _serialize_counts(results.trivy),
            "checkov": _serialize_counts(results.checkov),
            "opa": {
                "denyCount": results.opa.deny_count,
                "total": results.opa.total,
            },
        },
        "findings": {
            "trivy": [_serialize_finding(finding) for finding in results.trivy.findings],
            "checkov": [_serialize_finding(finding) for finding in results.checkov.findings],
            "opa": [_serialize_policy_finding(finding) for finding in results.opa.findings],
        },
    }


def write_summary_artifact(
    results: ScanResults,
    directory: Path,
    *,
    now: datetime | None = None,
) -> Path:
    """Write the summary document into ``directory`` and return its path."""

    directory.mkdir(parents=True, exist_ok=True)
    destination = directory / SUMMARY_FILENAME
    destination.write_text(
        json.dumps(build_summary(results, now=now), indent=2, ensure_ascii=False),
        encoding="utf-8",
    )
    return destination


def load_summary_artifact(path: Path) -> ScanResults:
    """Rebuild :class:`ScanResults` from a previously written summary artifact."""

    raw = path.read_text(encoding="utf-8-sig")
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse summary JSON from '{path}': {exc.msg}.") from exc

    if not isinstance(data, Mapping):
        raise ValueError("Summary JSON must be an object.")

    summary: Mapping[str, Any] = data.get("summary") or {}
    findings: Mapping[str, Any] = data.get("findings") or {}
    opa_summary: Mapping[str, Any] = summary.get("opa") or {}

    return ScanResults(
        trivy=_load_outcome(summary.get("trivy") or {}, findings.get("trivy") or []),
        checkov=_load_outcome(summary.get("checkov") or {}, findings.get("checkov") or []),
        opa=PolicyScanOutcome(
            deny_count=int(opa_summary.get("denyCount", 0)),
            findings=[_load_policy_finding(item) for item in findings.get("opa") or []],
        ),
    )


# ----------------------------------------------------------------------
def _serialize_counts(outcome: ScanOutcome) -> dict[str, int]:
    return {
        "critical": outcome.critical,
        "high": outcome.high,
        "medium": outcome.medium,
        "low": outcome.low,
        "total": outcome.total,
    }


def _serialize_finding(finding: Finding) -> dict[str, str]:
    return {
        "identifier": finding.identifier,
        "severity": finding.severity.value,
        "description": finding.description,
        "subject": finding.subject,
    }


def _serialize_policy_finding(finding: PolicyFinding) -> dict[str, str]:
    return {
        "identifier": finding.identifier,
        "description": finding.description,
        "subject": finding.subject,
    }


def _load_outcome(counts: Mapping[str, Any], findings: Sequence[Mapping[str, Any]]) -> ScanOutcome:
    return ScanOutcome(
        critical=int(counts.get("critical", 0)),
        high=int(counts.get("high", 0)),
        medium=int(counts.get("medium", 0)),
        low=int(counts.get("low", 0)),
        findings=[
            Finding(
                identifier=str(item.get("identifier", "")),
                severity=Severity.parse(item.get("severity")) or Severity.MEDIUM,
                description=str(item.get("description", "")),
                subject=str(item.get("subject", "")),
            )
            for item in findings
        ],
    )


def _load_policy_finding(item: Mapping[str, Any]) -> PolicyFinding:
    return PolicyFinding(
        identifier=str(item.get("identifier", "")),
        description=str(item.get("description", "")),
        subject=str(item.get("subject", "")),
    )


__all__ = [
    "ARTIFACTS_DIRNAME",
    "SUMMARY_FILENAME",
    "build_summary",
    "load_summary_artifact",
    "write_summary_artifact",
]
