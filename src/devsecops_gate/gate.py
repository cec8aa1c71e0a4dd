"""Merge gate decision: map normalized outcomes and a threshold to a verdict."""

from __future__ import annotations

from .models import (
    GateResult,
    PolicyScanOutcome,
    ScanOutcome,
    ScanResults,
    ThresholdPolicy,
    ToolName,
    ToolStatus,
)


def is_blocking(policy: ThresholdPolicy, *outcomes: ScanOutcome) -> bool:
    """Return ``True`` when any of ``outcomes`` meets the threshold."""

    if policy is ThresholdPolicy.OFF:
        return False
    if policy is ThresholdPolicy.CRITICAL:
        return any(outcome.critical > 0 for outcome in outcomes)
    return any(outcome.critical > 0 or outcome.high > 0 for outcome in outcomes)


def tool_status(outcome: ScanOutcome, policy: ThresholdPolicy) -> ToolStatus:
    return ToolStatus.FAIL if is_blocking(policy, outcome) else ToolStatus.PASS


def policy_status(outcome: PolicyScanOutcome) -> ToolStatus:
    """Policy denies are shown as a status only; they never block the merge."""

    return ToolStatus.FAIL if outcome.deny_count > 0 else ToolStatus.PASS


def evaluate(results: ScanResults, policy: ThresholdPolicy) -> GateResult:
    """Compute the blocking verdict and per-tool status for one run."""

    return GateResult(
        blocking=is_blocking(policy, results.trivy, results.checkov),
        tool_status={
            ToolName.TRIVY: tool_status(results.trivy, policy),
            ToolName.CHECKOV: tool_status(results.checkov, policy),
            ToolName.OPA: policy_status(results.opa),
        },
    )


def blocking_message(policy: ThresholdPolicy) -> str:
    return (
        f"DevSecOps PR Gate: Found {policy.value.upper()} or higher severity issues "
        "that must be resolved before merge."
    )


__all__ = ["blocking_message", "evaluate", "is_blocking", "policy_status", "tool_status"]
