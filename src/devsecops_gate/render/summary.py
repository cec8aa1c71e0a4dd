"""Render the merge gate report posted to pull requests."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from ..gate import evaluate
from ..models import Finding, PolicyFinding, ScanResults, ThresholdPolicy, ToolName

REPORT_MARKER = "<!-- devsecops-pr-gate:do-not-remove -->"
DEFAULT_TITLE = "DevSecOps PR Gate"
TOP_ISSUES_LIMIT = 3

NO_ISSUES_LINE = "- No security issues found!"
ALL_CLEAR_LINE = "*All security checks passed! Ready for merge.*"

T = TypeVar("T")


def render_summary(
    results: ScanResults,
    title: str = DEFAULT_TITLE,
    policy: ThresholdPolicy = ThresholdPolicy.HIGH,
) -> str:
    """Render a Markdown report for ``results``.

    The output only depends on the arguments, so re-rendering the same run
    produces a byte-identical report.
    """

    gate = evaluate(results, policy)

    lines: list[str] = [
        REPORT_MARKER,
        "",
        f"### {title}",
        "",
        "**Summary**",
        "| Tool | Critical | High | Status |",
        "| --- | ---: | ---: | :---: |",
        _table_row(
            ToolName.TRIVY.display_name,
            results.trivy.critical,
            results.trivy.high,
            gate.tool_status[ToolName.TRIVY].value,
        ),
        _table_row(
            ToolName.CHECKOV.display_name,
            results.checkov.critical,
            results.checkov.high,
            gate.tool_status[ToolName.CHECKOV].value,
        ),
        _table_row(ToolName.OPA.display_name, "–", "–", gate.tool_status[ToolName.OPA].value),
        "",
        "**Top Issues**",
    ]

    if results.has_findings:
        lines.extend(_top_issues(ToolName.TRIVY, results.trivy.findings, _format_vulnerability))
        lines.extend(_top_issues(ToolName.CHECKOV, results.checkov.findings, _format_misconfiguration))
        lines.extend(_top_issues(ToolName.OPA, results.opa.findings, _format_policy))
    else:
        lines.append(NO_ISSUES_LINE)

    lines.append("")
    if gate.blocking:
        lines.append(f"*Merge blocked - findings ≥ {policy.value} exist.*")
    else:
        lines.append(ALL_CLEAR_LINE)
    lines.append("")
    return "\n".join(lines)


def _table_row(tool: str, critical: object, high: object, status: str) -> str:
    return f"| {tool} | {critical} | {high} | {status} |"


def _top_issues(
    tool: ToolName,
    findings: Sequence[T],
    formatter: Callable[[T], str],
) -> list[str]:
    lines = [f"- {tool.display_name}: {formatter(finding)}" for finding in findings[:TOP_ISSUES_LIMIT]]
    remaining = len(findings) - TOP_ISSUES_LIMIT
    if remaining > 0:
        lines.append(
            f"- *... and {remaining} more {tool.display_name} findings. "
            "See full report in artifacts.*"
        )
    return lines


def _format_vulnerability(finding: Finding) -> str:
    return (
        f"`{finding.subject}` – {finding.severity.value.upper()} – "
        f"{finding.identifier} ({finding.description})"
    )


def _format_misconfiguration(finding: Finding) -> str:
    return f"`{finding.subject}` – {finding.severity.value.upper()} – {finding.identifier}"


def _format_policy(finding: PolicyFinding) -> str:
    return f"{finding.description} at {finding.subject}"


__all__ = ["DEFAULT_TITLE", "REPORT_MARKER", "render_summary"]
