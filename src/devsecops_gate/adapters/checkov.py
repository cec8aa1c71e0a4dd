"""Adapter for Checkov infrastructure-as-code misconfiguration scans."""

from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from ..models import Finding, ScanOutcome, ToolName
from .base import ScannerAdapter
from .runner import ScannerError

logger = logging.getLogger(__name__)

REPORT_FILENAME = "results_json.json"
# Checkov exits 1 when it ran successfully and found failed checks.
_ACCEPTED_EXIT_CODES = {0, 1}


class CheckovAdapter(ScannerAdapter):
    """Shell out to Checkov and count failed checks by severity."""

    tool = ToolName.CHECKOV
    executable = "checkov"

    def empty_outcome(self) -> ScanOutcome:
        return ScanOutcome.empty()

    def _scan(self, target: Path, extra_args: List[str]) -> ScanOutcome:
        with tempfile.TemporaryDirectory(prefix="devsecops-checkov-") as tmpdir:
            output_dir = Path(tmpdir)
            command = [
                self.executable,
                "-d",
                str(target),
                "--output",
                "json",
                "--output-file-path",
                str(output_dir),
                *extra_args,
            ]
            result = self.runner.run(command)

            report_path = output_dir / REPORT_FILENAME
            if result.returncode not in _ACCEPTED_EXIT_CODES or not report_path.exists():
                raise ScannerError(
                    f"checkov exited with code {result.returncode}: {result.stderr.strip() or '(no stderr)'}"
                )
            if result.returncode == 1:
                logger.info("Checkov found violations")

            report = self._load_json(report_path)

        return self.parse_report(report)

    # ------------------------------------------------------------------
    def parse_report(self, report: Any) -> ScanOutcome:
        """Normalize a Checkov JSON report into a :class:`ScanOutcome`.

        Checkov writes a single object for one framework and a list of objects
        when several frameworks ran; both shapes are accepted.
        """

        outcome = ScanOutcome.empty()
        for check in _iter_failed_checks(report):
            identifier = str(check.get("check_id") or "Unknown")
            outcome.record(
                Finding(
                    identifier=identifier,
                    severity=self._resolve_severity(check.get("severity"), identifier),
                    description=str(check.get("check_name") or "No description available").strip(),
                    subject=str(check.get("resource") or "Unknown"),
                )
            )
        return outcome


def _iter_failed_checks(report: Any) -> Iterable[Mapping[str, Any]]:
    frameworks: Iterable[Any]
    if isinstance(report, Mapping):
        frameworks = [report]
    elif isinstance(report, list):
        frameworks = report
    else:
        frameworks = []

    for framework in frameworks:
        if not isinstance(framework, Mapping):
            continue
        results = framework.get("results") or {}
        if not isinstance(results, Mapping):
            continue
        for check in results.get("failed_checks") or []:
            if isinstance(check, Mapping):
                yield check


__all__ = ["CheckovAdapter"]
