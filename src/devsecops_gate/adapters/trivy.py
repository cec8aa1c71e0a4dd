"""Adapter for ``trivy fs`` dependency and filesystem vulnerability scans."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Iterable, List, Mapping

from ..models import Finding, ScanOutcome, ToolName
from .base import ScannerAdapter
from .runner import ScannerError

REPORT_FILENAME = "trivy-results.json"


class TrivyAdapter(ScannerAdapter):
    """Shell out to Trivy and count vulnerabilities by severity."""

    tool = ToolName.TRIVY
    executable = "trivy"

    def empty_outcome(self) -> ScanOutcome:
        return ScanOutcome.empty()

    def _scan(self, target: Path, extra_args: List[str]) -> ScanOutcome:
        with tempfile.TemporaryDirectory(prefix="devsecops-trivy-") as tmpdir:
            report_path = Path(tmpdir) / REPORT_FILENAME
            command = [
                self.executable,
                "fs",
                "--format",
                "json",
                "--output",
                str(report_path),
                *extra_args,
                str(target),
            ]
            result = self.runner.run(command)
            if result.returncode != 0:
                raise ScannerError(
                    f"trivy exited with code {result.returncode}: {result.stderr.strip() or '(no stderr)'}"
                )

            report = self._load_json(report_path)

        return self.parse_report(report)

    # ------------------------------------------------------------------
    def parse_report(self, report: Any) -> ScanOutcome:
        """Normalize a Trivy JSON report into a :class:`ScanOutcome`."""

        outcome = ScanOutcome.empty()
        if not isinstance(report, Mapping):
            return outcome

        results: Iterable[Mapping[str, Any]] = report.get("Results") or []
        for result in results:
            if not isinstance(result, Mapping):
                continue
            for vulnerability in result.get("Vulnerabilities") or []:
                if not isinstance(vulnerability, Mapping):
                    continue
                identifier = str(vulnerability.get("VulnerabilityID") or "Unknown")
                description = (
                    vulnerability.get("Title")
                    or vulnerability.get("Description")
                    or "No description available"
                )
                outcome.record(
                    Finding(
                        identifier=identifier,
                        severity=self._resolve_severity(vulnerability.get("Severity"), identifier),
                        description=str(description).strip(),
                        subject=str(vulnerability.get("PkgName") or "Unknown"),
                    )
                )

        return outcome


__all__ = ["TrivyAdapter"]
