"""Severity default tables used by the scanner adapters."""

from .severity_table import SeverityTable, SeverityTableError, ToolSeverityDefaults

__all__ = [
    "SeverityTable",
    "SeverityTableError",
    "ToolSeverityDefaults",
]
