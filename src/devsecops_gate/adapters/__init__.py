"""Scanner adapters that run external tools and normalize their reports."""

from .base import Outcome, ScannerAdapter
from .checkov import CheckovAdapter
from .conftest import ConftestAdapter
from .runner import CommandResult, CommandRunner, ScannerError
from .trivy import TrivyAdapter

__all__ = [
    "CheckovAdapter",
    "CommandResult",
    "CommandRunner",
    "ConftestAdapter",
    "Outcome",
    "ScannerAdapter",
    "ScannerError",
    "TrivyAdapter",
]
