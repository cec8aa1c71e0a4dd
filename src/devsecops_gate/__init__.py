"""Merge gate that normalizes Trivy, Checkov and Conftest results into one report."""

__version__ = "0.1.0"
