"""Minimal smoke tests for the merge gate package."""


def test_package_importable() -> None:
    """Ensure the top-level package exposes the expected namespace."""
    import devsecops_gate  # noqa: F401  # Imported for side effects
    from devsecops_gate.cli import main  # noqa: F401
