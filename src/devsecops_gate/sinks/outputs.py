"""Helpers for publishing run outputs and the job summary to GitHub Actions."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Dict, Mapping

logger = logging.getLogger(__name__)


class ActionOutputs:
    """Collect named run outputs and write them to the ``GITHUB_OUTPUT`` file."""

    def __init__(self, output_path: Path | None = None) -> None:
        self.output_path = output_path
        self._values: Dict[str, str] = {}

    @classmethod
    def from_environ(cls, environ: Mapping[str, str]) -> ActionOutputs:
        path = environ.get("GITHUB_OUTPUT")
        return cls(Path(path) if path else None)

    @property
    def values(self) -> Mapping[str, str]:
        return dict(self._values)

    def set(self, name: str, value: object) -> None:
        if isinstance(value, bool):
            text = "true" if value else "false"
        else:
            text = str(value)
        self._values[name] = text

    def flush(self) -> None:
        """Append every collected output; failures are logged, never raised."""

        for name, value in self._values.items():
            logger.info("Output %s=%s", name, value)

        if self.output_path is None:
            return

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            with self.output_path.open("a", encoding="utf-8") as handle:
                for name, value in self._values.items():
                    handle.write(_format_output(name, value))
        except OSError as exc:
            logger.warning("Failed to write run outputs to %s: %s", self.output_path, exc)


def _format_output(name: str, value: str) -> str:
    if "\n" not in value:
        return f"{name}={value}\n"
    delimiter = f"ghadelimiter_{uuid.uuid4().hex}"
    return f"{name}<<{delimiter}\n{value}\n{delimiter}\n"


def write_step_summary(body: str, destination: Path | None) -> None:
    """Append ``body`` to the job summary file when one is configured."""

    if destination is None:
        return

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        with destination.open("a", encoding="utf-8") as handle:
            handle.write(body)
    except OSError as exc:
        logger.warning("Failed to write job summary to %s: %s", destination, exc)


__all__ = ["ActionOutputs", "write_step_summary"]
