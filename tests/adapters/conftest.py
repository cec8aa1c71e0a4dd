from __future__ import annotations

from typing import Callable, List, Sequence

import pytest

from devsecops_gate.adapters import CommandResult, CommandRunner

Handler = Callable[[List[str]], CommandResult]


class FakeRunner(CommandRunner):
    """Command runner double that records commands and delegates to a handler."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.calls: list[list[str]] = []

    def run(self, args: Sequence[object], *, cwd=None, env=None) -> CommandResult:
        command = [str(arg) for arg in args]
        self.calls.append(command)
        return self.handler(command)


@pytest.fixture
def make_runner() -> Callable[[Handler], FakeRunner]:
    return FakeRunner
