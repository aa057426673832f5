"""Shared fixtures: a scripted command runner and default configs."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from crossplane_kind.config import ActionFlags, RunConfig, resolve_config
from crossplane_kind.errors import RemoteOperationError
from crossplane_kind.utils import CommandResult, CommandRunner, Policy, format_command

Responder = Callable[[tuple[str, ...]], Any]


class FakeRunner(CommandRunner):
    """CommandRunner that records commands instead of spawning processes.

    ``responses`` maps a command prefix (tuple of words) to either a
    CommandResult, a string (stdout of a successful call), or a callable
    taking the full command tuple. The longest matching prefix wins.
    Unmatched commands succeed with empty output.
    """

    def __init__(self, dry_run: bool = False, responses: dict | None = None) -> None:
        super().__init__(dry_run=dry_run)
        self.responses: dict[tuple[str, ...], Any] = dict(responses or {})
        self.calls: list[tuple[str, ...]] = []
        self.executed: list[tuple[str, ...]] = []
        self.stdins: dict[int, str] = {}

    def respond(self, prefix: tuple[str, ...], answer: Any) -> None:
        self.responses[prefix] = answer

    def _answer(self, command: tuple[str, ...]) -> CommandResult:
        matches = [p for p in self.responses if command[: len(p)] == p]
        if not matches:
            return CommandResult(ok=True)
        answer = self.responses[max(matches, key=len)]
        if callable(answer):
            answer = answer(command)
        if isinstance(answer, CommandResult):
            return answer
        return CommandResult(ok=True, stdout=answer)

    def execute(self, tool, *args, policy=Policy.FATAL, read_only=False, stdin=None):
        command = (tool, *args)
        self.calls.append(command)
        if self.dry_run and not read_only:
            return CommandResult(ok=True)
        self.executed.append(command)
        if stdin is not None:
            self.stdins[len(self.executed) - 1] = stdin
        result = self._answer(command)
        if not result.ok:
            if policy is Policy.FATAL:
                raise RemoteOperationError(format_command(tool, args), result.stderr)
        return result

    def mutations(self) -> list[tuple[str, ...]]:
        """Executed commands that are not reads."""
        reads = {("kind", "get"), ("kubectl", "get"), ("kubectl", "version"), ("kubectl", "config")}
        return [c for c in self.executed if c[:2] not in reads and "rollout" not in c]

    def find(self, *words: str) -> list[tuple[str, ...]]:
        """Executed commands containing all the given words in order of appearance."""
        return [c for c in self.executed if all(w in c for w in words)]

    def index_of(self, *words: str) -> int:
        for i, command in enumerate(self.executed):
            if all(w in command for w in words):
                return i
        raise AssertionError(f"no executed command contains {words}")


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def failed(stderr: str = "error") -> CommandResult:
    return CommandResult(ok=False, stderr=stderr)


def make_config(**overrides: Any) -> RunConfig:
    flag_names = set(ActionFlags.__dataclass_fields__)
    flags = ActionFlags(**{k: v for k, v in overrides.items() if k in flag_names})
    values = {k: v for k, v in overrides.items() if k not in flag_names}
    return resolve_config(flags=flags, **values)


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "CLUSTER_NAME", "KINDEST_NODE_IMAGE", "CROSSPLANE_VERSION", "PROVIDER_AZURE_VERSION",
        "FUNC_PAT_VERSION", "FUNC_ENVCFG_VERSION", "WAIT_TIMEOUT", "DRY_RUN",
    ):
        monkeypatch.delenv(name, raising=False)
