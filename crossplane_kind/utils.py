# /*
# Copyright 2026 The crossplane-kind Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Remote command execution with explicit failure policies, and small helpers."""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from enum import Enum

import sh

from crossplane_kind import console, logger
from crossplane_kind.constants import TOOL_INSTALL_HINTS
from crossplane_kind.errors import MissingToolError, RemoteOperationError

_TRUTHY = ("1", "true", "yes", "y")
_CONTEXT_FLAGS = {"kubectl": "--context", "helm": "--kube-context"}


class Policy(str, Enum):
    """What a failed command means for the run.

    FATAL raises RemoteOperationError. BEST_EFFORT prints a warning and
    continues. PROBE is a read whose failure is itself the answer (e.g. the
    resource does not exist yet); it is only logged at debug level.
    """

    FATAL = "fatal"
    BEST_EFFORT = "best-effort"
    PROBE = "probe"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a single command."""

    ok: bool
    stdout: str = ""
    stderr: str = ""


def format_command(tool: str, args: tuple[str, ...] | list[str]) -> str:
    """Render a command line for logs and dry-run output."""
    return shlex.join([tool, *args])


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode(errors="replace")
    return data


class CommandRunner:
    """Runs kind/kubectl/helm commands; the only place processes are spawned.

    In dry-run mode every command that is not read-only is printed instead
    of executed. Read-only commands still run so that planning reflects the
    live cluster.

    Attributes:
        dry_run: Whether non-read-only commands are suppressed.
        echo: Whether executed commands are echoed to the console.
        kube_context: kubeconfig context pinned on every kubectl and helm
            command, or None to use the current context.
    """

    def __init__(self, dry_run: bool = False, echo: bool = False, kube_context: str | None = None) -> None:
        self.dry_run = dry_run
        self.echo = echo
        self.kube_context = kube_context

    def execute(
        self,
        tool: str,
        *args: str,
        policy: Policy = Policy.FATAL,
        read_only: bool = False,
        stdin: str | None = None,
    ) -> CommandResult:
        """Run one command under the given failure policy.

        Args:
            tool: Executable name (``kind``, ``kubectl``, ``helm``).
            *args: Command arguments.
            policy: How a non-zero exit is handled.
            read_only: Whether the command only reads; read-only commands run
                even in dry-run mode.
            stdin: Text fed to the command's standard input.

        Returns:
            The command result. ``ok`` is False only for non-fatal policies.

        Raises:
            MissingToolError: If the executable is not on PATH.
            RemoteOperationError: If the command fails under Policy.FATAL.
        """
        if self.kube_context and tool in _CONTEXT_FLAGS:
            args = (_CONTEXT_FLAGS[tool], self.kube_context, *args)
        command = format_command(tool, args)
        if self.dry_run and not read_only:
            console.print(f"[dim]+ {command}[/dim]")
            return CommandResult(ok=True)

        if self.echo:
            console.print(f"[dim]$ {command}[/dim]")
        logger.debug("running: %s", command)

        try:
            program = sh.Command(tool)
        except sh.CommandNotFound as err:
            raise MissingToolError(tool, TOOL_INSTALL_HINTS.get(tool)) from err

        call_kwargs = {}
        if stdin is not None:
            call_kwargs["_in"] = stdin
        try:
            output = program(*args, **call_kwargs)
        except sh.ErrorReturnCode as err:
            return self._handle_failure(command, policy, _decode(err.stdout), _decode(err.stderr))
        return CommandResult(ok=True, stdout=_decode(str(output)))

    def _handle_failure(self, command: str, policy: Policy, stdout: str, stderr: str) -> CommandResult:
        if policy is Policy.FATAL:
            raise RemoteOperationError(command, stderr)
        detail = stderr.strip().splitlines()[0] if stderr.strip() else "non-zero exit"
        if policy is Policy.BEST_EFFORT:
            console.print(f"[yellow]⚠️  Ignoring failure of '{command}': {detail}[/yellow]")
            logger.warning("best-effort command failed: %s: %s", command, stderr.strip())
        else:
            logger.debug("probe failed: %s: %s", command, detail)
        return CommandResult(ok=False, stdout=stdout, stderr=stderr)


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        MissingToolError: If the command is not found.
    """
    try:
        found = sh.which(cmd)
    except (sh.ErrorReturnCode, sh.CommandNotFound):
        found = None
    if not found:
        raise MissingToolError(cmd, TOOL_INSTALL_HINTS.get(cmd))


def resolve_bool_flag(name: str, value: bool) -> bool:
    """Return True if the CLI flag is set or its environment variable is truthy.

    Args:
        name: Flag name; the environment variable is its upper-case form.
        value: Value given on the command line.
    """
    if value:
        return True
    return os.environ.get(name.upper(), "").strip().lower() in _TRUTHY
