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

"""Error taxonomy; every error carries the process exit code it maps to."""

from __future__ import annotations

EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_MISSING_TOOL = 127


class BootstrapError(RuntimeError):
    """Base class for failures that end a run."""

    exit_code = EXIT_FAILURE


class ConfigurationError(BootstrapError):
    """A required parameter is empty or invalid."""

    exit_code = EXIT_USAGE


class MissingToolError(BootstrapError):
    """A required command-line tool is not on PATH."""

    exit_code = EXIT_MISSING_TOOL

    def __init__(self, tool: str, hint: str | None = None) -> None:
        message = f"Missing required tool: {tool}"
        if hint:
            message += f" (install: {hint})"
        super().__init__(message)
        self.tool = tool


class PrerequisiteError(BootstrapError):
    """An environment check other than tool presence failed."""


class ConfirmationDeclined(BootstrapError):
    """A destructive action was not confirmed."""


class RemoteOperationError(BootstrapError):
    """A fatal remote command returned non-zero.

    Attributes:
        command: The command line that failed.
        stderr: Captured error output, possibly empty.
    """

    def __init__(self, command: str, stderr: str = "") -> None:
        detail = stderr.strip()
        message = f"Command failed: {command}"
        if detail:
            message += f"\n{detail}"
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class HealthTimeoutError(BootstrapError):
    """A package did not report Healthy before its deadline."""

    def __init__(self, kind: str, name: str, timeout: str) -> None:
        super().__init__(f"{kind}/{name} did not become Healthy within {timeout}")
        self.kind = kind
        self.name = name
