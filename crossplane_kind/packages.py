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

"""Crossplane Provider and Function packages: manifests, apply, health waits."""

from __future__ import annotations

from dataclasses import dataclass

import yaml
from rich.panel import Panel

from crossplane_kind import console
from crossplane_kind.config import RunConfig
from crossplane_kind.constants import (
    FUNC_ENVCFG_NAME,
    FUNC_ENVCFG_PACKAGE,
    FUNC_PAT_NAME,
    FUNC_PAT_PACKAGE,
    FUNCTION_API_VERSION,
    KIND_FUNCTION,
    KIND_PROVIDER,
    PROVIDER_API_VERSION,
    PROVIDER_AZURE_NAME,
    PROVIDER_AZURE_PACKAGE,
)
from crossplane_kind.errors import HealthTimeoutError
from crossplane_kind.utils import CommandRunner
from crossplane_kind.waiter import wait_healthy


@dataclass(frozen=True)
class PackageSpec:
    """A Provider or Function package to declare.

    Attributes:
        kind: Manifest kind, ``Provider`` or ``Function``.
        api_version: Manifest apiVersion.
        resource: Fully qualified kubectl resource (``provider.pkg.crossplane.io``).
        name: Object name, fixed by convention.
        package: OCI repository without tag.
        version: Tag taken from the run configuration.
    """

    kind: str
    api_version: str
    resource: str
    name: str
    package: str
    version: str

    @property
    def reference(self) -> str:
        return f"{self.package}:{self.version}"


def package_specs(cfg: RunConfig) -> list[PackageSpec]:
    """Packages to install, in installation order: provider first.

    Args:
        cfg: Run configuration with package versions.
    """
    return [
        PackageSpec(
            kind="Provider",
            api_version=PROVIDER_API_VERSION,
            resource=KIND_PROVIDER,
            name=PROVIDER_AZURE_NAME,
            package=PROVIDER_AZURE_PACKAGE,
            version=cfg.crossplane.provider_azure_version,
        ),
        PackageSpec(
            kind="Function",
            api_version=FUNCTION_API_VERSION,
            resource=KIND_FUNCTION,
            name=FUNC_PAT_NAME,
            package=FUNC_PAT_PACKAGE,
            version=cfg.crossplane.func_pat_version,
        ),
        PackageSpec(
            kind="Function",
            api_version=FUNCTION_API_VERSION,
            resource=KIND_FUNCTION,
            name=FUNC_ENVCFG_NAME,
            package=FUNC_ENVCFG_PACKAGE,
            version=cfg.crossplane.func_envcfg_version,
        ),
    ]


def package_manifest(spec: PackageSpec) -> dict:
    """Build the package object manifest.

    Args:
        spec: Package to declare.

    Returns:
        Manifest as a dictionary ready for YAML serialization.
    """
    return {
        "apiVersion": spec.api_version,
        "kind": spec.kind,
        "metadata": {"name": spec.name},
        "spec": {"package": spec.reference},
    }


def apply_package(runner: CommandRunner, spec: PackageSpec) -> None:
    """Submit one package object with ``kubectl apply``.

    Raises:
        RemoteOperationError: If the apply fails.
    """
    console.print(f"[yellow]ℹ️  Applying {spec.kind} {spec.name} {spec.version}...[/yellow]")
    runner.execute("kubectl", "apply", "-f", "-", stdin=yaml.safe_dump(package_manifest(spec), sort_keys=False))


def apply_providers_and_functions(runner: CommandRunner, cfg: RunConfig) -> None:
    """Apply the provider and both functions, waiting for each to be Healthy.

    Strictly sequential: a package is only submitted once the previous one
    reported Healthy.

    Args:
        runner: Command runner.
        cfg: Run configuration with versions and wait timeout.

    Raises:
        RemoteOperationError: If an apply fails.
        HealthTimeoutError: If a package does not become Healthy in time.
    """
    console.print(Panel.fit("Installing providers and functions", style="bold blue"))
    timeout = cfg.crossplane.wait_timeout
    for spec in package_specs(cfg):
        apply_package(runner, spec)
        console.print(
            f"[yellow]ℹ️  Waiting for {spec.kind} {spec.name} to become Healthy (timeout {timeout})...[/yellow]"
        )
        if not wait_healthy(runner, spec.resource, spec.name, timeout.seconds):
            raise HealthTimeoutError(spec.resource, spec.name, str(timeout))
        console.print(f"[green]✅ {spec.kind} {spec.name} is Healthy[/green]")
