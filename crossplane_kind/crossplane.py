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

"""Crossplane control-plane installation via Helm."""

from __future__ import annotations

from rich.panel import Panel

from crossplane_kind import console
from crossplane_kind.config import RunConfig
from crossplane_kind.constants import (
    DEPLOY_CROSSPLANE,
    DEPLOY_RBAC_MANAGER,
    HELM_CHART_CROSSPLANE,
    HELM_RELEASE_CROSSPLANE,
    HELM_REPO_CROSSPLANE,
    HELM_REPO_CROSSPLANE_URL,
    NS_CROSSPLANE,
)
from crossplane_kind.utils import CommandRunner, Policy


def refresh_helm_repo(runner: CommandRunner) -> None:
    """Add and update the Crossplane chart repository; a warm cache may suffice."""
    console.print("[yellow]ℹ️  Adding/updating crossplane helm repo...[/yellow]")
    runner.execute(
        "helm", "repo", "add", HELM_REPO_CROSSPLANE, HELM_REPO_CROSSPLANE_URL,
        policy=Policy.BEST_EFFORT,
    )
    runner.execute("helm", "repo", "update", policy=Policy.BEST_EFFORT)


def wait_for_rollout(
    runner: CommandRunner,
    deployment: str,
    timeout: str,
    policy: Policy = Policy.FATAL,
) -> bool:
    """Block until a deployment in the Crossplane namespace is rolled out.

    Args:
        runner: Command runner.
        deployment: Deployment name.
        timeout: kubectl duration string (e.g. ``10m``).
        policy: Failure policy for the rollout check.

    Returns:
        True if the rollout completed.
    """
    result = runner.execute(
        "kubectl", "-n", NS_CROSSPLANE,
        "rollout", "status", f"deploy/{deployment}",
        "--timeout", timeout,
        policy=policy,
    )
    return result.ok


def install_crossplane(runner: CommandRunner, cfg: RunConfig) -> None:
    """Converge the Crossplane release to the configured version.

    ``helm upgrade --install`` makes the step repeatable against an already
    bootstrapped cluster. The rbac-manager rollout is optional because some
    chart versions do not ship it.

    Args:
        runner: Command runner.
        cfg: Run configuration with version and wait timeout.

    Raises:
        RemoteOperationError: If the Helm converge or core rollout fails.
    """
    version = cfg.crossplane.crossplane_version
    timeout = str(cfg.crossplane.wait_timeout)
    console.print(Panel.fit(f"Installing Crossplane {version}", style="bold blue"))

    refresh_helm_repo(runner)

    runner.execute(
        "helm", "upgrade", "--install", HELM_RELEASE_CROSSPLANE, HELM_CHART_CROSSPLANE,
        "--namespace", NS_CROSSPLANE,
        "--create-namespace",
        "--version", version,
    )

    console.print(f"[yellow]ℹ️  Waiting for Crossplane rollout (timeout {timeout})...[/yellow]")
    wait_for_rollout(runner, DEPLOY_CROSSPLANE, timeout)
    if not wait_for_rollout(runner, DEPLOY_RBAC_MANAGER, timeout, policy=Policy.BEST_EFFORT):
        console.print(f"[yellow]⚠️  {DEPLOY_RBAC_MANAGER} did not roll out; continuing[/yellow]")
    console.print(f"[green]✅ Crossplane {version} installed[/green]")
