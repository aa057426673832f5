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

"""kind cluster lifecycle: existence check, create, delete, ensure."""

from __future__ import annotations

from rich.panel import Panel

from crossplane_kind import console
from crossplane_kind.config import RunConfig
from crossplane_kind.errors import ConfirmationDeclined
from crossplane_kind.prompts import Confirmer
from crossplane_kind.utils import CommandRunner, Policy


def cluster_exists(runner: CommandRunner, name: str) -> bool:
    """Query kind for a cluster with exactly this name; never cached.

    Args:
        runner: Command runner.
        name: kind cluster name.

    Returns:
        True if ``kind get clusters`` lists the name.
    """
    result = runner.execute("kind", "get", "clusters", policy=Policy.PROBE, read_only=True)
    if not result.ok:
        return False
    return name in (line.strip() for line in result.stdout.splitlines())


def create_cluster(runner: CommandRunner, cfg: RunConfig) -> None:
    """Create the kind cluster. Failures are fatal and not retried.

    Args:
        runner: Command runner.
        cfg: Run configuration with cluster name and node image.

    Raises:
        RemoteOperationError: If ``kind create cluster`` fails.
    """
    console.print(
        f"[yellow]ℹ️  Creating kind cluster '{cfg.kind.cluster_name}' "
        f"with image '{cfg.kind.kindest_node_image}'...[/yellow]"
    )
    runner.execute(
        "kind", "create", "cluster",
        "--name", cfg.kind.cluster_name,
        "--image", cfg.kind.kindest_node_image,
    )
    console.print(f"[green]✅ Cluster '{cfg.kind.cluster_name}' created[/green]")


def delete_cluster(runner: CommandRunner, name: str) -> None:
    """Delete the kind cluster.

    Args:
        runner: Command runner.
        name: kind cluster name.

    Raises:
        RemoteOperationError: If ``kind delete cluster`` fails.
    """
    console.print(f"[yellow]ℹ️  Deleting kind cluster '{name}'...[/yellow]")
    runner.execute("kind", "delete", "cluster", "--name", name)
    console.print(f"[green]✅ Cluster '{name}' deleted[/green]")


def ensure_cluster(runner: CommandRunner, cfg: RunConfig, confirm: Confirmer) -> None:
    """Make sure a cluster named ``cfg.kind.cluster_name`` exists.

    Reuses an existing cluster unless ``recreate`` is set, in which case the
    deletion must be confirmed first.

    Args:
        runner: Command runner.
        cfg: Run configuration.
        confirm: Confirmation capability for the recreate deletion.

    Raises:
        ConfirmationDeclined: If recreation was requested but not confirmed.
        RemoteOperationError: If create or delete fails.
    """
    console.print(Panel.fit("Ensuring kind cluster", style="bold blue"))
    name = cfg.kind.cluster_name
    if cfg.flags.skip_cluster:
        console.print("[yellow]ℹ️  Skipping cluster creation; using current kubectl context[/yellow]")
        return

    if cluster_exists(runner, name):
        if not cfg.flags.recreate:
            console.print(f"[green]✅ kind cluster '{name}' already exists; reusing[/green]")
            return
        if not confirm(f"Delete existing kind cluster '{name}'?"):
            raise ConfirmationDeclined(f"Aborted by user: cluster '{name}' was not recreated")
        delete_cluster(runner, name)

    create_cluster(runner, cfg)
