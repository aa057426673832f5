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

"""Teardown of packages, lingering workloads, the Crossplane release, and the cluster."""

from __future__ import annotations

import re
import time
from collections.abc import Callable

from rich.panel import Panel
from tenacity import RetryError, Retrying, retry_if_result, wait_fixed

from crossplane_kind import console
from crossplane_kind.cluster import cluster_exists, delete_cluster
from crossplane_kind.config import RunConfig
from crossplane_kind.constants import (
    FUNCTION_NAME_PREFIX,
    HELM_RELEASE_CROSSPLANE,
    KIND_FUNCTION,
    KIND_FUNCTION_REVISION,
    KIND_PROVIDER,
    LABEL_PKG_REVISION,
    LINGERING_CLEANUP_POLL_INTERVAL_SECONDS,
    LINGERING_CLEANUP_TIMEOUT_SECONDS,
    NS_CROSSPLANE,
    PACKAGE_CRDS,
    PROVIDER_AZURE_NAME,
    RESOURCE_FUNCTION_REVISIONS,
)
from crossplane_kind.errors import ConfirmationDeclined
from crossplane_kind.packages import package_specs
from crossplane_kind.prompts import Confirmer
from crossplane_kind.utils import CommandRunner, Policy

_CLEAR_FINALIZERS_PATCH = '{"metadata":{"finalizers":[]}}'


def lingering_name_pattern(prefixes: tuple[str, ...]) -> re.Pattern[str]:
    """Match ``deployment/<name>`` or ``pod/<name>`` for package workloads.

    Args:
        prefixes: Name prefixes of package-owned workloads.
    """
    alternatives = "|".join(re.escape(prefix) for prefix in prefixes)
    return re.compile(rf"^(deployment|pod)(\.apps)?/({alternatives})")


def delete_function_revisions(runner: CommandRunner) -> None:
    """Clear finalizers on every FunctionRevision and delete it without waiting.

    Revisions keep their workloads alive; removing them first stops the
    package manager from recreating deployments during the rest of cleanup.
    """
    console.print("[yellow]ℹ️  Deleting FunctionRevisions (clearing finalizers)...[/yellow]")
    result = runner.execute(
        "kubectl", "get", RESOURCE_FUNCTION_REVISIONS,
        "-o", "jsonpath={range .items[*]}{.metadata.name}{\"\\n\"}{end}",
        policy=Policy.PROBE,
        read_only=True,
    )
    revisions = [line.strip() for line in result.stdout.splitlines() if line.strip()] if result.ok else []
    for revision in revisions:
        runner.execute(
            "kubectl", "patch", KIND_FUNCTION_REVISION, revision,
            "--type=merge", "-p", _CLEAR_FINALIZERS_PATCH,
            policy=Policy.BEST_EFFORT,
        )
        runner.execute(
            "kubectl", "delete", KIND_FUNCTION_REVISION, revision, "--wait=false",
            policy=Policy.BEST_EFFORT,
        )


def delete_packages(runner: CommandRunner, cfg: RunConfig) -> None:
    """Delete the provider and function objects by name; absent is fine."""
    specs = package_specs(cfg)
    providers = [spec.name for spec in specs if spec.resource == KIND_PROVIDER]
    functions = [spec.name for spec in specs if spec.resource == KIND_FUNCTION]

    console.print("[yellow]ℹ️  Deleting Crossplane Providers...[/yellow]")
    runner.execute("kubectl", "delete", KIND_PROVIDER, *providers, "--ignore-not-found", policy=Policy.BEST_EFFORT)
    console.print("[yellow]ℹ️  Deleting Crossplane Functions...[/yellow]")
    runner.execute("kubectl", "delete", KIND_FUNCTION, *functions, "--ignore-not-found", policy=Policy.BEST_EFFORT)


def _list_lingering(runner: CommandRunner, kind: str, pattern: re.Pattern[str]) -> list[str]:
    result = runner.execute(
        "kubectl", "-n", NS_CROSSPLANE, "get", kind, "-o", "name",
        policy=Policy.PROBE,
        read_only=True,
    )
    if not result.ok:
        return []
    return [line.strip() for line in result.stdout.splitlines() if pattern.match(line.strip())]


def delete_lingering_workloads(
    runner: CommandRunner,
    prefixes: tuple[str, ...] = (FUNCTION_NAME_PREFIX, PROVIDER_AZURE_NAME),
    timeout_seconds: float = LINGERING_CLEANUP_TIMEOUT_SECONDS,
    interval_seconds: float = LINGERING_CLEANUP_POLL_INTERVAL_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> bool:
    """Best-effort removal of package deployments and pods left in the namespace.

    Deletes by the package revision label first, then repeatedly lists and
    deletes anything matching the package name prefixes until a pass finds
    nothing or the deadline passes.

    Args:
        runner: Command runner.
        prefixes: Name prefixes of package-owned workloads.
        timeout_seconds: Upper bound for the list-and-delete loop.
        interval_seconds: Sleep between passes.
        sleep: Sleep function, replaceable in tests.
        clock: Monotonic clock, replaceable in tests.

    Returns:
        True if a pass found nothing left, False if the deadline passed first.
    """
    console.print(f"[yellow]ℹ️  Cleaning up lingering package workloads in {NS_CROSSPLANE}...[/yellow]")
    runner.execute(
        "kubectl", "-n", NS_CROSSPLANE, "delete", "deploy", "-l", LABEL_PKG_REVISION, "--ignore-not-found",
        policy=Policy.BEST_EFFORT,
    )

    pattern = lingering_name_pattern(prefixes)
    deadline = clock() + timeout_seconds

    def _sweep() -> bool:
        """One list-and-delete pass; True while workloads may remain."""
        if clock() >= deadline:
            return True
        deleted = False
        for kind in ("deploy", "pods"):
            names = _list_lingering(runner, kind, pattern)
            if names:
                runner.execute(
                    "kubectl", "-n", NS_CROSSPLANE, "delete", *names, "--ignore-not-found",
                    policy=Policy.BEST_EFFORT,
                )
                deleted = True
        # Dry-run deletes nothing, so another pass would list the same objects.
        return deleted and not runner.dry_run

    retryer = Retrying(
        stop=lambda _state: clock() >= deadline,
        wait=wait_fixed(interval_seconds),
        retry=retry_if_result(lambda pending: pending),
        sleep=sleep,
    )
    try:
        retryer(_sweep)
    except RetryError:
        console.print(f"[yellow]⚠️  Package workloads still present after {timeout_seconds:g}s; continuing[/yellow]")
        return False
    return True


def uninstall_crossplane(runner: CommandRunner) -> None:
    console.print("[yellow]ℹ️  Uninstalling Crossplane Helm release...[/yellow]")
    runner.execute("helm", "uninstall", HELM_RELEASE_CROSSPLANE, "-n", NS_CROSSPLANE, policy=Policy.BEST_EFFORT)


def delete_package_crds(runner: CommandRunner) -> None:
    console.print("[yellow]ℹ️  Force clean requested: deleting package CRDs...[/yellow]")
    runner.execute("kubectl", "delete", "crd", *PACKAGE_CRDS, "--ignore-not-found", policy=Policy.BEST_EFFORT)


def cleanup_resources(
    runner: CommandRunner,
    cfg: RunConfig,
    confirm: Confirmer,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Tear down everything the bootstrap created.

    Order matters: revisions go before their parent packages and before the
    namespace sweep, otherwise the package manager recreates the workloads
    being removed. Every step tolerates already-absent resources.

    Args:
        runner: Command runner.
        cfg: Run configuration.
        confirm: Confirmation capability for cluster deletion.
        sleep: Sleep function for the workload sweep.
        clock: Monotonic clock for the workload sweep.

    Raises:
        ConfirmationDeclined: If cluster deletion was requested but not confirmed.
        RemoteOperationError: If ``kind delete cluster`` fails.
    """
    console.print(Panel.fit("Cleaning up Crossplane", style="bold blue"))
    delete_function_revisions(runner)
    delete_packages(runner, cfg)
    delete_lingering_workloads(runner, sleep=sleep, clock=clock)
    uninstall_crossplane(runner)
    if cfg.flags.force_clean:
        delete_package_crds(runner)

    name = cfg.kind.cluster_name
    if not cfg.flags.delete_cluster:
        console.print(f"[yellow]ℹ️  Cluster deletion not requested; keeping kind cluster '{name}'[/yellow]")
        return
    if not cluster_exists(runner, name):
        console.print(f"[yellow]⚠️  kind cluster '{name}' not found or already deleted[/yellow]")
        return
    if not confirm(f"Delete kind cluster '{name}'?"):
        raise ConfirmationDeclined(f"Aborted by user: cluster '{name}' was not deleted")
    delete_cluster(runner, name)
