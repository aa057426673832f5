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

"""Top-level bootstrap and cleanup workflows."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from crossplane_kind import console
from crossplane_kind.cleanup import cleanup_resources
from crossplane_kind.cluster import ensure_cluster
from crossplane_kind.config import RunConfig
from crossplane_kind.constants import KIND_CONTEXT_PREFIX
from crossplane_kind.crossplane import install_crossplane
from crossplane_kind.errors import HealthTimeoutError, RemoteOperationError
from crossplane_kind.packages import apply_providers_and_functions
from crossplane_kind.prereqs import check_tools
from crossplane_kind.prompts import Confirmer, make_confirmer
from crossplane_kind.utils import CommandRunner, Policy


def build_runner(cfg: RunConfig) -> CommandRunner:
    """Runner for a run; kubectl and helm target the kind cluster's context.

    With ``skip_cluster`` the current context is used as is.
    """
    kube_context = None if cfg.flags.skip_cluster else f"{KIND_CONTEXT_PREFIX}{cfg.kind.cluster_name}"
    return CommandRunner(dry_run=cfg.flags.dry_run, echo=cfg.flags.verbose, kube_context=kube_context)


def dump_diagnostics(runner: CommandRunner) -> None:
    """Print a pod snapshot across all namespaces."""
    result = runner.execute("kubectl", "get", "pods", "-A", policy=Policy.BEST_EFFORT, read_only=True)
    if result.ok:
        console.print("[red]Pods at time of failure:[/red]")
        console.print(result.stdout, markup=False, highlight=False)


@contextmanager
def _step(runner: CommandRunner, name: str) -> Iterator[None]:
    """Label a failing step and attach a pod snapshot before re-raising."""
    try:
        yield
    except (RemoteOperationError, HealthTimeoutError):
        console.print(f"[red]❌ Step failed: {name}[/red]")
        if not runner.dry_run:
            dump_diagnostics(runner)
        raise


def run_bootstrap(runner: CommandRunner, cfg: RunConfig, confirm: Confirmer) -> None:
    """Cluster, then Crossplane, then providers and functions.

    Raises:
        BootstrapError: If any step fails; no rollback is attempted.
    """
    with _step(runner, "ensure kind cluster"):
        ensure_cluster(runner, cfg, confirm)
    with _step(runner, "install Crossplane"):
        install_crossplane(runner, cfg)
    with _step(runner, "install providers and functions"):
        apply_providers_and_functions(runner, cfg)
    console.print("[green]✅ Bootstrap complete[/green]")


def run_cleanup(
    runner: CommandRunner,
    cfg: RunConfig,
    confirm: Confirmer,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    cleanup_resources(runner, cfg, confirm, sleep=sleep, clock=clock)
    console.print("[green]✅ Cleanup complete[/green]")


def run(
    cfg: RunConfig,
    runner: CommandRunner | None = None,
    confirm: Confirmer | None = None,
) -> None:
    """Gate on tools, then clean up or bootstrap.

    Dry runs never prompt: destructive steps are only printed, so they are
    treated as confirmed.

    Args:
        cfg: Run configuration.
        runner: Command runner, or None to build one from the flags.
        confirm: Confirmation capability, or None to build one from the flags.

    Raises:
        BootstrapError: On any fatal failure.
    """
    if runner is None:
        runner = build_runner(cfg)
    if confirm is None:
        confirm = make_confirmer(cfg.flags.assume_yes or cfg.flags.dry_run)

    check_tools()
    if cfg.flags.cleanup:
        run_cleanup(runner, cfg, confirm)
        return
    run_bootstrap(runner, cfg, confirm)
