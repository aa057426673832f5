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

"""
cli.py - Bootstrap Crossplane on a local kind cluster, or tear it down.

Subcommands:
    bootstrap      Create/reuse the kind cluster, install Crossplane, the Azure
                   provider family and two composition functions (idempotent)
    check-prereqs  Check tools, tool versions, Docker and network; installs nothing

Environment Variables:
    CLUSTER_NAME, KINDEST_NODE_IMAGE, CROSSPLANE_VERSION, PROVIDER_AZURE_VERSION,
    FUNC_PAT_VERSION, FUNC_ENVCFG_VERSION, WAIT_TIMEOUT override the defaults;
    DRY_RUN=true enables dry-run. Command-line flags win over both.

Examples:
    # Basic run with defaults
    crossplane-kind bootstrap

    # Custom cluster and Crossplane version
    crossplane-kind bootstrap -n demo --crossplane-version v1.20.1

    # Dry-run preview
    crossplane-kind bootstrap --dry-run -n demo

    # Recreate cluster and wait longer
    crossplane-kind bootstrap --recreate --wait-timeout 15m

    # Cleanup Crossplane resources and delete the cluster without prompting
    crossplane-kind bootstrap --cleanup --delete-cluster --yes
"""

from __future__ import annotations

import logging

import typer

from crossplane_kind import console, logger
from crossplane_kind.config import ActionFlags, display_config, resolve_config, validate_flags
from crossplane_kind.errors import BootstrapError
from crossplane_kind.orchestrator import run
from crossplane_kind.prereqs import run_prereq_checks
from crossplane_kind.utils import CommandRunner, resolve_bool_flag

app = typer.Typer(
    help="Bootstrap Crossplane on a local kind cluster.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    logging.getLogger("sh").setLevel(logging.WARNING)


def _fail(err: BootstrapError) -> typer.Exit:
    console.print(f"[red]❌ {err}[/red]")
    return typer.Exit(code=err.exit_code)


@app.command()
def bootstrap(
    assume_yes: bool = typer.Option(
        False, "-y", "--yes", help="Assume yes to prompts (non-interactive)"),
    cluster_name: str | None = typer.Option(
        None, "-n", "--cluster-name", help="kind cluster name"),
    kind_node_image: str | None = typer.Option(
        None, "-k", "--kind-node-image", help="kindest node image"),
    crossplane_version: str | None = typer.Option(
        None, "--crossplane-version", help="Crossplane Helm chart version"),
    provider_azure_version: str | None = typer.Option(
        None, "--provider-azure-version", help="provider-family-azure version"),
    func_pat_version: str | None = typer.Option(
        None, "--func-pat-version", help="function-patch-and-transform version"),
    func_envcfg_version: str | None = typer.Option(
        None, "--func-envcfg-version", help="function-environment-configs version"),
    wait_timeout: str | None = typer.Option(
        None, "--wait-timeout", help="Wait timeout for rollouts and packages, in minutes (e.g. 10m)"),
    recreate: bool = typer.Option(
        False, "--recreate", help="Delete an existing kind cluster with the same name first"),
    skip_cluster: bool = typer.Option(
        False, "--skip-cluster", help="Skip cluster creation and use the current kubectl context"),
    cleanup: bool = typer.Option(
        False, "--cleanup", help="Remove Crossplane, providers and functions instead of installing"),
    delete_cluster: bool = typer.Option(
        False, "--delete-cluster", help="With --cleanup, also delete the kind cluster"),
    force_clean: bool = typer.Option(
        False, "--force-clean", help="With --cleanup, also delete the package CRDs"),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Echo every command and log at debug level"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Print planned actions without executing them"),
) -> None:
    """Bootstrap Crossplane on kind (idempotent), or clean it up with --cleanup."""
    dry_run = resolve_bool_flag("dry_run", dry_run)
    if verbose:
        logger.setLevel(logging.DEBUG)

    validate_flags(
        cleanup=cleanup,
        delete_cluster=delete_cluster,
        force_clean=force_clean,
        recreate=recreate,
        skip_cluster=skip_cluster,
    )
    flags = ActionFlags(
        assume_yes=assume_yes,
        dry_run=dry_run,
        recreate=recreate,
        skip_cluster=skip_cluster,
        cleanup=cleanup,
        delete_cluster=delete_cluster,
        force_clean=force_clean,
        verbose=verbose,
    )

    try:
        cfg = resolve_config(
            cluster_name=cluster_name,
            kindest_node_image=kind_node_image,
            crossplane_version=crossplane_version,
            provider_azure_version=provider_azure_version,
            func_pat_version=func_pat_version,
            func_envcfg_version=func_envcfg_version,
            wait_timeout=wait_timeout,
            flags=flags,
        )
        display_config(cfg)
        run(cfg)
    except BootstrapError as err:
        raise _fail(err) from err


@app.command("check-prereqs")
def check_prereqs(
    skip_cluster: bool = typer.Option(
        False, "--skip-cluster", help="Verify the current context is a reachable kind cluster"),
) -> None:
    """Check tools, versions, Docker and network. Installs nothing."""
    try:
        run_prereq_checks(CommandRunner(), skip_cluster=skip_cluster)
    except BootstrapError as err:
        raise _fail(err) from err


def main() -> None:
    app()


if __name__ == "__main__":
    main()
