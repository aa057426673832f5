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

"""Prerequisite checks: tool presence, tool versions, Docker, network, kube context."""

from __future__ import annotations

import json
import re

import docker
import requests
from rich.panel import Panel

from crossplane_kind import console, logger
from crossplane_kind.constants import (
    CLUSTER_INFO_REQUEST_TIMEOUT,
    KIND_CONTEXT_PREFIX,
    KIND_NODE_MARKERS,
    MIN_TOOL_VERSIONS,
    NETWORK_CHECK_TIMEOUT_SECONDS,
    NETWORK_CHECK_URLS,
    PREREQ_TOOLS,
    REQUIRED_TOOLS,
)
from crossplane_kind.errors import PrerequisiteError
from crossplane_kind.utils import CommandRunner, Policy, require_command

_VERSION_RE = re.compile(r"v?(\d+)\.(\d+)(?:\.(\d+))?")

VersionTuple = tuple[int, int, int]


def check_tools(tools: tuple[str, ...] = REQUIRED_TOOLS) -> None:
    """Verify required tools are on PATH; never installs anything.

    Args:
        tools: Command names to look up.

    Raises:
        MissingToolError: On the first missing tool.
    """
    console.print(Panel.fit("Checking required tools", style="bold blue"))
    for cmd in tools:
        require_command(cmd)
    console.print("[green]✅ All required tools are available[/green]")


def parse_version(text: str) -> VersionTuple | None:
    """Extract the first ``major.minor[.patch]`` from tool output."""
    match = _VERSION_RE.search(text)
    if not match:
        return None
    major, minor, patch = match.groups()
    return int(major), int(minor), int(patch or 0)


def tool_version(runner: CommandRunner, tool: str) -> VersionTuple | None:
    """Ask a tool for its client version.

    Args:
        runner: Command runner.
        tool: One of ``kind``, ``kubectl``, ``helm``.

    Returns:
        The parsed version, or None if it could not be determined.
    """
    if tool == "kubectl":
        result = runner.execute("kubectl", "version", "--client", "-o", "json", policy=Policy.PROBE, read_only=True)
        if not result.ok:
            return None
        try:
            git_version = json.loads(result.stdout)["clientVersion"]["gitVersion"]
        except (json.JSONDecodeError, KeyError, TypeError):
            return parse_version(result.stdout)
        return parse_version(git_version)

    args = ("version", "--short") if tool == "helm" else ("version",)
    result = runner.execute(tool, *args, policy=Policy.PROBE, read_only=True)
    return parse_version(result.stdout) if result.ok else None


def _format_version(version: VersionTuple) -> str:
    return ".".join(str(part) for part in version)


def check_versions(runner: CommandRunner) -> None:
    """Require minimum versions of kind, kubectl and helm.

    Raises:
        PrerequisiteError: If a version is unknown or too old.
    """
    console.print("[yellow]ℹ️  Validating CLI versions...[/yellow]")
    for tool, minimum in MIN_TOOL_VERSIONS.items():
        version = tool_version(runner, tool)
        if version is None:
            raise PrerequisiteError(f"Unable to determine {tool} version")
        if version < minimum:
            raise PrerequisiteError(
                f"{tool} {_format_version(version)} is too old; please upgrade to >= {_format_version(minimum)}"
            )
        console.print(f"[green]  ✓ {tool} {_format_version(version)} (>= {_format_version(minimum)})[/green]")


def check_docker_daemon() -> None:
    """Ping the Docker daemon kind runs its nodes on.

    Raises:
        PrerequisiteError: If the daemon is unreachable.
    """
    console.print("[yellow]ℹ️  Checking Docker daemon...[/yellow]")
    try:
        client = docker.from_env()
        try:
            client.ping()
        finally:
            client.close()
    except (docker.errors.DockerException, requests.exceptions.RequestException) as err:
        raise PrerequisiteError(
            "Unable to communicate with the Docker daemon. Start Docker Desktop or the docker service and re-run."
        ) from err
    console.print("[green]  ✓ Docker daemon is running[/green]")


def check_network(
    urls: tuple[str, ...] = NETWORK_CHECK_URLS,
    timeout: float = NETWORK_CHECK_TIMEOUT_SECONDS,
) -> list[str]:
    """Best-effort reachability check of the chart repo and package registry.

    Args:
        urls: URLs to probe.
        timeout: Per-request timeout in seconds.

    Returns:
        The URLs that could not be reached.
    """
    console.print("[yellow]ℹ️  Checking network reachability (best-effort)...[/yellow]")
    unreachable = []
    for url in urls:
        try:
            response = requests.head(url, timeout=timeout, allow_redirects=True)
            response.raise_for_status()
        except requests.exceptions.RequestException as err:
            logger.debug("network check failed for %s: %s", url, err)
            console.print(
                f"[yellow]⚠️  Could not reach {url}. Air-gapped environments need "
                "pre-downloaded artifacts or a proxy.[/yellow]"
            )
            unreachable.append(url)
        else:
            console.print(f"[green]  ✓ Reachable: {url}[/green]")
    return unreachable


def looks_like_kind(nodes: dict) -> bool:
    """Heuristically decide whether a node list belongs to a kind cluster.

    Args:
        nodes: ``kubectl get nodes -o json`` output.
    """
    for node in nodes.get("items") or []:
        metadata = node.get("metadata") or {}
        keys = [*(metadata.get("labels") or {}), *(metadata.get("annotations") or {})]
        provider_id = (node.get("spec") or {}).get("providerID", "")
        name = metadata.get("name", "")
        if any(marker in key for key in keys for marker in KIND_NODE_MARKERS):
            return True
        if provider_id.startswith("kind://"):
            return True
        if name.startswith(KIND_CONTEXT_PREFIX) and name.endswith("control-plane"):
            return True
    return False


def check_skip_cluster_target(runner: CommandRunner) -> None:
    """Verify the current kube context is reachable and is a kind cluster.

    Raises:
        PrerequisiteError: If the context is unreachable or not kind.
    """
    console.print("[yellow]ℹ️  Validating current Kubernetes context...[/yellow]")
    reachable = runner.execute(
        "kubectl", "cluster-info", f"--request-timeout={CLUSTER_INFO_REQUEST_TIMEOUT}",
        policy=Policy.PROBE,
        read_only=True,
    )
    if not reachable.ok:
        raise PrerequisiteError(
            "Current Kubernetes context is not reachable. Ensure your kubeconfig is valid and the cluster is online."
        )

    context = runner.execute("kubectl", "config", "current-context", policy=Policy.PROBE, read_only=True)
    if context.ok and context.stdout.strip().startswith(KIND_CONTEXT_PREFIX):
        console.print("[green]  ✓ Detected kind cluster in current context[/green]")
        return

    nodes = runner.execute("kubectl", "get", "nodes", "-o", "json", policy=Policy.PROBE, read_only=True)
    try:
        is_kind = nodes.ok and looks_like_kind(json.loads(nodes.stdout))
    except json.JSONDecodeError:
        is_kind = False
    if not is_kind:
        raise PrerequisiteError(
            "The current context does not appear to be a kind cluster. Switch to a kind-* context."
        )
    console.print("[green]  ✓ Detected kind cluster in current context[/green]")


def run_prereq_checks(runner: CommandRunner, skip_cluster: bool = False) -> None:
    """Run every prerequisite check.

    Args:
        runner: Command runner.
        skip_cluster: Also validate the current kube context.

    Raises:
        MissingToolError: If a tool is missing.
        PrerequisiteError: If any other hard check fails.
    """
    check_tools(PREREQ_TOOLS)
    check_versions(runner)
    check_docker_daemon()
    check_network()
    if skip_cluster:
        check_skip_cluster_target(runner)
    console.print("[green]✅ All prerequisite checks passed[/green]")
