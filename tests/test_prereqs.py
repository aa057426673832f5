"""Tests for prerequisite checks."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import docker
import pytest
import requests
from conftest import FakeRunner, failed

from crossplane_kind import prereqs
from crossplane_kind.errors import MissingToolError, PrerequisiteError
from crossplane_kind.prereqs import (
    check_docker_daemon,
    check_network,
    check_skip_cluster_target,
    check_tools,
    check_versions,
    looks_like_kind,
    parse_version,
    run_prereq_checks,
)

KUBECTL_VERSION = ("kubectl", "version")
CLUSTER_INFO = ("kubectl", "cluster-info")
CURRENT_CONTEXT = ("kubectl", "config", "current-context")
NODES = ("kubectl", "get", "nodes")


def _versioned_runner(kind: str = "kind v0.23.0 go1.22.2 linux/amd64") -> FakeRunner:
    return FakeRunner(responses={
        ("kind", "version"): kind,
        KUBECTL_VERSION: json.dumps({"clientVersion": {"gitVersion": "v1.30.2"}}),
        ("helm", "version"): "v3.14.4+g81c902a\n",
    })


class TestCheckTools:
    def test_all_present(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[str] = []
        monkeypatch.setattr(prereqs, "require_command", seen.append)
        check_tools()
        assert seen == ["kind", "kubectl", "helm"]

    def test_stops_at_first_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[str] = []

        def _require(cmd: str) -> None:
            seen.append(cmd)
            if cmd == "kubectl":
                raise MissingToolError(cmd)

        monkeypatch.setattr(prereqs, "require_command", _require)
        with pytest.raises(MissingToolError) as exc_info:
            check_tools()
        assert exc_info.value.tool == "kubectl"
        assert exc_info.value.exit_code == 127
        assert seen == ["kind", "kubectl"]


class TestVersions:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("kind v0.23.0 go1.22.2 linux/amd64", (0, 23, 0)),
            ("v3.14.4+g81c902a", (3, 14, 4)),
            ("v1.30", (1, 30, 0)),
            ("no version here", None),
        ],
    )
    def test_parse_version(self, text: str, expected) -> None:
        assert parse_version(text) == expected

    def test_recent_tools_pass(self) -> None:
        runner = _versioned_runner()
        check_versions(runner)
        assert ("kubectl", "version", "--client", "-o", "json") in runner.executed
        assert ("helm", "version", "--short") in runner.executed

    def test_old_kind_rejected(self) -> None:
        with pytest.raises(PrerequisiteError, match=r"kind 0\.19\.1 is too old"):
            check_versions(_versioned_runner(kind="kind v0.19.1 go1.20 linux/amd64"))

    def test_unknown_version_rejected(self) -> None:
        runner = _versioned_runner()
        runner.respond(("helm", "version"), failed("helm: broken"))
        with pytest.raises(PrerequisiteError, match="helm"):
            check_versions(runner)


class TestDockerDaemon:
    def test_reachable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = MagicMock()
        monkeypatch.setattr(prereqs.docker, "from_env", lambda: client)
        check_docker_daemon()
        client.ping.assert_called_once()
        client.close.assert_called_once()

    def test_unreachable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _from_env():
            raise docker.errors.DockerException("Error while fetching server API version")

        monkeypatch.setattr(prereqs.docker, "from_env", _from_env)
        with pytest.raises(PrerequisiteError, match="Docker daemon"):
            check_docker_daemon()


class TestNetwork:
    def test_reports_unreachable_urls_without_failing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def _head(url: str, **kwargs):
            if "blocked" in url:
                raise requests.exceptions.ConnectionError("no route to host")
            return MagicMock()

        monkeypatch.setattr(prereqs.requests, "head", _head)
        assert check_network(("https://ok.example/", "https://blocked.example/")) == ["https://blocked.example/"]


class TestSkipClusterTarget:
    def test_unreachable_context(self) -> None:
        runner = FakeRunner(responses={CLUSTER_INFO: failed("connection refused")})
        with pytest.raises(PrerequisiteError, match="not reachable"):
            check_skip_cluster_target(runner)

    def test_kind_context_name(self) -> None:
        runner = FakeRunner(responses={CURRENT_CONTEXT: "kind-demo\n"})
        check_skip_cluster_target(runner)
        assert not runner.find("nodes")

    def test_falls_back_to_node_inspection(self) -> None:
        nodes = {"items": [{"metadata": {"name": "demo-control-plane"}, "spec": {"providerID": "kind://docker/demo/x"}}]}
        runner = FakeRunner(responses={CURRENT_CONTEXT: "my-alias\n", NODES: json.dumps(nodes)})
        check_skip_cluster_target(runner)

    def test_non_kind_cluster_rejected(self) -> None:
        nodes = {"items": [{"metadata": {"name": "aks-pool-0"}, "spec": {"providerID": "azure:///subscriptions/x"}}]}
        runner = FakeRunner(responses={CURRENT_CONTEXT: "prod\n", NODES: json.dumps(nodes)})
        with pytest.raises(PrerequisiteError, match="kind cluster"):
            check_skip_cluster_target(runner)

    @pytest.mark.parametrize(
        ("node", "expected"),
        [
            ({"metadata": {"labels": {"io.x-k8s.kind.cluster": "demo"}, "annotations": {"kind.x-k8s.io/x": "1"}}}, True),
            ({"metadata": {"name": "kind-control-plane"}}, True),
            ({"metadata": {"name": "worker-1"}, "spec": {"providerID": "aws:///us-east-1a/i-0"}}, False),
        ],
    )
    def test_looks_like_kind(self, node: dict, expected: bool) -> None:
        assert looks_like_kind({"items": [node]}) is expected

    def test_empty_node_list(self) -> None:
        assert not looks_like_kind({"items": []})


def test_run_prereq_checks_order(monkeypatch: pytest.MonkeyPatch) -> None:
    steps: list[str] = []
    monkeypatch.setattr(prereqs, "check_tools", lambda tools: steps.append(f"tools:{','.join(tools)}"))
    monkeypatch.setattr(prereqs, "check_docker_daemon", lambda: steps.append("docker"))
    monkeypatch.setattr(prereqs, "check_network", lambda: steps.append("network") or [])
    runner = _versioned_runner()
    runner.respond(CURRENT_CONTEXT, "kind-demo\n")

    run_prereq_checks(runner, skip_cluster=True)

    assert steps == ["tools:docker,kind,kubectl,helm", "docker", "network"]
    assert runner.find("cluster-info")
