"""Tests for the command-line surface."""

from __future__ import annotations

import logging
from unittest.mock import MagicMock

import pytest
from typer.testing import CliRunner

from crossplane_kind import cli
from crossplane_kind.errors import ConfirmationDeclined, MissingToolError, PrerequisiteError
from crossplane_kind.utils import CommandRunner

cli_runner = CliRunner()


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(cli, "run", mock)
    return mock


def _config(mock: MagicMock):
    mock.assert_called_once()
    return mock.call_args.args[0]


class TestBootstrapCommand:
    def test_defaults(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap"])
        assert result.exit_code == 0, result.output
        cfg = _config(fake_run)
        assert cfg.kind.cluster_name == "crossplane-kind"
        assert cfg.crossplane.wait_timeout.seconds == 600
        assert not cfg.flags.dry_run
        assert not cfg.flags.assume_yes

    def test_overrides_and_flags(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, [
            "bootstrap", "-y", "-n", "demo", "-k", "kindest/node:v1.32.0",
            "--crossplane-version", "v1.19.0", "--wait-timeout", "15m", "--recreate",
        ])
        assert result.exit_code == 0, result.output
        cfg = _config(fake_run)
        assert cfg.kind.cluster_name == "demo"
        assert cfg.kind.kindest_node_image == "kindest/node:v1.32.0"
        assert cfg.crossplane.crossplane_version == "v1.19.0"
        assert cfg.crossplane.wait_timeout.seconds == 900
        assert cfg.flags.assume_yes
        assert cfg.flags.recreate

    def test_sh_process_logging_is_quiet(self, fake_run: MagicMock, monkeypatch: pytest.MonkeyPatch) -> None:
        sh_logger = logging.getLogger("sh")
        monkeypatch.setattr(sh_logger, "level", logging.NOTSET)
        result = cli_runner.invoke(cli.app, ["bootstrap"])
        assert result.exit_code == 0, result.output
        assert sh_logger.level == logging.WARNING

    def test_cleanup_flags(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap", "--cleanup", "--delete-cluster", "--force-clean"])
        assert result.exit_code == 0, result.output
        flags = _config(fake_run).flags
        assert flags.cleanup and flags.delete_cluster and flags.force_clean

    def test_environment_defaults(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap"], env={"CLUSTER_NAME": "from-env", "DRY_RUN": "true"})
        assert result.exit_code == 0, result.output
        cfg = _config(fake_run)
        assert cfg.kind.cluster_name == "from-env"
        assert cfg.flags.dry_run

    @pytest.mark.parametrize("flag", ["--delete-cluster", "--force-clean"])
    def test_cleanup_only_flags_need_cleanup(self, fake_run: MagicMock, flag: str) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap", flag])
        assert result.exit_code == 2
        fake_run.assert_not_called()

    def test_invalid_timeout(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap", "--wait-timeout", "5s"])
        assert result.exit_code == 2
        fake_run.assert_not_called()

    def test_empty_cluster_name(self, fake_run: MagicMock) -> None:
        result = cli_runner.invoke(cli.app, ["bootstrap", "-n", ""])
        assert result.exit_code == 2
        fake_run.assert_not_called()

    def test_missing_tool_exit_code(self, fake_run: MagicMock) -> None:
        fake_run.side_effect = MissingToolError("kind")
        result = cli_runner.invoke(cli.app, ["bootstrap"])
        assert result.exit_code == 127

    def test_declined_confirmation_exit_code(self, fake_run: MagicMock) -> None:
        fake_run.side_effect = ConfirmationDeclined("Aborted by user")
        result = cli_runner.invoke(cli.app, ["bootstrap", "--recreate"])
        assert result.exit_code == 1


class TestCheckPrereqsCommand:
    def test_passes_skip_cluster(self, monkeypatch: pytest.MonkeyPatch) -> None:
        mock = MagicMock()
        monkeypatch.setattr(cli, "run_prereq_checks", mock)
        result = cli_runner.invoke(cli.app, ["check-prereqs", "--skip-cluster"])
        assert result.exit_code == 0, result.output
        runner = mock.call_args.args[0]
        assert isinstance(runner, CommandRunner)
        assert not runner.dry_run
        assert mock.call_args.kwargs == {"skip_cluster": True}

    def test_failed_check(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cli, "run_prereq_checks", MagicMock(side_effect=PrerequisiteError("Docker is down")))
        result = cli_runner.invoke(cli.app, ["check-prereqs"])
        assert result.exit_code == 1
