"""Tests for CLI commands.

The deployment backend is replaced with a recording double so the
commands can be driven end to end without a node.
"""

from pathlib import Path
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from conftest import RecordingBackend
from spherectl.cli import cli
from spherectl.config import ETHERSPHERE_CONTRACTS


@pytest.fixture
def patched_backend():
    """Patch backend creation and yield the factory's recorded backends."""
    created: list[RecordingBackend] = []
    settings: dict = {"fail_on": None}

    def factory(config, store):
        backend = RecordingBackend(fail_on=settings["fail_on"])
        created.append(backend)
        return backend

    with patch("spherectl.deploy.sequencer.create_backend", side_effect=factory):
        yield created, settings


def invoke(runner: CliRunner, config_file: str, *args: str, **kwargs):
    return runner.invoke(cli, ["--no-color", "-c", config_file, *args], **kwargs)


class TestCLIEntryPoint:
    """Tests for main CLI entry point, flags, and options."""

    def test_help(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "spherectl" in result.output
        for command in ("migrate", "plan", "runs", "networks", "config"):
            assert command in result.output

    def test_version(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "spherectl version" in result.output

    def test_invalid_output_format(self, cli_runner: CliRunner):
        result = cli_runner.invoke(cli, ["-o", "xml", "config"])
        assert result.exit_code != 0
        assert "Invalid format" in result.output

    def test_config_command(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "-o", "json", "-n", "test", "config")
        assert result.exit_code == 0
        assert "0x00000000000000000000000000000000000000aa" in result.output
        assert "EthersphereAccessControl" in result.output

    def test_config_unknown_network(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "-n", "mainnet", "config")
        assert result.exit_code == 1
        assert "not found" in str(result.exception)

    def test_networks(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "-o", "raw", "networks")
        assert result.exit_code == 0
        assert "development" in result.output
        assert "http://127.0.0.1:9545" in result.output

    def test_network_from_env(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "-o", "json", "config", env={"SPHERECTL_NETWORK": "test"})
        assert result.exit_code == 0
        assert '"network": "test"' in result.output


class TestMigrateCommand:
    """Tests for the migrate command."""

    def test_all_succeed(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, _ = patched_backend

        result = invoke(cli_runner, temp_config_file, "migrate", "test")

        assert result.exit_code == 0, result.output
        assert len(created) == 1
        backend = created[0]
        assert backend.deployed_names == list(ETHERSPHERE_CONTRACTS)
        assert {r.network for r in backend.requests} == {"test"}
        assert backend.closed
        assert "All 5 contracts deployed" in result.output

    def test_global_network_option(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, _ = patched_backend

        result = invoke(cli_runner, temp_config_file, "-n", "test", "migrate")

        assert result.exit_code == 0, result.output
        assert {r.network for r in created[0].requests} == {"test"}

    def test_cube_failure_exits_non_zero(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, settings = patched_backend
        settings["fail_on"] = "EthersphereCube"

        result = invoke(cli_runner, temp_config_file, "migrate", "test")

        assert result.exit_code == 1
        assert created[0].deployed_names == [
            "EthersphereAccessControl",
            "EthersphereBase",
            "EthersphereCube",
        ]
        assert "step 3" in result.output
        assert created[0].closed

    def test_dry_run(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, _ = patched_backend

        result = invoke(cli_runner, temp_config_file, "--dry-run", "migrate", "test")

        assert result.exit_code == 0, result.output
        assert created[0].requests == []
        assert "Would deploy 1/5: EthersphereAccessControl" in result.output

    def test_unknown_network(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, _ = patched_backend

        result = invoke(cli_runner, temp_config_file, "migrate", "mainnet")

        assert result.exit_code == 1
        assert created == []

    def test_protected_network_cancelled(self, cli_runner: CliRunner, tmp_path: Path, temp_config_file: str, patched_backend):
        created, _ = patched_backend
        data = yaml.safe_load(Path(temp_config_file).read_text())
        data["networks"]["mainnet"] = {"confirm": True}
        config_file = tmp_path / "protected.yaml"
        config_file.write_text(yaml.safe_dump(data))

        result = invoke(cli_runner, str(config_file), "migrate", "mainnet", input="n\n")

        assert result.exit_code == 1
        assert "Cancelled" in result.output
        assert created == []

    def test_protected_network_quiet_aborts(self, cli_runner: CliRunner, tmp_path: Path, temp_config_file: str, patched_backend):
        created, _ = patched_backend
        data = yaml.safe_load(Path(temp_config_file).read_text())
        data["networks"]["mainnet"] = {"confirm": True}
        config_file = tmp_path / "protected.yaml"
        config_file.write_text(yaml.safe_dump(data))

        result = invoke(cli_runner, str(config_file), "-q", "migrate", "mainnet")

        assert result.exit_code == 1
        assert created == []

    def test_protected_network_with_yes(self, cli_runner: CliRunner, tmp_path: Path, temp_config_file: str, patched_backend):
        created, _ = patched_backend
        data = yaml.safe_load(Path(temp_config_file).read_text())
        data["networks"]["mainnet"] = {"confirm": True}
        config_file = tmp_path / "protected.yaml"
        config_file.write_text(yaml.safe_dump(data))

        result = invoke(cli_runner, str(config_file), "migrate", "mainnet", "--yes")

        assert result.exit_code == 0, result.output
        assert len(created[0].requests) == 5

    def test_runs_are_not_deduplicated(self, cli_runner: CliRunner, temp_config_file: str, patched_backend):
        created, _ = patched_backend

        invoke(cli_runner, temp_config_file, "migrate", "test")
        invoke(cli_runner, temp_config_file, "migrate", "test")

        assert sum(len(b.requests) for b in created) == 10


class TestPlanCommand:
    """Tests for the plan command."""

    def test_plan_all_found(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "-o", "json", "plan")
        assert result.exit_code == 0
        assert result.output.count('"found"') == 5

    def test_plan_missing_artifact(self, cli_runner: CliRunner, temp_config_file: str, build_dir: Path):
        (build_dir / "EthersphereFinance.json").unlink()

        result = invoke(cli_runner, temp_config_file, "-o", "raw", "plan")

        assert result.exit_code == 0
        assert "missing" in result.output
        assert "1 artifact(s) missing" in result.output


class TestRunsCommands:
    """Tests for run history commands."""

    def test_list_empty(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "runs", "list")
        assert result.exit_code == 0
        assert "No runs recorded" in result.output

    def test_list_and_show(self, cli_runner: CliRunner, temp_config_file: str, state_dir: Path, patched_backend):
        _, settings = patched_backend
        settings["fail_on"] = "EthersphereFinance"
        invoke(cli_runner, temp_config_file, "migrate", "test")

        listed = invoke(cli_runner, temp_config_file, "-o", "raw", "runs", "list", "--status", "failed")
        assert listed.exit_code == 0
        assert "EthersphereFinance" in listed.output
        assert "3/5" in listed.output

        run_id = next(state_dir.glob("*.json")).stem
        shown = invoke(cli_runner, temp_config_file, "-o", "json", "runs", "show", run_id)
        assert shown.exit_code == 0
        assert '"failed_step": "EthersphereFinance"' in shown.output
        assert '"not_run"' in shown.output

    def test_show_missing(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "runs", "show", "nope")
        assert result.exit_code == 1
        assert "Run not found" in str(result.exception)

    @pytest.mark.parametrize("limit", ["0", "-3"])
    def test_list_rejects_non_positive_limit(self, cli_runner: CliRunner, temp_config_file: str, limit: str):
        result = invoke(cli_runner, temp_config_file, "runs", "list", f"--limit={limit}")
        assert result.exit_code == 2
        assert "--limit" in result.output

    def test_show_rejects_path_in_run_id(self, cli_runner: CliRunner, temp_config_file: str):
        result = invoke(cli_runner, temp_config_file, "runs", "show", "../../secrets")
        assert result.exit_code == 1
        assert "Invalid run id" in str(result.exception)
