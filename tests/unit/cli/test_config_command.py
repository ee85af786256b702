"""Unit tests for the dcdeploy config CLI commands."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from dcdeploy.cli.main import main


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner."""
    return CliRunner()


class TestServicesCommand:
    """Tests for 'dcdeploy config services'."""

    def test_lists_all_services(self, runner: CliRunner, fixture_dir: Path) -> None:
        """Test every service is listed once, sorted."""
        result = runner.invoke(
            main, ["config", "services", "--root", str(fixture_dir), "--env", "test"]
        )

        assert result.exit_code == 0, result.output
        assert result.output.split() == ["service_test1", "service_test2", "service_test3"]

    def test_lists_datacenter_services(
        self, runner: CliRunner, fixture_dir: Path
    ) -> None:
        """Test --dc restricts the listing to one datacenter."""
        result = runner.invoke(
            main,
            ["config", "services", "--dc", "datacenter2", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.split() == ["service_test2"]

    def test_unknown_datacenter(self, runner: CliRunner, fixture_dir: Path) -> None:
        """Test an unknown datacenter exits with a configuration error."""
        result = runner.invoke(
            main,
            ["config", "services", "--dc", "nowhere", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.exit_code == 2

    def test_malformed_environment(self, runner: CliRunner, fixture_dir: Path) -> None:
        """Test a malformed datacenter config exits with code 2."""
        result = runner.invoke(
            main, ["config", "services", "--root", str(fixture_dir), "--env", "test2"]
        )

        assert result.exit_code == 2
        assert "datacenter2" in result.output


class TestDatacentersCommand:
    """Tests for 'dcdeploy config datacenters'."""

    def test_marks_federated_datacenters(
        self, runner: CliRunner, fixture_dir: Path
    ) -> None:
        """Test federated datacenters are marked."""
        result = runner.invoke(
            main,
            ["config", "datacenters", "service_test2", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "datacenter1 (federated)",
            "datacenter2 (federated)",
        ]

    def test_unfederated_datacenter(self, runner: CliRunner, fixture_dir: Path) -> None:
        """Test datacenters outside the federation are listed plainly."""
        result = runner.invoke(
            main,
            ["config", "datacenters", "service_test3", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.output.splitlines() == ["datacenter3"]


class TestShowCommand:
    """Tests for 'dcdeploy config show'."""

    def test_show_service_in_datacenter(
        self, runner: CliRunner, fixture_dir: Path
    ) -> None:
        """Test the resolved service config is printed as YAML."""
        result = runner.invoke(
            main,
            [
                "config",
                "show",
                "service_test2",
                "--dc",
                "datacenter2",
                "--root",
                str(fixture_dir),
                "--env",
                "test",
            ],
        )

        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "image": "service_test2_image",
            "dc_region": "r1",
        }

    def test_show_without_dc_uses_first_datacenter(
        self, runner: CliRunner, fixture_dir: Path
    ) -> None:
        """Test lookup without --dc resolves deterministically."""
        result = runner.invoke(
            main,
            ["config", "show", "service_test2", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output) == {
            "image": "service_test2_image",
            "count": 2,
        }

    def test_show_missing_service(self, runner: CliRunner, fixture_dir: Path) -> None:
        """Test an unknown service exits with a configuration error."""
        result = runner.invoke(
            main,
            ["config", "show", "no_such_service", "--root", str(fixture_dir), "--env", "test"],
        )

        assert result.exit_code == 2
        assert "not found in any datacenter" in result.output
