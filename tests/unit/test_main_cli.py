"""Tests for automation_monitor/main.py."""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from automation_monitor.engine.monitor import AutomationMonitor
from automation_monitor.main import SAMPLE_AUTOMATIONS, cli, seed_sample_data


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the CLI from reconfiguring structlog for the whole test session."""
    with patch("automation_monitor.main.configure_logging") as mock_configure:
        yield mock_configure


class TestCliGroup:
    """Tests for global CLI options."""

    def test_help(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "serve" in result.output
        assert "demo" in result.output

    def test_missing_config_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["--config", str(tmp_path / "absent.yaml"), "demo"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, runner, tmp_path):
        config = tmp_path / "monitor.yaml"
        config.write_text("health_check_interval_seconds: nope\n")

        result = runner.invoke(cli, ["--config", str(config), "demo"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_log_level_from_config(self, runner, tmp_path, no_logging_setup):
        config = tmp_path / "monitor.yaml"
        config.write_text("log_level: DEBUG\n")

        result = runner.invoke(cli, ["--config", str(config), "demo", "--json"])

        assert result.exit_code == 0
        no_logging_setup.assert_called_once_with("DEBUG")

    def test_log_level_option_wins(self, runner, no_logging_setup):
        runner.invoke(cli, ["--log-level", "WARNING", "demo", "--json"])
        no_logging_setup.assert_called_once_with("WARNING")


class TestDemoCommand:
    """Tests for the demo command."""

    def test_json_output(self, runner):
        result = runner.invoke(cli, ["demo", "--json"])

        assert result.exit_code == 0
        dashboard = json.loads(result.output)
        assert dashboard["overview"]["total_automations"] == 6
        assert len(dashboard["health_status"]) == 6
        assert {h["automation_id"] for h in dashboard["health_status"]} == set(SAMPLE_AUTOMATIONS)

    def test_text_output(self, runner):
        result = runner.invoke(cli, ["demo"])

        assert result.exit_code == 0
        assert "Automation Monitor" in result.output
        assert "Automations:       6" in result.output
        assert "email-processing" in result.output

    def test_seed_sample_data(self, clock):
        monitor = AutomationMonitor(clock=clock)

        seed_sample_data(monitor)

        assert len(monitor.get_metrics()) == 6
        email = monitor.get_metrics("email-processing")[0]
        assert email.total_executions == 3
        assert email.error_count == 1
        assert monitor.get_events("email-processing")[-1].error == "Connection timeout"
        assert len(monitor.get_performance_data("task-creation")) == 1


class TestServeCommand:
    def test_serve_runs_uvicorn(self, runner):
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(cli, ["serve", "--host", "0.0.0.0", "--port", "9100"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0].title == "Automation Monitor"
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9100
