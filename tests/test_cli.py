"""
Tests for cli.py - running reports from a config file.
"""

import csv
import json

import pytest

from dealreport.cli import DATABASE_URL_ENV, main


@pytest.fixture
def config_file(tmp_path):
    """Write a report config and return its path."""
    def _write(**data):
        path = tmp_path / "report.json"
        path.write_text(json.dumps(data))
        return str(path)
    return _write


def read_report(path):
    with open(path, encoding="utf-8", newline="") as f:
        return list(csv.reader(f))


class TestRunCommand:
    """Test the run subcommand."""

    def test_full_report(self, tmp_path, crm_database_url, config_file, capsys):
        """Test a complete export with every shipped resolver."""
        output = tmp_path / "out" / "deals.csv"
        summary = tmp_path / "run.json"
        config = config_file(name="deals", output_path=str(output), report_file=str(summary))

        exit_code = main(["run", "--config", config, "--database-url", crm_database_url])

        assert exit_code == 0
        rows = read_report(output)
        header, data = rows[0], rows[1:]

        assert header[:3] == ["ID", "TITLE", "LEAD_ID"]
        assert header[16:18] == ["Agent participation %", "Linked contacts"]
        assert header[18] == "Stage"
        assert header[-3:] == ["Refund currency", "Request type", "Service provision date"]
        assert len(data) == 3
        assert all(len(row) == len(header) for row in data)

        first = dict(zip(header, data[0]))
        assert first["TITLE"] == "Flight to Rome"
        assert first["Stage"] == "New"
        assert first["Agent participation %"] == "Petrov Ivan Sergeevich=60%, Smith Anna=40%"
        assert first["Financial card scheme"] == "Buyer agent"
        assert first["Request type"] == "Ticket"
        assert first["Service provision date"] == "05.03.2024"
        assert first["Linked contacts"] == "C_12, C_7"
        assert first["LEAD_ID"] == ""
        assert "ERROR" not in data[0]

        run = json.loads(summary.read_text())
        assert run["status"] == "completed"
        assert run["records_pulled"] == run["rows_written"] == 3
        assert "REPORT COMPLETE" in capsys.readouterr().out

    def test_enabled_resolvers_only(self, tmp_path, crm_database_url, config_file):
        output = tmp_path / "deals.csv"
        config = config_file(
            output_path=str(output),
            direct_fields={"Deal": "ID", "Name": "TITLE"},
            select_fields=["ID", "TITLE", "STAGE_ID"],
            resolvers=["DealStageResolver"],
        )

        assert main(["run", "--config", config, "--database-url", crm_database_url]) == 0
        assert read_report(output) == [
            ["Deal", "Name", "Stage"],
            ["1", "Flight to Rome", "New"],
            ["2", "Hotel booking", "Won"],
            ["3", "Visa support", ""],
        ]

    def test_output_override_and_env_url(self, tmp_path, crm_database_url, config_file, monkeypatch):
        output = tmp_path / "override.csv"
        config = config_file(output_path=str(tmp_path / "ignored.csv"), resolvers=["RefundCardResolver"])
        monkeypatch.setenv(DATABASE_URL_ENV, crm_database_url)

        assert main(["run", "--config", config, "--output", str(output)]) == 0
        assert output.exists()
        assert not (tmp_path / "ignored.csv").exists()

    def test_configuration_error_exits_with_1(self, tmp_path, crm_database_url, config_file, capsys):
        """Test that an unselected direct field fails without creating output."""
        output = tmp_path / "deals.csv"
        config = config_file(
            output_path=str(output),
            direct_fields={"Region": "REGION_ID"},
            select_fields=["ID", "TITLE"],
            resolvers=["RefundCardResolver"],
        )

        assert main(["run", "--config", config, "--database-url", crm_database_url]) == 1
        assert not output.exists()
        assert "REGION_ID" in capsys.readouterr().err

    def test_unwritable_output_exits_with_1(self, tmp_path, crm_database_url, config_file, capsys):
        """Test that an output path under a regular file is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        summary = tmp_path / "run.json"
        config = config_file(
            output_path=str(blocker / "deals.csv"),
            report_file=str(summary),
            resolvers=["DealStageResolver"],
            select_fields=["ID", "TITLE", "STAGE_ID"],
            direct_fields={"Deal": "ID"},
        )

        assert main(["run", "--config", config, "--database-url", crm_database_url]) == 1
        assert "Report failed: Cannot write report" in capsys.readouterr().err

        run = json.loads(summary.read_text())
        assert run["status"] == "failed"
        assert run["errors"][0]["type"] == "ReportOutputError"

    def test_missing_database_url(self, config_file, monkeypatch, capsys):
        monkeypatch.delenv(DATABASE_URL_ENV, raising=False)

        assert main(["run", "--config", config_file()]) == 1
        assert "No database URL" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path):
        assert main(["run", "--config", str(tmp_path / "nope.json")]) == 1


class TestResolversCommand:
    """Test the resolvers subcommand."""

    def test_lists_resolvers_in_column_order(self, capsys):
        assert main(["resolvers"]) == 0

        lines = capsys.readouterr().out.splitlines()
        identifiers = [line for line in lines if not line.startswith(" ")]
        assert identifiers[0] == "AgentParticipationResolver"
        assert identifiers[-1] == "ServiceDateResolver"
        assert "  - Financial card scheme" in lines

    def test_filtered_by_config(self, config_file, capsys):
        assert main(["resolvers", "--config", config_file(resolvers=["DealStageResolver"])]) == 0

        assert capsys.readouterr().out.splitlines() == ["DealStageResolver", "  - Stage"]

    def test_unknown_resolver_in_config(self, config_file):
        assert main(["resolvers", "--config", config_file(resolvers=["Nope"])]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 2
    assert "usage" in capsys.readouterr().out
