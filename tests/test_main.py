import csv
import json
from decimal import Decimal

import click
import pytest
from click.testing import CliRunner

from loan_schedule.main import cli, parse_amount, parse_override_strings

CANONICAL = ["-a", "800k", "-y", "5", "-r", "2.56"]


@pytest.fixture
def runner():
    return CliRunner()


class TestParsing:
    @pytest.mark.parametrize(
        "text,expected",
        [("800000", "800000"), ("800k", "800000"), ("1.5m", "1500000"), ("500,000", "500000"), (" 250K ", "250000")],
    )
    def test_parse_amount(self, text, expected):
        assert parse_amount(text) == Decimal(expected)

    def test_parse_amount_rejects_garbage(self):
        with pytest.raises(click.BadParameter):
            parse_amount("lots")

    def test_parse_overrides_keeps_last_value_last(self):
        overrides = parse_override_strings(["years=10", "extra-payment=1k", "months=90", "years=3"])
        assert list(overrides) == ["extra_payment", "months", "years"]
        assert overrides["extra_payment"] == Decimal("1000")
        assert overrides["years"] == "3"

    def test_parse_overrides_requires_equals(self):
        with pytest.raises(click.BadParameter):
            parse_override_strings(["extra_payment"])


class TestSummaryCommand:
    def test_prints_totals(self, runner):
        result = runner.invoke(cli, ["summary", *CANONICAL])
        assert result.exit_code == 0, result.output
        assert "Total cost         : 853143.84" in result.output
        assert "Payments scheduled : 60" in result.output

    def test_interest_only_and_balloon(self, runner):
        result = runner.invoke(cli, ["summary", *CANONICAL, "-f", "yearly", "--interest-only-years", "5"])
        assert result.exit_code == 0, result.output
        assert "Interest only      : 5 payments" in result.output
        assert "Balloon payment    : 800000.00" in result.output

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "summary.json"
        result = runner.invoke(cli, ["summary", *CANONICAL, "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text())
        assert data["summary"]["payments_total"] == 60
        assert data["configuration"]["months"] == 60

    def test_summary_export_requires_json(self, runner, tmp_path):
        result = runner.invoke(cli, ["summary", *CANONICAL, "--output", str(tmp_path / "summary.csv")])
        assert result.exit_code == 2

    def test_term_required(self, runner):
        result = runner.invoke(cli, ["summary", "-a", "800k", "-r", "2.56"])
        assert result.exit_code == 2
        assert "--months or --years" in result.output

    def test_conflicting_term_options(self, runner):
        result = runner.invoke(cli, ["summary", *CANONICAL, "-m", "60"])
        assert result.exit_code == 2
        assert "not both" in result.output


class TestScheduleCommand:
    def test_prints_every_row(self, runner):
        result = runner.invoke(cli, ["schedule", *CANONICAL])
        assert result.exit_code == 0, result.output
        rows = [line for line in result.output.splitlines() if line[:1].isdigit()]
        assert len(rows) == 60
        assert rows[-1].endswith("\t0.00")

    def test_long_schedule_truncated(self, runner):
        result = runner.invoke(cli, ["schedule", "-a", "500k", "-y", "20", "-r", "2.49"])
        assert result.exit_code == 0, result.output
        assert "Schedule has 240 rows; showing first 120 rows." in result.output

    def test_full_flag(self, runner):
        result = runner.invoke(cli, ["schedule", "-a", "500k", "-y", "20", "-r", "2.49", "--full"])
        assert result.exit_code == 0, result.output
        assert "showing first" not in result.output

    def test_csv_export(self, runner, tmp_path):
        path = tmp_path / "schedule.csv"
        result = runner.invoke(cli, ["schedule", *CANONICAL, "--extra-payment", "1000", "--output", str(path)])
        assert result.exit_code == 0, result.output
        with path.open(newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["Period", "Payment", "Principal", "Interest", "Balance"]
        assert len(rows) == 57
        assert float(rows[-1][4]) == 0

    def test_json_export(self, runner, tmp_path):
        path = tmp_path / "schedule.json"
        result = runner.invoke(cli, ["schedule", *CANONICAL, "-f", "yearly", "--interest-only-count", "1", "--output", str(path)])
        assert result.exit_code == 0, result.output
        data = json.loads(path.read_text())
        first = data["schedule"][0]
        assert first == {"period": 1, "amount": 20480.0, "principal": 0.0, "interest": 20480.0, "balance": 800000.0}
        assert data["configuration"]["interest_only_repayment_count"] == 1

    def test_unsupported_export(self, runner, tmp_path):
        result = runner.invoke(cli, ["schedule", *CANONICAL, "--output", str(tmp_path / "schedule.xml")])
        assert result.exit_code == 2

    def test_invalid_amount(self, runner):
        result = runner.invoke(cli, ["schedule", "-a", "NaN", "-y", "5", "-r", "2.56"])
        assert result.exit_code == 1
        assert "finite" in result.output


class TestCompareCommand:
    def test_extra_payment_variant(self, runner):
        result = runner.invoke(cli, ["compare", *CANONICAL, "--with", "extra_payment=1000", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["difference"]["payments_made"] == -4
        assert -3720 < data["difference"]["total_interest"] < -3710
        assert data["scenario1"]["payments_made"] == 60

    def test_table_output(self, runner):
        result = runner.invoke(cli, ["compare", *CANONICAL, "--with", "repayment_frequency=yearly"])
        assert result.exit_code == 0, result.output
        assert "Comparison" in result.output
        assert "total_interest" in result.output

    def test_unknown_setting(self, runner):
        result = runner.invoke(cli, ["compare", *CANONICAL, "--with", "principal=5"])
        assert result.exit_code == 2
        assert "Unknown loan setting" in result.output
