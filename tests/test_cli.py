"""Tests for the CityFix CLI."""

import pytest
from click.testing import CliRunner
from conftest import INSERT_EXCEPTION, FakeWFS

import cityfix.cli
from cityfix.app import CityFixApp
from cityfix.cli import cli
from cityfix.core.config import DEFAULT_CONFIG


@pytest.fixture
def use_fake(monkeypatch):
    """Route every CityFixApp the CLI creates through a FakeWFS."""

    def _install(fake: FakeWFS) -> FakeWFS:
        monkeypatch.setattr(
            cityfix.cli,
            "CityFixApp",
            lambda config: CityFixApp(config, http=fake.http()),
        )
        return fake

    return _install


def _invoke(args):
    return CliRunner().invoke(cli, args, obj={"config": DEFAULT_CONFIG})


class TestCLI:
    def test_help(self):
        result = _invoke(["--help"])
        assert result.exit_code == 0
        assert "CityFix" in result.output

    def test_no_subcommand_shows_help(self):
        result = _invoke([])
        assert result.exit_code == 0
        assert "report" in result.output

    def test_report_help(self):
        result = _invoke(["report", "--help"])
        assert result.exit_code == 0
        assert "--severity" in result.output

    def test_issues_lists_all(self, use_fake):
        use_fake(FakeWFS())
        result = _invoke(["issues"])
        assert result.exit_code == 0
        assert "a1" in result.output and "a3" in result.output
        assert "3 issue(s) shown" in result.output

    def test_issues_filtered(self, use_fake):
        use_fake(FakeWFS())
        result = _invoke(["issues", "--category", "roadwork", "--category", "blockage",
                          "--status", "resolved"])
        assert result.exit_code == 0
        assert "a3" in result.output
        assert "a1" not in result.output
        assert "1 issue(s) shown" in result.output

    def test_issues_load_failure(self, use_fake):
        use_fake(FakeWFS(fail={"load"}))
        result = _invoke(["issues"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_report_success(self, use_fake):
        fake = use_fake(FakeWFS())
        result = _invoke(["report", "51.96", "7.62", "--category", "roadwork",
                          "--severity", "5", "-d", "Pothole"])
        assert result.exit_code == 0
        assert "issue_" in result.output
        assert fake.count("Transaction") == 1

    def test_report_failure(self, use_fake):
        use_fake(FakeWFS(transaction_text=INSERT_EXCEPTION))
        result = _invoke(["report", "51.96", "7.62"])
        assert result.exit_code == 1
        assert "Submission failed" in result.output

    def test_report_rejects_bad_severity(self):
        result = _invoke(["report", "51.96", "7.62", "--severity", "7"])
        assert result.exit_code != 0

    def test_export_geojson(self, use_fake, tmp_path):
        use_fake(FakeWFS())
        out = tmp_path / "visible.geojson"
        result = _invoke(["export", str(out), "--status", "open"])
        assert result.exit_code == 0, result.output
        assert out.exists()
        assert "Saved 1 issue(s)" in result.output
