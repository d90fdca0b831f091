"""Tests for the command line interface."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest
from typer.testing import CliRunner

from npm_health import __version__, main
from npm_health.errors import NotFoundError, UpstreamError
from npm_health.health import format_date
from npm_health.models import HealthReport

runner = CliRunner()


def make_report(**overrides) -> HealthReport:
    now = datetime.now(timezone.utc)
    fields = dict(
        name="left-pad",
        version="1.3.0",
        description="String left pad",
        last_publish=now - timedelta(days=400),
        days_since_publish=400,
        weekly_downloads=2_300_000,
        open_issues=12,
        last_commit=now - timedelta(days=10),
        days_since_commit=10,
        status="alive",
        repo_url="https://github.com/stevemao/left-pad",
        npm_url="https://www.npmjs.com/package/left-pad",
        maintainers=["stevemao", "[azer]"],
    )
    fields.update(overrides)
    return HealthReport(**fields)


@pytest.fixture
def fake_check(monkeypatch):
    """Replace the resolver; the returned dict controls its outcome"""
    outcome = {"report": make_report(), "error": None}

    async def fake_check_health(package_name):
        if outcome["error"] is not None:
            raise outcome["error"]
        return outcome["report"]

    monkeypatch.setattr(main, "check_health", fake_check_health)
    return outcome


def test_check_renders_status_card(fake_check):
    result = runner.invoke(main.app, ["check", "left-pad"])

    assert result.exit_code == 0, result.output
    assert "Alive & Kicking" in result.output
    assert "2.3M" in result.output
    assert "1 year ago" in result.output
    assert "Open Issues: 12" in result.output
    assert format_date(fake_check["report"].last_publish) in result.output
    assert "[azer]" in result.output


def test_check_without_github_data(fake_check):
    fake_check["report"] = make_report(
        status="dead", repo_url=None, open_issues=-1, last_commit=None, days_since_commit=None,
        weekly_downloads=0, maintainers=[],
    )

    result = runner.invoke(main.app, ["check", "left-pad"])

    assert result.exit_code == 0, result.output
    assert "Dead" in result.output
    assert "GitHub Stats" not in result.output
    assert "Open Issues: N/A" in result.output


def test_check_json_output(fake_check):
    result = runner.invoke(main.app, ["check", "left-pad", "--json"])

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["status"] == "alive"
    assert data["weeklyDownloads"] == 2_300_000
    assert data["repoUrl"] == "https://github.com/stevemao/left-pad"


@pytest.mark.parametrize("error, message", [
    (NotFoundError("no-such-package"), 'Package "no-such-package" not found on npm'),
    (UpstreamError(), "Failed to check package. Please try again."),
])
def test_check_errors_exit_nonzero(fake_check, error, message):
    fake_check["error"] = error

    result = runner.invoke(main.app, ["check", "no-such-package"])

    assert result.exit_code == 1
    assert message in result.output


def test_version():
    result = runner.invoke(main.app, ["version"])

    assert result.exit_code == 0
    assert __version__ in result.output


def test_unexpected_error_hides_details(fake_check, caplog):
    fake_check["error"] = RuntimeError("secret internal detail")

    with caplog.at_level(logging.ERROR, logger="npm_health.main"):
        result = runner.invoke(main.app, ["check", "left-pad"])

    assert result.exit_code == 1
    assert "Failed to check package. Please try again." in result.output
    assert "secret internal detail" not in result.output
    assert any(record.exc_info for record in caplog.records)


@pytest.fixture
def restore_root_level():
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    logging.getLogger("httpx").setLevel(logging.NOTSET)


def test_verbose_flag_enables_debug_logging(fake_check, restore_root_level):
    result = runner.invoke(main.app, ["-v", "check", "left-pad"])

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING


def test_serve_runs_uvicorn(monkeypatch, restore_root_level):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("NPM_HEALTH_LOG_LEVEL", raising=False)

    result = runner.invoke(main.app, ["serve", "--host", "0.0.0.0", "--port", "9001"])

    assert result.exit_code == 0, result.output
    assert calls == [("npm_health.api:app", {"host": "0.0.0.0", "port": 9001, "log_level": "info"})]


def test_serve_defaults_from_environment(monkeypatch, restore_root_level):
    calls = []
    monkeypatch.setattr("uvicorn.run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("NPM_HEALTH_HOST", "10.0.0.5")
    monkeypatch.setenv("NPM_HEALTH_PORT", "8123")
    monkeypatch.delenv("NPM_HEALTH_LOG_LEVEL", raising=False)

    result = runner.invoke(main.app, ["serve"])

    assert result.exit_code == 0, result.output
    assert calls[0][1]["host"] == "10.0.0.5"
    assert calls[0][1]["port"] == 8123
