"""CLI tests"""

import os

import pytest

from dbinspector import cli
from dbinspector.errors import ConfigurationError


@pytest.fixture
def served(monkeypatch):
    """Capture uvicorn.run instead of starting a server"""
    calls = []
    import uvicorn
    monkeypatch.setattr(uvicorn, "run", lambda *args, **kwargs: calls.append((args, kwargs)))
    # main() exports these for the server process; setenv restores them afterwards
    monkeypatch.setenv("DATABASE_URLS", "")
    monkeypatch.setenv("INSPECTOR_LOG_LEVEL", "INFO")
    return calls


def test_serves_valid_urls(served, monkeypatch):
    exit_code = cli.main([
        "mysql://root:pw@db/shop",
        "analytics=postgresql://app:pw@pg/warehouse",
        "--port", "9001",
    ])
    assert exit_code == 0
    args, kwargs = served[0]
    assert args == ("dbinspector.main:create_app",)
    assert kwargs["factory"] is True
    assert kwargs["port"] == 9001
    assert os.environ["DATABASE_URLS"] == "mysql://root:pw@db/shop,analytics=postgresql://app:pw@pg/warehouse"


def test_invalid_urls_are_dropped(served):
    assert cli.valid_url_entries(["ftp://x:y@h/db", "mysql://root:pw@db/shop"]) == ["mysql://root:pw@db/shop"]


def test_exits_non_zero_without_valid_urls(served):
    assert cli.main(["mysql://nobody@db/shop"]) == 1
    assert served == []


def test_exits_non_zero_without_urls(served):
    assert cli.main([]) == 1


def test_log_level_is_normalized(served):
    args = cli.parse_args(["--log-level", "debug"])
    assert args.log_level == "DEBUG"


def test_missing_urls_are_a_configuration_error(served):
    with pytest.raises(ConfigurationError, match="No database URLs") as exc_info:
        cli.resolve_url_entries([])
    assert exc_info.value.config_key == "DATABASE_URLS"
    assert exc_info.value.code == "CONFIGURATION_ERROR"


def test_all_invalid_urls_are_a_configuration_error(served):
    with pytest.raises(ConfigurationError, match="None of the 2 database URL"):
        cli.resolve_url_entries(["ftp://x:y@h/db", "mysql://nobody@db/shop"])


def test_urls_fall_back_to_settings(served, monkeypatch):
    from dbinspector.config.settings import clear_settings_cache

    monkeypatch.setenv("DATABASE_URLS", "shop=mysql://root:pw@db/shop")
    clear_settings_cache()
    assert cli.resolve_url_entries([]) == ["shop=mysql://root:pw@db/shop"]
