"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest

from scriptlex.config import ScriptLexSettings, reset_settings, set_settings

# Import CLI fixtures to make them available globally
from tests.cli_fixtures import clean_runner, cli_invoke  # noqa: F401

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Run every test with default settings and no stray config files."""
    for name in (
        "SCRIPTLEX_DEBUG",
        "SCRIPTLEX_LOG_LEVEL",
        "SCRIPTLEX_PARSER_RESOLVE_EMPHASIS",
        "SCRIPTLEX_PARSER_INCREMENTAL",
        "SCRIPTLEX_STATS_WORDS_PER_PAGE",
        "SCRIPTLEX_EXPORT_PAGE_WIDTH",
        "SCRIPTLEX_CONFIG",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)

    set_settings(ScriptLexSettings())

    yield

    reset_settings()


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding sample Fountain files."""
    return FIXTURES_DIR


@pytest.fixture
def sample_script(fixtures_dir) -> str:
    """Text of the sample screenplay."""
    return (fixtures_dir / "coffee_shop.fountain").read_text(encoding="utf-8")


@pytest.fixture
def script_file(tmp_path, sample_script) -> Path:
    """Copy of the sample screenplay in a temporary directory."""
    path = tmp_path / "coffee_shop.fountain"
    path.write_text(sample_script, encoding="utf-8")
    return path
