"""Pytest configuration and shared fixtures."""

import logging
import logging.handlers
import os
import tempfile
from pathlib import Path

import pytest

from sentiment_crawler.foundation.config import ENV_PREFIX, ConfigManager, SentimentCrawlerConfig, reset_config_manager
from sentiment_crawler.foundation.errors import ErrorHandler
from sentiment_crawler.foundation.logging import ColorFormatter
from sentiment_crawler.foundation.metrics import MetricsCollector, get_metrics_collector

FIXTURES_DIR = Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Keep every test away from the user's config, env and global state."""
    for key in list(os.environ):
        if key.startswith(ENV_PREFIX):
            monkeypatch.delenv(key)
    monkeypatch.setenv(f"{ENV_PREFIX}CONFIG_PATH", str(tmp_path / "no-such-config.yaml"))

    reset_config_manager()
    get_metrics_collector().reset()
    monkeypatch.setattr("sentiment_crawler.foundation.errors._error_handler", None)

    yield

    reset_config_manager()
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if isinstance(handler.formatter, ColorFormatter) or isinstance(handler, logging.handlers.RotatingFileHandler):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def fixtures_dir():
    return FIXTURES_DIR


@pytest.fixture
def haspart_html():
    """HTML page whose only structured data is one schema:hasPart statement."""
    return FIXTURES_DIR / "haspart.html"


@pytest.fixture
def microdata_html():
    return FIXTURES_DIR / "microdata.html"


@pytest.fixture
def meta_html():
    """Open Graph and Dublin Core <meta> tags."""
    return FIXTURES_DIR / "meta.html"


@pytest.fixture
def rdfa_html():
    return FIXTURES_DIR / "rdfa.html"


@pytest.fixture
def microformats_html():
    return FIXTURES_DIR / "microformats.html"


@pytest.fixture
def vcard_html():
    """An hCard written with the original class names."""
    return FIXTURES_DIR / "vcard.html"


@pytest.fixture
def book_turtle():
    """Turtle document with a single triple."""
    return FIXTURES_DIR / "book.ttl"


@pytest.fixture
def plain_text():
    return FIXTURES_DIR / "notes.txt"


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner for testing."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def test_config():
    """Configuration used by service and engine tests."""
    return SentimentCrawlerConfig.model_validate({
        "http": {
            "user_agent": "Test-Agent/1.0",
            "timeout": 5,
        },
        "logging": {
            "level": "DEBUG",
        },
    })


@pytest.fixture
def temp_config_file(temp_dir):
    """Create a temporary config file for testing."""
    config_file = temp_dir / "test_config.yaml"
    config_file.write_text(
        "version: \"1.0\"\n"
        "http:\n"
        "  timeout: 10\n"
        "  user_agent: File-Agent/2.0\n"
        "output:\n"
        "  default_format: ntriples\n"
    )
    return config_file


@pytest.fixture
def config_manager(temp_dir):
    """Create a configuration manager that ignores the user's files."""
    return ConfigManager(config_path=temp_dir / "config.yaml")


@pytest.fixture
def error_handler():
    """Create an error handler for testing."""
    return ErrorHandler()


@pytest.fixture
def metrics_collector():
    """Create a metrics collector for testing."""
    return MetricsCollector()
