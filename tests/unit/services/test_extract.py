"""Tests for the extract service."""

import json
from unittest.mock import patch

import pytest

from sentiment_crawler.core.storage import OutputSink
from sentiment_crawler.core.writers import TurtleWriter
from sentiment_crawler.foundation.config import SentimentCrawlerConfig
from sentiment_crawler.foundation.errors import ExtractionError, StorageError, ValidationError, get_error_handler
from sentiment_crawler.models import OutputFormat, RunConfiguration
from sentiment_crawler.services.extract import ExtractService


@pytest.fixture
def service(test_config, metrics_collector):
    with ExtractService(config=test_config, metrics=metrics_collector) as service:
        yield service


@pytest.mark.unit
class TestExtractService:
    """Test running one extraction end to end within the service."""

    def test_initialization(self, service, test_config, metrics_collector):
        assert service.config is test_config
        assert service.metrics is metrics_collector
        assert service.engine.http_user_agent == "Test-Agent/1.0"
        assert service.sink.filename == "sentiment.txt"

    def test_run_writes_turtle(self, service, haspart_html, temp_dir):
        result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir))

        output = temp_dir / "sentiment.txt"
        assert result.output_path == output
        assert result.output_format == OutputFormat.TURTLE
        assert result.writer == "TurtleWriter"
        assert result.triple_count == 1
        assert result.serialization_failed is False
        assert result.bytes_written == len(output.read_bytes())
        assert "schema:hasPart" in output.read_text(encoding="utf-8")

    def test_run_json(self, service, haspart_html, temp_dir):
        result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir, output_format="json"))

        assert result.writer == "JSONWriter"
        data = json.loads((temp_dir / "sentiment.txt").read_text(encoding="utf-8"))
        assert len(data["quads"]) == 1

    def test_unknown_format_falls_back_to_turtle(self, service, haspart_html, temp_dir):
        result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir, output_format="yaml"))

        assert result.output_format == OutputFormat.TURTLE
        assert result.writer == "TurtleWriter"

    def test_configured_default_format(self, haspart_html, temp_dir, metrics_collector):
        config = SentimentCrawlerConfig.model_validate({"output": {"default_format": "ntriples"}})
        with ExtractService(config=config, metrics=metrics_collector) as service:
            result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir))

        assert result.writer == "NTriplesWriter"

    def test_result_reports_uri_and_document(self, service, haspart_html, temp_dir):
        result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir))

        assert result.uri == str(haspart_html)
        assert result.document_uri == haspart_html.resolve().as_uri()
        assert result.triples_by_syntax["json-ld"] == 1

    def test_failed_extraction_writes_nothing(self, service, plain_text, temp_dir, metrics_collector):
        with pytest.raises(ExtractionError):
            service.run(RunConfiguration(uri=str(plain_text), output_dir=temp_dir))

        assert not (temp_dir / "sentiment.txt").exists()
        assert metrics_collector.get_counter("runs.failed") == 1
        assert metrics_collector.get_counter("runs.completed") == 0

    def test_failed_extraction_is_recorded(self, service, temp_dir):
        with pytest.raises(ValidationError):
            service.run(RunConfiguration(uri=None, output_dir=temp_dir))

        handler = get_error_handler()
        assert handler.error_count == 1
        assert handler.recent_errors[0]["context"]["operation"] == "extract"

    def test_existing_file_untouched_on_failure(self, service, plain_text, temp_dir):
        output = temp_dir / "sentiment.txt"
        output.write_text("previous run")

        with pytest.raises(ExtractionError):
            service.run(RunConfiguration(uri=str(plain_text), output_dir=temp_dir))

        assert output.read_text() == "previous run"

    def test_missing_output_directory(self, service, haspart_html, temp_dir, metrics_collector):
        with pytest.raises(StorageError):
            service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir / "missing"))
        assert metrics_collector.get_counter("runs.failed") == 1

    def test_custom_sink(self, test_config, haspart_html, temp_dir, metrics_collector):
        sink = OutputSink(filename="out.ttl", create_dirs=True)
        with ExtractService(config=test_config, sink=sink, metrics=metrics_collector) as service:
            result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir / "new"))

        assert result.output_path == temp_dir / "new" / "out.ttl"
        assert result.output_path.exists()

    def test_serialization_failure_still_writes(self, service, haspart_html, temp_dir):
        with patch.object(TurtleWriter, "serialize", side_effect=ValueError("cannot serialize")):
            result = service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir))

        assert result.serialization_failed is True
        assert result.bytes_written == 0
        assert (temp_dir / "sentiment.txt").exists()

    def test_metrics(self, service, haspart_html, temp_dir, metrics_collector):
        service.run(RunConfiguration(uri=str(haspart_html), output_dir=temp_dir))

        assert metrics_collector.get_counter("runs.completed") == 1
        assert metrics_collector.get_timing("sink.write") is not None
