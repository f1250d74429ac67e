"""Service running one fetch → extract → write cycle."""

import io
import time
from typing import Optional

from ..core.engine import ExtractionEngine
from ..core.storage import OutputSink
from ..core.writers import resolve_output_format, select_writer
from ..foundation.config import SentimentCrawlerConfig, get_config
from ..foundation.errors import ErrorContext, SerializationError, handle_error
from ..foundation.logging import get_logger
from ..foundation.metrics import MetricsCollector, get_metrics_collector
from ..models.extraction import OutputFormat, RunConfiguration, RunResult


class ExtractService:
    """Runs a single extraction.

    The run moves through three states, each ending the run on failure:
    configuring (pick the writer), extracting (fetch and feed the writer),
    writing (persist the buffer). The writer is always closed once
    extraction ends; nothing is written when extraction fails.
    """

    def __init__(
        self,
        config: Optional[SentimentCrawlerConfig] = None,
        engine: Optional[ExtractionEngine] = None,
        sink: Optional[OutputSink] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.logger = get_logger(__name__)
        self.config = config or get_config()
        self.metrics = metrics or get_metrics_collector()
        self.engine = engine or ExtractionEngine.from_config(self.config, metrics=self.metrics)
        self.sink = sink or OutputSink(
            filename=self.config.output.filename,
            create_dirs=self.config.output.create_dirs
        )

    def run(self, run_config: RunConfiguration) -> RunResult:
        """Extract triples from ``run_config.uri`` into the output file.

        Raises:
            CrawlerError: any validation, network, extraction or storage failure
        """
        started = time.perf_counter()
        default_format = OutputFormat(self.config.output.default_format)
        output_format, _ = resolve_output_format(run_config.output_format, default_format)
        context = ErrorContext(
            operation="extract",
            url=run_config.uri,
            output_format=output_format.value,
            output_path=str(self.sink.resolve_path(run_config.output_dir))
        )

        # Configuring
        buffer = io.BytesIO()
        writer = select_writer(run_config.output_format, buffer, default=default_format)

        # Extracting
        serialization_failed = False
        try:
            report = self.engine.extract(run_config.uri, writer)
        except Exception as e:
            handle_error(e, context)
            self.metrics.increment_counter("runs.failed")
            raise
        finally:
            try:
                writer.close()
            except SerializationError as e:
                handle_error(e, context)
                serialization_failed = True

        # Writing
        with self.metrics.timer("sink.write"):
            try:
                path = self.sink.write(buffer.getvalue().decode("utf-8"), run_config.output_dir)
            except Exception as e:
                handle_error(e, context)
                self.metrics.increment_counter("runs.failed")
                raise

        self.metrics.increment_counter("runs.completed")
        return RunResult(
            uri=run_config.uri or report.document_uri,
            document_uri=report.document_uri,
            content_type=report.content_type,
            output_format=output_format,
            writer=writer.name,
            output_path=path,
            bytes_written=len(buffer.getvalue()),
            triple_count=report.triple_count,
            triples_by_syntax=report.triples_by_syntax,
            serialization_failed=serialization_failed,
            duration=time.perf_counter() - started
        )

    def close(self) -> None:
        self.engine.close()

    def __enter__(self) -> "ExtractService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
