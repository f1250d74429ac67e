"""Error handling and exception management for the sentiment crawler."""

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .logging import get_logger


class ErrorCategory(str, Enum):
    """Categories of errors that can occur during a run."""
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    NETWORK = "network"
    EXTRACTION = "extraction"
    SERIALIZATION = "serialization"
    STORAGE = "storage"
    SYSTEM = "system"


class ErrorSeverity(str, Enum):
    """Severity levels for errors."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class ErrorContext:
    """Context information for error handling."""
    operation: str
    url: Optional[str] = None
    output_format: Optional[str] = None
    output_path: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "operation": self.operation,
            "url": self.url,
            "output_format": self.output_format,
            "output_path": self.output_path,
            "metadata": self.metadata,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None
        }


@dataclass
class ErrorInfo:
    """Detailed error information."""
    error_type: str
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    context: Optional[ErrorContext] = None
    traceback: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CrawlerError(Exception):
    """Base exception class for all sentiment crawler errors."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        context: Optional[ErrorContext] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.error_code = error_code
        self.details = details
        self.context = context
        self.timestamp = datetime.now(timezone.utc)

    def _add_detail(self, key: str, value: Any) -> None:
        if value is None:
            return
        if self.details is None:
            self.details = {}
        self.details[key] = value

    def to_error_info(self) -> ErrorInfo:
        """Convert exception to ErrorInfo."""
        return ErrorInfo(
            error_type=self.__class__.__name__,
            message=self.message,
            category=self.category,
            severity=self.severity,
            code=self.error_code,
            details=self.details or {},
            context=self.context,
            traceback=traceback.format_exc(),
            timestamp=self.timestamp
        )


class ValidationError(CrawlerError):
    """Error raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            error_code="VALIDATION_ERROR",
            **kwargs
        )
        self.field = field
        self._add_detail("field", field)


class ConfigurationError(CrawlerError):
    """Error raised when configuration is invalid."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            error_code="CONFIGURATION_ERROR",
            **kwargs
        )
        self.config_key = config_key
        self._add_detail("config_key", config_key)


class NetworkError(CrawlerError):
    """Error raised when fetching a document fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, url: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.NETWORK,
            severity=ErrorSeverity.MEDIUM,
            error_code="NETWORK_ERROR",
            **kwargs
        )
        self.status_code = status_code
        self.url = url
        self._add_detail("status_code", status_code)
        self._add_detail("url", url)


class ExtractionError(CrawlerError):
    """Error raised when structured data cannot be extracted."""

    def __init__(self, message: str, syntax: Optional[str] = None, content_type: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.EXTRACTION,
            severity=ErrorSeverity.MEDIUM,
            error_code="EXTRACTION_ERROR",
            **kwargs
        )
        self.syntax = syntax
        self.content_type = content_type
        self._add_detail("syntax", syntax)
        self._add_detail("content_type", content_type)


class SerializationError(CrawlerError):
    """Error raised when a writer cannot serialize its triples."""

    def __init__(self, message: str, output_format: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.SERIALIZATION,
            severity=ErrorSeverity.MEDIUM,
            error_code="SERIALIZATION_ERROR",
            **kwargs
        )
        self.output_format = output_format
        self._add_detail("output_format", output_format)


class StorageError(CrawlerError):
    """Error raised when the output file cannot be written."""

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            error_code="STORAGE_ERROR",
            **kwargs
        )
        self.path = path
        self._add_detail("path", path)


class ErrorHandler:
    """Centralized error logging and bookkeeping."""

    def __init__(self, max_recent_errors: int = 100):
        self.error_count: int = 0
        self.recent_errors: List[Dict[str, Any]] = []
        self.max_recent_errors = max_recent_errors

    def handle_error(
        self,
        error: Union[Exception, ErrorInfo],
        context: Optional[ErrorContext] = None
    ) -> ErrorInfo:
        """Handle and categorize an error.

        Args:
            error: Exception or ErrorInfo to handle
            context: Optional error context

        Returns:
            ErrorInfo with details
        """
        if isinstance(error, ErrorInfo):
            error_info = error
        elif isinstance(error, CrawlerError):
            error_info = error.to_error_info()
            if context and not error_info.context:
                error_info.context = context
        else:
            error_info = self._categorize_generic_error(error, context)

        self._track_error(error_info)
        self._log_error(error_info)

        return error_info

    def _categorize_generic_error(
        self,
        error: Exception,
        context: Optional[ErrorContext] = None
    ) -> ErrorInfo:
        """Categorize an exception that is not a CrawlerError."""
        category = ErrorCategory.SYSTEM
        severity = ErrorSeverity.MEDIUM

        if isinstance(error, (ConnectionError, TimeoutError)):
            category = ErrorCategory.NETWORK
        elif isinstance(error, PermissionError):
            category = ErrorCategory.STORAGE
            severity = ErrorSeverity.HIGH
        elif isinstance(error, OSError):
            category = ErrorCategory.STORAGE
        elif isinstance(error, ValueError):
            category = ErrorCategory.VALIDATION
            severity = ErrorSeverity.LOW
        elif isinstance(error, MemoryError):
            severity = ErrorSeverity.CRITICAL

        return ErrorInfo(
            error_type=error.__class__.__name__,
            message=str(error),
            category=category,
            severity=severity,
            context=context,
            traceback=traceback.format_exc()
        )

    def _track_error(self, error_info: ErrorInfo) -> None:
        """Track error occurrences."""
        self.error_count += 1

        # Newest first
        self.recent_errors.insert(0, {
            "error_type": error_info.error_type,
            "message": error_info.message,
            "category": error_info.category.value,
            "severity": error_info.severity.value,
            "context": error_info.context.to_dict() if error_info.context else None,
            "timestamp": error_info.timestamp.isoformat(),
        })
        del self.recent_errors[self.max_recent_errors:]

    def _log_error(self, error_info: ErrorInfo) -> None:
        """Log error based on severity."""
        logger = get_logger(__name__)
        log_message = f"{error_info.error_type}: {error_info.message}"

        if error_info.context:
            context_info = f" (operation: {error_info.context.operation}"
            if error_info.context.url:
                context_info += f", url: {error_info.context.url}"
            if error_info.context.output_path:
                context_info += f", output: {error_info.context.output_path}"
            context_info += ")"
            log_message += context_info

        if error_info.severity == ErrorSeverity.CRITICAL:
            logger.critical(log_message)
        elif error_info.severity in (ErrorSeverity.HIGH, ErrorSeverity.MEDIUM):
            logger.error(log_message)
        else:
            logger.info(log_message)

        if error_info.traceback and error_info.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            logger.debug(f"Traceback for {error_info.error_type}:\n{error_info.traceback}")


# Global error handler instance
_error_handler: Optional[ErrorHandler] = None


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    global _error_handler
    if _error_handler is None:
        _error_handler = ErrorHandler()
    return _error_handler


def handle_error(
    error: Union[Exception, ErrorInfo, str],
    context: Optional[ErrorContext] = None
) -> ErrorInfo:
    """Convenience function to handle an error."""
    if isinstance(error, str):
        error = CrawlerError(error)

    if context is None:
        context = ErrorContext(operation="unknown")

    return get_error_handler().handle_error(error, context)
