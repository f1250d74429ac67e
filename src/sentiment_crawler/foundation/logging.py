"""Logging configuration for the sentiment crawler."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Dict, Optional


# ANSI color codes for console output
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    BLUE = '\033[34m'
    CYAN = '\033[36m'
    WHITE = '\033[37m'
    BRIGHT_RED = '\033[91m'


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Third-party loggers that are noisy at INFO level
EXTERNAL_LOGGERS = {
    "urllib3": logging.WARNING,
    "requests": logging.WARNING,
    "rdflib": logging.WARNING,
}


class ColorFormatter(logging.Formatter):
    """Formatter that adds colors to log levels."""

    LEVEL_COLORS = {
        logging.DEBUG: Colors.CYAN,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BRIGHT_RED + Colors.BOLD,
    }

    def __init__(self, fmt: Optional[str] = None, use_colors: bool = True, stream=None):
        super().__init__(fmt or LOG_FORMAT)
        stream = stream if stream is not None else sys.stderr
        self.use_colors = use_colors and hasattr(stream, 'isatty') and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if not self.use_colors:
            return super().format(record)

        # Colorize a copy so file handlers still see the plain record
        record = logging.makeLogRecord(record.__dict__)
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        record.levelname = f"{color}{record.levelname}{Colors.RESET}"
        if record.name.startswith('sentiment_crawler'):
            record.name = f"{Colors.BLUE}{record.name}{Colors.RESET}"
        return super().format(record)


class CrawlerLogger:
    """Owns the handlers installed on the root logger."""

    def __init__(self):
        self._loggers: Dict[str, logging.Logger] = {}
        self.level = logging.WARNING
        self.log_file: Optional[Path] = None

    def setup_logging(
        self,
        level: str = "WARNING",
        log_file: Optional[str] = None,
        use_colors: bool = True
    ) -> None:
        """Set up logging configuration.

        Args:
            level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            log_file: Optional log file path
            use_colors: Whether to use colors in console output
        """
        log_level = getattr(logging, str(level).upper(), logging.WARNING)
        self.level = log_level

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)
        for handler in list(root_logger.handlers):
            root_logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ColorFormatter(use_colors=use_colors, stream=sys.stderr))
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=5 * 1024 * 1024,  # 5MB
                backupCount=3,
                encoding="utf-8"
            )
            file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
            file_handler.setLevel(log_level)
            root_logger.addHandler(file_handler)
            self.log_file = log_path
        else:
            self.log_file = None

        self._configure_external_loggers(log_level)

    def _configure_external_loggers(self, level: int) -> None:
        """Keep library loggers quiet unless we are debugging."""
        for name, external_level in EXTERNAL_LOGGERS.items():
            logging.getLogger(name).setLevel(max(level, external_level))
        logging.getLogger('sentiment_crawler').setLevel(level)

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger with the specified name."""
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


# Global logger instance
_crawler_logger: Optional[CrawlerLogger] = None


def get_crawler_logger() -> CrawlerLogger:
    """Get the global CrawlerLogger instance."""
    global _crawler_logger
    if _crawler_logger is None:
        _crawler_logger = CrawlerLogger()
    return _crawler_logger


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Set up logging, falling back to the ``logging`` config section.

    Args:
        level: Override log level from config
        log_file: Override log file from config
    """
    if level is None or log_file is None:
        from .config import get_config_manager

        config_manager = get_config_manager()
        if level is None:
            level = config_manager.get_setting("logging.level", "WARNING")
        if log_file is None:
            log_file = config_manager.get_setting("logging.file")

    get_crawler_logger().setup_logging(level=level, log_file=log_file)


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured logger instance
    """
    return get_crawler_logger().get_logger(name)
