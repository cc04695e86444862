"""
Logging setup for soundrank.

Console logs go to stderr; stdout is reserved for classification
results. Log files are always written as JSON lines. Per-run context
(the audio file being classified) is attached with ``run_logger`` and
shows up under ``context`` in JSON records.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TextIO, Tuple

TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """One JSON object per record, for log files and log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class ColoredFormatter(logging.Formatter):
    """Text formatter that colors the level name on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",     # Cyan
        "INFO": "\033[32m",      # Green
        "WARNING": "\033[33m",   # Yellow
        "ERROR": "\033[31m",     # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        record.levelname = f"{self.COLORS.get(plain, '')}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record
            record.levelname = plain


def _console_formatter(log_format: str, colored: bool, stream: TextIO) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter()
    isatty = getattr(stream, "isatty", None)
    if colored and isatty is not None and isatty():
        return ColoredFormatter(TEXT_FORMAT, TEXT_DATEFMT)
    return logging.Formatter(TEXT_FORMAT, TEXT_DATEFMT)


def setup_logging(
    level: str = "WARNING",
    log_format: str = "text",
    log_file: Optional[str] = None,
    max_bytes: int = 10485760,
    backup_count: int = 5,
    console_enabled: bool = True,
    colored: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure the root logger, replacing any existing handlers.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Console format, "text" or "json"
        log_file: Optional path of a rotating JSON log file
        max_bytes: Log file size that triggers rotation
        backup_count: Rotated files to keep
        console_enabled: Whether to log to the console at all
        colored: Color level names when the console is a terminal
        stream: Console stream (stderr if None)
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers = []

    if console_enabled:
        console = stream if stream is not None else sys.stderr
        console_handler = logging.StreamHandler(console)
        console_handler.setFormatter(_console_formatter(log_format, colored, console))
        root_logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)


def configure_logging(section: Optional[Mapping[str, Any]] = None, verbose: bool = False) -> None:
    """
    Apply the ``logging`` configuration section.

    ``verbose`` forces DEBUG regardless of the configured level.
    """
    section = section or {}
    setup_logging(
        level="DEBUG" if verbose else section.get("level") or "WARNING",
        log_format=section.get("format") or "text",
        log_file=section.get("file"),
    )


def get_logger(name: str) -> logging.Logger:
    """Return the logger called *name*."""
    return logging.getLogger(name)


class RunLoggerAdapter(logging.LoggerAdapter):
    """Adds fixed per-run context to every record it emits."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> Tuple[Any, Dict[str, Any]]:
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = {**self.extra, **extra.get("context", {})}
        kwargs["extra"] = extra
        return msg, kwargs


def run_logger(logger: logging.Logger, **context: Any) -> RunLoggerAdapter:
    """
    Wrap *logger* so its records carry *context*.

    Example:
        log = run_logger(logger, audio_file="clip.wav")
        log.info("Classified")
        # JSON: {"message": "Classified", "context": {"audio_file": "clip.wav"}, ...}
    """
    return RunLoggerAdapter(logger, context)
