"""
Logging setup for ape-commands.

Wraps the standard library logging module with console and JSON file
formatters, a filter that redacts credentials that end up in prompts or
command arguments, and helpers for timing handler and LLM calls.
"""

import os
import sys
import json
import time
import logging
import logging.handlers
import re
from pathlib import Path
from typing import Dict, Optional
from contextlib import contextmanager
from datetime import datetime


class Colors:
    """ANSI color codes for console output."""
    RESET = '\033[0m'
    BOLD = '\033[1m'
    BRIGHT_BLACK = '\033[90m'
    BRIGHT_RED = '\033[91m'
    BRIGHT_YELLOW = '\033[93m'
    BRIGHT_BLUE = '\033[94m'
    BRIGHT_MAGENTA = '\033[95m'


class SensitiveDataFilter(logging.Filter):
    """Redact tokens and passwords from log records.

    Raw command input is logged at debug level, and users do paste things
    like ``--token=...`` into chat.
    """

    def __init__(self):
        super().__init__()
        self.patterns = [
            (re.compile(r'(api[_-]?key|token|secret|password|pwd)(["\s]*[:=]["\s]*)([^\s"]{8,})', re.IGNORECASE),
             r'\1\2***REDACTED***'),
            (re.compile(r'(bearer\s+)([a-zA-Z0-9._-]{20,})', re.IGNORECASE), r'\1***REDACTED***'),
            (re.compile(r'(sk-[a-zA-Z0-9]{32,})'), r'sk-***REDACTED***'),
            (re.compile(r'(://[^:/\s]+:)([^@\s]+)(@)'), r'\1***REDACTED***\3'),
        ]

    def _redact(self, text: str) -> str:
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record):
        if isinstance(record.msg, str):
            record.msg = self._redact(record.msg)

        if record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._redact(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )

        return True


class ColoredConsoleFormatter(logging.Formatter):
    """Formatter that colors console lines by level."""

    LEVEL_COLORS = {
        'DEBUG': Colors.BRIGHT_BLACK,
        'INFO': Colors.BRIGHT_BLUE,
        'WARNING': Colors.BRIGHT_YELLOW,
        'ERROR': Colors.BRIGHT_RED,
        'CRITICAL': Colors.BRIGHT_MAGENTA + Colors.BOLD,
    }

    def __init__(self, use_colors: bool = True, stream=None):
        self.stream = stream or sys.stderr
        self.use_colors = use_colors and self._supports_color()
        fmt = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
        super().__init__(fmt, datefmt='%Y-%m-%d %H:%M:%S')

    def _supports_color(self) -> bool:
        if os.getenv('NO_COLOR'):
            return False
        if os.getenv('FORCE_COLOR'):
            return True
        if not hasattr(self.stream, 'isatty') or not self.stream.isatty():
            return False
        term = os.getenv('TERM', '').lower()
        return 'color' in term or term in ('xterm', 'screen', 'linux')

    def format(self, record):
        formatted = super().format(record)
        if not self.use_colors:
            return formatted

        color = self.LEVEL_COLORS.get(record.levelname, '')
        if color:
            formatted = f"{color}{formatted}{Colors.RESET}"
        return formatted


class JSONFileFormatter(logging.Formatter):
    """Formatter that writes one JSON object per line."""

    RESERVED = {
        'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
        'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
        'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
        'processName', 'process', 'message', 'taskName',
    }

    def format(self, record):
        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'module': record.name,
            'message': record.getMessage(),
            'extra': {
                'filename': record.filename,
                'lineno': record.lineno,
                'funcName': record.funcName,
            },
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in self.RESERVED:
                log_entry['extra'][key] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class PerformanceTimer:
    """Context manager that logs how long an operation took."""

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.DEBUG):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.start_time: Optional[float] = None
        self.end_time: Optional[float] = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"Starting {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.end_time = time.perf_counter()
        duration = self.end_time - self.start_time

        if exc_type is None:
            self.logger.log(self.level, f"Completed {self.operation} in {duration:.3f}s")
        else:
            self.logger.log(self.level, f"Failed {self.operation} after {duration:.3f}s")

    @property
    def duration(self) -> Optional[float]:
        """Elapsed seconds once the block has finished."""
        if self.start_time is not None and self.end_time is not None:
            return self.end_time - self.start_time
        return None


class LoggingManager:
    """Owns the root logger configuration for the process."""

    def __init__(self):
        self._initialized = False
        self._loggers: Dict[str, logging.Logger] = {}
        self._log_file: Optional[Path] = None

    def setup_logging(self, config, verbose: bool = False, force_reinit: bool = False):
        """Configure handlers from an ``ApeCommandsConfig``.

        Args:
            config: Loaded configuration; only the ``logging`` section is read
            verbose: Force DEBUG level regardless of configuration
            force_reinit: Rebuild handlers even if already configured
        """
        if self._initialized and not force_reinit:
            return

        settings = config.logging

        if verbose or settings.verbose:
            log_level = logging.DEBUG
        else:
            log_level = getattr(logging, settings.level.value, logging.INFO)

        root_logger = logging.getLogger()
        root_logger.setLevel(log_level)

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        self._setup_console_handler(root_logger, log_level, settings.use_colors)

        if settings.log_file:
            self._setup_file_handler(root_logger, settings, log_level)

        for module_name, level_name in settings.module_levels.items():
            logging.getLogger(module_name).setLevel(
                getattr(logging, level_name.upper(), logging.INFO)
            )

        sensitive_filter = SensitiveDataFilter()
        for handler in root_logger.handlers:
            handler.addFilter(sensitive_filter)

        self._initialized = True

        logger = self.get_logger('ape_commands.logging')
        logger.debug(f"Logging initialized at {logging.getLevelName(log_level)}")
        if self._log_file:
            logger.debug(f"Log file: {self._log_file}")

    def _setup_console_handler(self, root_logger: logging.Logger, log_level: int, use_colors: bool):
        # stderr keeps stdout clean for --parse/--execute output
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(ColoredConsoleFormatter(use_colors=use_colors, stream=sys.stderr))
        root_logger.addHandler(console_handler)

    def _setup_file_handler(self, root_logger: logging.Logger, settings, log_level: int):
        try:
            log_file = Path(settings.log_file)
            log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=settings.max_log_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding='utf-8'
            )
            file_handler.setLevel(log_level)
            file_handler.setFormatter(JSONFileFormatter())
            root_logger.addHandler(file_handler)
            self._log_file = log_file

        except OSError as e:
            print(f"Warning: Could not setup file logging: {e}", file=sys.stderr)

    def get_logger(self, name: str) -> logging.Logger:
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]

    def create_performance_timer(self, operation: str, level: int = logging.DEBUG) -> PerformanceTimer:
        return PerformanceTimer(self.get_logger('ape_commands.performance'), operation, level)

    def is_initialized(self) -> bool:
        return self._initialized


_logging_manager = LoggingManager()


def setup_logging(config, verbose: bool = False, force_reinit: bool = False):
    """Configure process-wide logging from configuration."""
    _logging_manager.setup_logging(config, verbose, force_reinit)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for the given name (typically ``__name__``)."""
    return _logging_manager.get_logger(name)


@contextmanager
def log_performance(operation: str, level: int = logging.DEBUG):
    """Time the enclosed block and log the duration.

    Yields:
        PerformanceTimer instance
    """
    timer = _logging_manager.create_performance_timer(operation, level)
    with timer:
        yield timer


def is_logging_initialized() -> bool:
    return _logging_manager.is_initialized()
