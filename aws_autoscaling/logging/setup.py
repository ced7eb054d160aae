"""Logging setup for applications using the AutoScaling binding.

The library itself only creates module loggers; ``setup_logging`` is for
applications (and ``connect_from_file``) that want the binding's console
and file output configured for them.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Any, Optional

from ..config.models import LoggingConfig


CONSOLE_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Attributes every LogRecord has; anything else came in through ``extra=``
RESERVED_RECORD_FIELDS = frozenset(vars(logging.LogRecord('', 0, '', 0, '', None, None))) | {
    'message', 'asctime', 'taskName',
}

# Loggers of the HTTP stack that are too chatty at DEBUG
NOISY_LOGGERS = ('urllib3', 'requests')


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        level_name = record.levelname
        color = self.COLORS.get(level_name)
        if color is None:
            return super().format(record)

        record.levelname = f"{color}{level_name}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Other handlers see the same record
            record.levelname = level_name


def _quote(value: Any) -> str:
    text = str(value)
    if ' ' in text or '=' in text:
        return f'"{text}"'
    return text


class StructuredFormatter(logging.Formatter):
    """key=value formatter for log files.

    Extra fields passed through ``extra=`` (for example the ``action`` and
    ``endpoint`` attached to every signed request) are appended after the
    standard fields.
    """

    def format(self, record: logging.LogRecord) -> str:
        fields = [
            ('timestamp', self.formatTime(record, self.datefmt)),
            ('level', record.levelname),
            ('logger', record.name),
            ('message', record.getMessage()),
            ('module', record.module),
            ('function', record.funcName),
            ('line', record.lineno),
        ]
        if record.exc_info:
            fields.append(('exception', self.formatException(record.exc_info)))

        fields.extend(
            (key, value) for key, value in vars(record).items() if key not in RESERVED_RECORD_FIELDS
        )
        return ' '.join(f'{key}={_quote(value)}' for key, value in fields)


def _is_running_in_container() -> bool:
    return (
        os.path.exists('/.dockerenv')
        or bool(os.getenv('KUBERNETES_SERVICE_HOST'))
        or bool(os.getenv('CONTAINER'))
    )


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    formatter_class = logging.Formatter if _is_running_in_container() else ColoredFormatter
    handler.setFormatter(formatter_class(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(log_file: str, level: int) -> Optional[logging.Handler]:
    """Rotating key=value file handler, or None if the file cannot be opened."""
    try:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=LOG_FILE_BACKUPS,
            encoding='utf-8',
        )
    except OSError as e:
        logging.warning(f"Failed to set up file logging at {log_file}: {e}")
        return None

    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter(datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: LoggingConfig, service_name: str = "aws-autoscaling") -> None:
    """Replace the root logger's handlers according to ``config``.

    Args:
        config: Logging configuration.
        service_name: Name reported in the startup message.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(_console_handler(level))

    file_handler = _file_handler(config.log_file, level) if config.log_file else None
    if file_handler is not None:
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.info(f"{service_name} logging initialized at {config.log_level}")
    if file_handler is not None:
        logging.info(f"File logging enabled: {config.log_file}")


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with ``context`` attached as record attributes."""
    logger.log(level, message, extra=context)
