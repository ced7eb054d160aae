"""Tests for logging setup."""

import logging

import pytest

from aws_autoscaling.config.models import LoggingConfig
from aws_autoscaling.logging.setup import (
    ColoredFormatter,
    StructuredFormatter,
    log_with_context,
    setup_logging,
)


def make_record(message="Signed request", **extra):
    record = logging.LogRecord("aws_autoscaling.api.client", logging.INFO, "client.py", 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Test log formatters."""

    def test_structured_formatter(self):
        """Test records are rendered as key=value pairs with extras appended."""
        line = StructuredFormatter().format(make_record(action="DescribeAdjustmentTypes", port=443))

        assert 'level=INFO' in line
        assert 'logger=aws_autoscaling.api.client' in line
        assert 'message="Signed request"' in line
        assert 'action=DescribeAdjustmentTypes' in line
        assert 'port=443' in line

    def test_colored_formatter_restores_level(self):
        """Test the colored level name does not leak to other handlers."""
        record = make_record()
        line = ColoredFormatter('%(levelname)s %(message)s').format(record)

        assert '\033[32mINFO\033[0m' in line
        assert record.levelname == 'INFO'


class TestSetupLogging:
    """Test setup_logging()."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_console_only(self):
        """Test a console handler is installed at the configured level."""
        setup_logging(LoggingConfig(log_level="DEBUG"))

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger('urllib3').level == logging.WARNING

    def test_file_logging(self, tmp_path):
        """Test file logging writes structured lines."""
        log_file = tmp_path / "logs" / "autoscaling.log"
        setup_logging(LoggingConfig(log_level="INFO", log_file=str(log_file)))

        log_with_context(logging.getLogger("aws_autoscaling.test"), logging.INFO, "hello", action="Ping")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        assert 'message=hello' in content
        assert 'action=Ping' in content


if __name__ == '__main__':
    pytest.main([__file__])
