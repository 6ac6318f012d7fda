"""
Tests for logging setup.
"""

import io
import json
import logging

from helm_s3repo.config import LoggingConfig
from helm_s3repo.logging import (
    ColoredFormatter, ConsoleHandler, LoggerConfig, LoggingManager, StructuredFormatter
)


def make_record(message="Chart uploaded", level=logging.INFO, **extra):
    record = logging.LogRecord("helm_s3repo.test", level, __file__, 10, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLoggerConfig:

    def test_defaults_follow_app_config(self):
        config = LoggerConfig.from_app_config(LoggingConfig(file="/tmp/s3repo.log", structured=True))

        assert config.level == "ERROR"
        assert config.file_path == "/tmp/s3repo.log"
        assert config.enable_structured is True

    def test_single_verbose_lowers_to_info(self):
        assert LoggerConfig.from_app_config(LoggingConfig(), verbose=1).level == "INFO"

    def test_single_verbose_keeps_lower_configured_level(self):
        config = LoggerConfig.from_app_config(LoggingConfig(level="DEBUG"), verbose=1)

        assert config.level == "DEBUG"

    def test_double_verbose_is_debug(self):
        assert LoggerConfig.from_app_config(LoggingConfig(), verbose=2).level == "DEBUG"


class TestLoggingManager:

    def test_console_and_file_handlers(self, tmp_path):
        manager = LoggingManager()
        log_file = tmp_path / "logs" / "s3repo.log"

        try:
            manager.setup_logging(LoggerConfig(level="INFO", file_path=str(log_file)))
            logging.getLogger("helm_s3repo.test").info("Index updated")

            assert logging.getLogger().level == logging.INFO
            assert logging.getLogger("botocore").level == logging.WARNING
        finally:
            manager.close_handlers()

        assert "Index updated" in log_file.read_text()

    def test_second_setup_needs_force(self, tmp_path):
        manager = LoggingManager()

        try:
            manager.setup_logging(LoggerConfig(level="ERROR"))
            manager.setup_logging(LoggerConfig(level="DEBUG"))
            assert manager.config.level == "ERROR"

            manager.setup_logging(LoggerConfig(level="DEBUG"), force=True)
            assert manager.config.level == "DEBUG"
            assert logging.getLogger().level == logging.DEBUG
        finally:
            manager.close_handlers()

    def test_unknown_level_falls_back_to_error(self):
        assert LoggingManager()._get_log_level("chatty") == logging.ERROR


class TestFormatters:

    def test_structured_formatter(self):
        output = StructuredFormatter().format(make_record(bucket="my-bucket"))

        entry = json.loads(output)
        assert entry["message"] == "Chart uploaded"
        assert entry["level"] == "INFO"
        assert entry["extra"] == {"bucket": "my-bucket"}

    def test_colored_formatter(self):
        output = ColoredFormatter("%(levelname)s %(message)s").format(make_record())

        assert output.startswith(ColoredFormatter.COLORS["INFO"])
        assert output.endswith(ColoredFormatter.COLORS["RESET"])
        assert "Chart uploaded" in output

    def test_console_handler_stream(self):
        stream = io.StringIO()
        handler = ConsoleHandler(stream)

        assert handler.stream is stream
        assert handler.stream_is_tty is False
