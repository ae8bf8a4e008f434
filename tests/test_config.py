"""Tests for configuration models and logging setup."""

import logging
from logging.handlers import RotatingFileHandler

import pytest
from pydantic import ValidationError

from compressed_io import LoggingConfig, ReadOptions, init_logging


class TestReadOptions:
    def test_defaults(self):
        options = ReadOptions()
        assert options.desired_bundle_size_bytes == 64 * 1024 * 1024
        assert options.max_workers == 4
        assert options.max_buffered_records == 1024

    def test_frozen(self):
        options = ReadOptions()
        with pytest.raises(ValidationError):
            options.max_workers = 2

    @pytest.mark.parametrize(
        "kwargs",
        [{"max_workers": 0}, {"desired_bundle_size_bytes": 0}, {"max_buffered_records": 0}],
        ids=["no_workers", "empty_bundles", "no_read_ahead"],
    )
    def test_bounds(self, kwargs):
        with pytest.raises(ValidationError):
            ReadOptions(**kwargs)


class TestLogging:
    def test_env_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("COMPRESSED_IO_LOG_LEVEL", "debug")
        monkeypatch.setenv("COMPRESSED_IO_LOG_FILE", str(tmp_path / "io.log"))
        config = LoggingConfig()
        assert config.level == "debug"
        assert config.log_file == str(tmp_path / "io.log")

    def test_env_defaults(self, monkeypatch):
        monkeypatch.delenv("COMPRESSED_IO_LOG_LEVEL", raising=False)
        monkeypatch.delenv("COMPRESSED_IO_LOG_FILE", raising=False)
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.log_file is None

    def test_init_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "io.log"
        logger = init_logging(LoggingConfig(level="DEBUG", log_file=str(log_file)))
        try:
            assert logger.name == "compressed_io"
            assert logger.level == logging.DEBUG
            assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
            logging.getLogger("compressed_io.read").debug("hello")
            for handler in logger.handlers:
                handler.flush()
            assert "hello" in log_file.read_text()

            # re-initialising does not stack handlers
            init_logging(LoggingConfig(level="WARNING", log_file=None))
            assert len(logger.handlers) == 1
            assert logger.level == logging.WARNING
        finally:
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()
            logger.propagate = True
            logger.setLevel(logging.NOTSET)
