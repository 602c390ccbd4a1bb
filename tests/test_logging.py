"""Unit tests for sme.logging module."""

import logging

import pytest

from sme.exceptions import ConfigurationException
from sme.logging import (
    SME_ROOT_LOGGER,
    configure_logging,
    get_logger,
    resolve_level,
)


class TestGetLogger:
    """Tests for component loggers."""

    def test_root(self):
        assert get_logger().name == SME_ROOT_LOGGER

    def test_component(self):
        assert get_logger("schema").name == f"{SME_ROOT_LOGGER}.schema"

    def test_component_loggers_propagate(self, caplog):
        with caplog.at_level(logging.INFO, logger="sme.schema"):
            get_logger("schema").info("loaded %d types", 2)
        assert "loaded 2 types" in caplog.text


class TestResolveLevel:
    """Tests for level name resolution."""

    def test_numeric_level_passes_through(self):
        assert resolve_level(logging.INFO) == logging.INFO

    @pytest.mark.parametrize("name,expected", [
        ("DEBUG", logging.DEBUG),
        ("warning", logging.WARNING),
        (" error ", logging.ERROR),
    ])
    def test_level_names(self, name, expected):
        assert resolve_level(name) == expected

    def test_unknown_name(self):
        with pytest.raises(ConfigurationException) as exc_info:
            resolve_level("chatty")
        assert "chatty" in str(exc_info.value)


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_sets_level_on_logger_and_handler(self):
        handler = logging.NullHandler()
        logger = configure_logging(logging.INFO, handler=handler)
        assert logger.name == SME_ROOT_LOGGER
        assert logger.level == logging.INFO
        assert handler in logger.handlers
        assert handler.level == logging.INFO

    def test_accepts_level_name(self):
        logger = configure_logging("debug", handler=logging.NullHandler())
        assert logger.level == logging.DEBUG

    def test_default_handler_is_stream_handler(self):
        logger = configure_logging()
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert logger.level == logging.WARNING

    def test_second_call_keeps_first_handler(self):
        first = logging.NullHandler()
        configure_logging(handler=first)
        logger = configure_logging(logging.ERROR, handler=logging.NullHandler())
        assert logger.handlers == [first]
        assert first.level == logging.ERROR

    def test_format_applied(self):
        handler = logging.NullHandler()
        configure_logging(handler=handler, format_string="%(message)s")
        assert handler.formatter._fmt == "%(message)s"

    def test_unknown_level_rejected_before_changes(self):
        with pytest.raises(ConfigurationException):
            configure_logging("loud")
        assert get_logger().handlers == []
