"""
Component loggers: JSON records with customDimensions.
"""

import json
import logging
import sys

import pytest

from util_logger import ComponentType, JSONFormatter, LoggerFactory


def _format(logger: logging.Logger, message: str, **kwargs) -> dict:
    record = logger.makeRecord(logger.name, logging.INFO, __file__, 1, message, (), None, **kwargs)
    for f in logger.filters:
        f.filter(record)
    return json.loads(JSONFormatter().format(record))


class TestLoggerFactory:

    def test_logger_name_is_layer_prefixed(self):
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "LoggerTestA")
        assert logger.name == "service.LoggerTestA"

    def test_repeated_creation_does_not_stack_handlers(self):
        LoggerFactory.create_logger(ComponentType.SERVICE, "LoggerTestB")
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "LoggerTestB")
        assert len(logger.handlers) == 1
        assert len(logger.filters) == 1

    def test_component_dimensions(self):
        logger = LoggerFactory.create_with_context(ComponentType.TRIGGER, "LoggerTestC", job_name="send-notifications")

        entry = _format(logger, "sent")

        assert entry["message"] == "sent"
        assert entry["customDimensions"] == {
            "component_type": "trigger",
            "component_name": "LoggerTestC",
            "job_name": "send-notifications",
        }

    def test_per_call_dimensions_are_merged(self):
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "LoggerTestD")

        entry = _format(logger, "moved", extra={"custom_dimensions": {"container": "bulkscan"}})

        assert entry["customDimensions"]["container"] == "bulkscan"
        assert entry["customDimensions"]["component_name"] == "LoggerTestD"

    @pytest.mark.parametrize("env,level", [
        ({"DEBUG_LOGGING": "true"}, logging.DEBUG),
        ({"LOG_LEVEL": "warning"}, logging.WARNING),
        ({"LOG_LEVEL": "nonsense"}, logging.INFO),
    ], ids=["debug-flag", "explicit-level", "unknown-level"])
    def test_level_from_environment(self, monkeypatch, env, level):
        monkeypatch.delenv("DEBUG_LOGGING", raising=False)
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        for key, value in env.items():
            monkeypatch.setenv(key, value)

        assert LoggerFactory.create_logger(ComponentType.REPOSITORY, "LoggerTestE").level == level


class TestJSONFormatter:

    def test_exception_block(self):
        logger = LoggerFactory.create_logger(ComponentType.SERVICE, "LoggerTestF")
        try:
            raise ValueError("bad archive")
        except ValueError:
            record = logger.makeRecord(logger.name, logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        entry = json.loads(JSONFormatter().format(record))

        assert entry["exception"]["type"] == "ValueError"
        assert entry["exception"]["message"] == "bad archive"
        assert "customDimensions" not in entry
