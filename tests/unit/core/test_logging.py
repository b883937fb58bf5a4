"""
Tests for structured logging setup.
"""

import json
import logging

import pytest
import structlog

from screwplanner.core.logging import (
    bind_planning_context,
    clear_planning_context,
    configure_logging,
    get_logger,
)


@pytest.fixture
def json_log_file(temp_dir):
    path = temp_dir / "planner.log"
    configure_logging(level="DEBUG", json_output=True, log_file=str(path))
    yield path
    for handler in logging.root.handlers:
        handler.close()
    logging.root.handlers.clear()
    structlog.reset_defaults()


def read_events(path):
    for handler in logging.root.handlers:
        handler.flush()
    return [json.loads(line) for line in path.read_text().splitlines() if line]


class TestLogging:
    def test_json_events(self, json_log_file):
        get_logger("screwplanner.test").info("plan_complete", outcome="success")

        events = read_events(json_log_file)
        assert events[-1]["event"] == "plan_complete"
        assert events[-1]["outcome"] == "success"
        assert events[-1]["level"] == "info"
        assert events[-1]["logger"] == "screwplanner.test"

    def test_planning_context_is_bound_and_cleared(self, json_log_file):
        logger = get_logger("screwplanner.test")

        bind_planning_context(move_group="arm")
        logger.info("search_started")
        clear_planning_context("move_group")
        logger.info("search_finished")

        first, second = read_events(json_log_file)[-2:]
        assert first["move_group"] == "arm"
        assert "move_group" not in second
