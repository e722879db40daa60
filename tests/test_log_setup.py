"""
Tests fuer log_setup.py: Instanz-Tag im Log-Format.
"""

import logging

from scene_learning.log_setup import StructuredFormatter, get_instance, instance_context


def _record(msg: str = "Hallo") -> logging.LogRecord:
    return logging.LogRecord("scene_learning.engine", logging.INFO, __file__, 1, msg, None, None)


class TestInstanceContext:

    def test_context_sets_and_resets(self):
        assert get_instance() == ""
        with instance_context("ollama.0"):
            assert get_instance() == "ollama.0"
        assert get_instance() == ""

    def test_formatter_adds_namespace(self):
        formatter = StructuredFormatter(fmt="%(instance)s%(message)s")
        with instance_context("ollama.0"):
            assert formatter.format(_record()) == "[ns-ollama.0] Hallo"

    def test_formatter_without_namespace(self):
        formatter = StructuredFormatter(fmt="%(instance)s%(message)s")
        assert formatter.format(_record()) == "Hallo"
