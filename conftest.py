import logging

import pytest  # noqa: F401


def pytest_configure(config):
    """
    Enable debug logging of the geometry engines, so that the log
    statements run (and can be inspected with -o log_cli=true) in tests.
    """
    logging.getLogger("pathforge").setLevel(logging.DEBUG)
