"""Root pytest configuration for all tests.

This conftest applies to all test types (unit, integration).
"""

import logging

import pytest

# watchdog logs every inotify registration at DEBUG; keep test output readable
logging.getLogger("watchdog").setLevel(logging.WARNING)


@pytest.fixture(autouse=True)
def restore_app_logger():
    """Restore the 'src' logger after tests that reconfigure it.

    _configure_logging() replaces the handlers of the application logger;
    left in place they would write to streams closed by CliRunner.
    """
    app_logger = logging.getLogger("src")
    level = app_logger.level
    handlers = list(app_logger.handlers)
    yield
    for handler in app_logger.handlers:
        if handler not in handlers:
            handler.close()
    app_logger.handlers[:] = handlers
    app_logger.setLevel(level)
