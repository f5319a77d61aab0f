import logging
import pytest


@pytest.fixture(autouse=True)
def hexbin_logger():
    """Restore the package logger, which the command line reconfigures."""
    log = logging.getLogger('hexbin')
    handlers = list(log.handlers)
    level = log.level
    propagate = log.propagate
    yield log
    for handler in list(log.handlers):
        if handler not in handlers:
            log.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in log.handlers:
            log.addHandler(handler)
    log.setLevel(level)
    log.propagate = propagate
