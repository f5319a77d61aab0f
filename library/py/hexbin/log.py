"""Logging helpers."""

from logging import StreamHandler, WARNING, getLogger
import sys


class BareLogger:
    """Owner of the top-level ``hexbin`` logger.

       Library modules log through child loggers (``hexbin.recfmt``, ...),
       so configuring this class configures the whole package.
    """

    log = getLogger('hexbin')
    log.addHandler(StreamHandler(sys.stderr))
    log.setLevel(level=WARNING)

    @classmethod
    def set_formatter(cls, formatter):
        handlers = list(cls.log.handlers)
        for handler in handlers:
            handler.setFormatter(formatter)

    @classmethod
    def get_level(cls):
        return cls.log.getEffectiveLevel()

    @classmethod
    def set_level(cls, level):
        cls.log.setLevel(level=level)
