"""
Logging utilities for internal use.

Usage::

    from cbtrace.internal.logger import get_logger

    log = get_logger(__name__)
    log.debug("failed to tag span %r", span, exc_info=True)

Every logger returned by ``get_logger`` shares a rate limiter: a given call site
(pathname and line number) emits at most one record every ``DD_TRACE_LOGGING_RATE``
seconds (60 by default). The number of records dropped in between is reported on the
next emitted record. ``DD_TRACE_LOGGING_RATE=0`` disables rate limiting, and loggers
set to ``DEBUG`` are never limited.
"""

import collections
import logging
import os
import time
from typing import DefaultDict
from typing import Tuple


def get_logger(name: str) -> logging.Logger:
    """Retrieve or create a ``Logger`` instance configured with the rate limiter filter."""
    logger = logging.getLogger(name)
    # addFilter will only add the filter if it is not already present
    logger.addFilter(log_filter)
    logger.propagate = True
    return logger


class LoggingBucket(object):
    """Time bucket of a call site and the number of records skipped within it."""

    __slots__ = ("bucket", "skipped")

    def __init__(self, bucket: float, skipped: int):
        self.bucket = bucket
        self.skipped = skipped

    def __repr__(self):
        return "LoggingBucket(%r, %r)" % (self.bucket, self.skipped)

    def is_sampled(self, record: logging.LogRecord, rate: float) -> bool:
        current = time.monotonic()
        if current - self.bucket >= rate:
            self.bucket = current
            record.skipped = self.skipped
            self.skipped = 0
            return True
        self.skipped += 1
        return False


_MINF = float("-inf")

_buckets: DefaultDict[Tuple[str, int], LoggingBucket] = collections.defaultdict(lambda: LoggingBucket(_MINF, 0))

_rate_limit = int(os.getenv("DD_TRACE_LOGGING_RATE", default=60))


def log_filter(record: logging.LogRecord) -> bool:
    """Return whether ``record`` should be emitted (True) or dropped (False)."""
    logger = logging.getLogger(record.name)
    if not _rate_limit or logger.getEffectiveLevel() == logging.DEBUG:
        return True
    return _buckets[(record.pathname, record.lineno)].is_sampled(record, _rate_limit)


class DDFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        skipped = getattr(record, "skipped", 0)
        skip_str = " [%d skipped]" % skipped if skipped else ""
        return "%s %s%s" % (record.levelname, super(DDFormatter, self).format(record), skip_str)


# setup the default formatter for all cbtrace loggers
root_logger = logging.getLogger("cbtrace")
if not root_logger.handlers:
    root_logger.addHandler(logging.StreamHandler())
    root_logger.handlers[0].setFormatter(DDFormatter())
root_logger.propagate = True
