import random
import sys
import time
import traceback
from types import TracebackType
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Type
from typing import Union

from ..constants import ERROR_MSG
from ..constants import ERROR_STACK
from ..constants import ERROR_TYPE
from ..internal.logger import get_logger
from ..internal.utils.formats import stringify


log = get_logger(__name__)


_NumericType = Union[int, float]


def _rand64bits():
    # type: () -> int
    return random.getrandbits(64)


class Span(object):
    __slots__ = [
        # Public span attributes
        "service",
        "name",
        "resource",
        "span_type",
        "span_id",
        "trace_id",
        "parent_id",
        "_meta",
        "error",
        "_metrics",
        "start_ns",
        "duration_ns",
        # Internal attributes
        "_on_finish_callbacks",
        "_parent",
        "_local_root",
    ]

    def __init__(
        self,
        name,  # type: str
        service=None,  # type: Optional[str]
        resource=None,  # type: Optional[str]
        span_type=None,  # type: Optional[str]
        trace_id=None,  # type: Optional[int]
        span_id=None,  # type: Optional[int]
        parent_id=None,  # type: Optional[int]
        start=None,  # type: Optional[float]
        on_finish=None,  # type: Optional[List[Callable[[Span], None]]]
    ):
        # type: (...) -> None
        """
        Create a new span. Call `finish` once the traced operation is over.

        **Note:** A ``Span`` should only be accessed or modified in the process
        that it was created in. Use the tracer's ``start_span`` or ``trace``
        rather than instantiating spans directly.

        :param str name: the name of the traced operation.

        :param str service: the service name
        :param str resource: the resource name
        :param str span_type: the span type

        :param int trace_id: the id of this trace's root span.
        :param int parent_id: the id of this span's direct parent span.
        :param int span_id: the id of this span.

        :param int start: the start time of request as a unix epoch in seconds
        """
        self.name = name
        self.service = service
        self.resource = resource or name
        self.span_type = span_type

        self._meta = {}  # type: Dict[str, str]
        self.error = 0
        self._metrics = {}  # type: Dict[str, _NumericType]

        self.start_ns = time.time_ns() if start is None else int(start * 1e9)  # type: int
        self.duration_ns = None  # type: Optional[int]

        self.trace_id = trace_id or _rand64bits()  # type: int
        self.span_id = span_id or _rand64bits()  # type: int
        self.parent_id = parent_id  # type: Optional[int]
        self._on_finish_callbacks = [] if on_finish is None else on_finish

        self._parent = None  # type: Optional[Span]
        self._local_root = self  # type: Span

    @property
    def start(self):
        # type: () -> float
        """The start timestamp in Unix epoch seconds."""
        return self.start_ns / 1e9

    @property
    def finished(self):
        # type: () -> bool
        return self.duration_ns is not None

    @property
    def duration(self):
        # type: () -> Optional[float]
        """The span duration in seconds."""
        if self.duration_ns is not None:
            return self.duration_ns / 1e9
        return None

    def finish(self, finish_time=None):
        # type: (Optional[float]) -> None
        """Mark the end time of the span and submit it to the tracer.
        If the span is already finished, this is a no-op.

        :param float finish_time: The end time of the span, in seconds. Defaults to ``now``.
        """
        if self.duration_ns is not None:
            return

        finish_time_ns = time.time_ns() if finish_time is None else int(finish_time * 1e9)
        self.duration_ns = max(finish_time_ns - self.start_ns, 0)

        for cb in self._on_finish_callbacks:
            cb(self)

    def set_tag(self, key, value=None):
        # type: (str, Any) -> None
        """Set a tag key/value pair on the span.

        Numeric values are stored as metrics, everything else as a string tag.
        """
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            self.set_tag_str(key, value)
            return
        self.set_metric(key, value)

    def set_tag_str(self, key, value):
        # type: (str, Any) -> None
        """Set a value for a tag. Values are coerced to unicode."""
        try:
            self._meta[key] = stringify(value)
        except Exception:
            log.warning("error setting tag %s, ignoring it", key, exc_info=True)

    def get_tag(self, key):
        # type: (str) -> Optional[str]
        """Return the given tag or None if it doesn't exist."""
        return self._meta.get(key, None)

    def get_tags(self):
        # type: () -> Dict[str, str]
        """Return all tags."""
        return self._meta.copy()

    def set_tags(self, tags):
        # type: (Dict[str, Any]) -> None
        """Set a dictionary of tags on the given span. Keys and values
        must be strings (or stringable)
        """
        if tags:
            for k, v in iter(tags.items()):
                self.set_tag(k, v)

    def set_metric(self, key, value):
        # type: (str, _NumericType) -> None
        """This method sets a numeric tag value for the given key."""
        try:
            value = float(value)
        except (ValueError, TypeError):
            log.debug("ignoring not number metric %s:%s", key, value)
            return

        # Don't allow NaN or Infinity
        if value != value or value in (float("inf"), float("-inf")):
            log.debug("ignoring not real metric %s:%s", key, value)
            return

        self._meta.pop(key, None)
        self._metrics[key] = value

    def get_metric(self, key):
        # type: (str) -> Optional[_NumericType]
        """Return the given metric or None if it doesn't exist."""
        return self._metrics.get(key)

    def get_metrics(self):
        # type: () -> Dict[str, _NumericType]
        """Return all metrics."""
        return self._metrics.copy()

    def set_traceback(self, limit=None):
        # type: (Optional[int]) -> None
        """If the current stack has an exception, tag the span with the
        relevant error info. If not, tag it with the current python stack.
        """
        (exc_type, exc_val, exc_tb) = sys.exc_info()

        if exc_type and exc_val and exc_tb:
            self.set_exc_info(exc_type, exc_val, exc_tb)
        else:
            tb = "".join(traceback.format_stack(limit=limit))
            self._meta[ERROR_STACK] = tb

    def set_exc_info(self, exc_type, exc_val, exc_tb):
        # type: (Optional[Type[BaseException]], Optional[BaseException], Optional[TracebackType]) -> None
        """Tag the span with an error tuple as from `sys.exc_info()`."""
        if not (exc_type and exc_val):
            return  # nothing to do

        self.error = 1

        self._meta[ERROR_TYPE] = "%s.%s" % (exc_type.__module__, exc_type.__name__)
        self._meta[ERROR_MSG] = stringify(exc_val)
        if exc_tb is not None:
            self._meta[ERROR_STACK] = "".join(traceback.format_exception(exc_type, exc_val, exc_tb))

    def _set_error(self, error):
        # type: (Any) -> None
        """Tag the span with an error delivered as a value rather than raised."""
        if not error:
            return
        if isinstance(error, BaseException):
            self.set_exc_info(type(error), error, error.__traceback__)
            return
        self.error = 1
        self._meta[ERROR_MSG] = stringify(error)

    def to_dict(self):
        # type: () -> Dict[str, Any]
        d = {
            "trace_id": self.trace_id,
            "parent_id": self.parent_id,
            "span_id": self.span_id,
            "service": self.service,
            "resource": self.resource,
            "name": self.name,
            "error": self.error,
        }  # type: Dict[str, Any]

        # a common mistake is to set the error field to a boolean instead of an
        # int. let's special case that here, because it's sure to happen in
        # customer code.
        err = d.get("error")
        if err and type(err) == bool:
            d["error"] = 1

        if self.start_ns:
            d["start"] = self.start_ns

        if self.duration_ns:
            d["duration"] = self.duration_ns

        if self._meta:
            d["meta"] = self._meta

        if self._metrics:
            d["metrics"] = self._metrics

        if self.span_type:
            d["type"] = self.span_type

        return d

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        try:
            if exc_type:
                self.set_exc_info(exc_type, exc_val, exc_tb)
            self.finish()
        except Exception:
            log.exception("error closing trace")

    def __repr__(self):
        return "<Span(id=%s,trace_id=%s,parent_id=%s,name=%s)>" % (
            self.span_id,
            self.trace_id,
            self.parent_id,
            self.name,
        )
