import functools
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Optional  # noqa:F401

from ..._trace.scope import Scope  # noqa:F401
from ..._trace.span import Span  # noqa:F401
from ...ext import couchbase as couchbasex
from ...internal.logger import get_logger


log = get_logger(__name__)


def finish_span(span, error=None):
    # type: (Span, Any) -> None
    """Finish ``span``, tagging it with ``error`` when truthy. A finished span is left untouched."""
    if span.finished:
        return
    try:
        span._set_error(error)
    except Exception:
        log.debug("failed to tag error %r on span %r", error, span, exc_info=True)
    span.finish()


class PendingQuery(object):
    """A query in flight: its span and the span that was active when it was issued.

    The query completes once, either through the callback given to ``query()`` or
    through the terminal event of the emitter it returned. Whichever signal comes
    first finishes the span; later signals are ignored. There is no timeout: a
    query the client never completes keeps its span open.
    """

    __slots__ = ("span", "parent", "_scope", "_done")

    def __init__(self, span, parent, scope):
        # type: (Span, Optional[Span], Scope) -> None
        self.span = span
        self.parent = parent
        self._scope = scope
        self._done = False

    @property
    def done(self):
        # type: () -> bool
        return self._done

    def finish(self, error=None):
        # type: (Any) -> None
        if self._done:
            return
        self._done = True
        try:
            finish_span(self.span, error)
        except Exception:
            log.debug("failed to finish span %r", self.span, exc_info=True)

    def wrap_callback(self, callback):
        # type: (Callable[..., Any]) -> Callable[..., Any]
        """Return the callback to hand to the client in place of ``callback``.

        It finishes the span with the error the client reports, then calls
        ``callback`` with the very same arguments and the issuing span active.
        """

        @functools.wraps(callback)
        def traced_callback(*args, **kwargs):
            self.finish(args[0] if args else kwargs.get("error"))
            return self._scope.activate(self.parent, callback, *args, **kwargs)

        return traced_callback

    def listen(self, emitter):
        # type: (Any) -> Any
        """Finish the span on the terminal event of ``emitter``.

        ``row`` events may fire any number of times before the terminal ``rows``
        or ``error`` event and never finish the span. Listeners the caller adds to
        the emitter afterwards run with the span active at their registration.
        """
        on = getattr(emitter, "on", None)
        if not callable(on):
            log.debug("query result %r is not an event emitter, its span will not be finished", emitter)
            return emitter

        try:
            on(couchbasex.ROWS_EVENT, self._on_rows)
            on(couchbasex.ERROR_EVENT, self._on_error)
        except Exception:
            log.debug("failed to listen to %r", emitter, exc_info=True)
        return self._scope.bind_emitter(emitter)

    def _on_rows(self, *args, **kwargs):
        self.finish()

    def _on_error(self, error=None, *args, **kwargs):
        self.finish(error)
