from os import getpid
from typing import Callable
from typing import List
from typing import Optional

from ..constants import ENV_KEY
from ..constants import PID
from ..constants import VERSION_KEY
from ..internal.logger import get_logger
from ..settings._config import config
from .provider import BaseContextProvider
from .provider import DefaultContextProvider
from .scope import NoopScope
from .scope import Scope
from .span import Span
from .writer import LogWriter
from .writer import TraceWriter


log = get_logger(__name__)


class Tracer(object):
    """
    Tracer is used to create and submit spans that measure the
    execution time of sections of code.

    A global tracer instance is available for common usage::

        from cbtrace import tracer
        with tracer.trace("app.request", service="web-server"):
            ...
    """

    def __init__(self, writer=None, context_provider=None):
        # type: (Optional[TraceWriter], Optional[BaseContextProvider]) -> None
        """
        Create a new ``Tracer`` instance. A global tracer is already initialized
        for common usage, so there is no need to initialize your own ``Tracer``.
        """
        self._pid = getpid()
        self.enabled = config._tracing_enabled
        self.context_provider = context_provider or DefaultContextProvider()  # type: BaseContextProvider
        self._writer = writer or LogWriter()  # type: TraceWriter
        self._scope = Scope(self.context_provider)
        self._noop_scope = NoopScope(self.context_provider)
        self._on_start_span = []  # type: List[Callable[[Span], None]]

    def on_start_span(self, func):
        # type: (Callable[[Span], None]) -> Callable[[Span], None]
        """Register a function to execute when a span start.

        Can be used as a decorator.

        :param func: The function to call when starting a span.
                     The started span will be passed as argument.
        """
        self._on_start_span.append(func)
        return func

    def deregister_on_start_span(self, func):
        # type: (Callable[[Span], None]) -> Callable[[Span], None]
        """Unregister a function registered to execute when a span starts."""
        self._on_start_span.remove(func)
        return func

    def scope(self):
        # type: () -> Scope
        """Return the scope manager used to activate spans across callbacks.

        A no-op scope is returned when context propagation is disabled.
        """
        if config.context_propagation:
            return self._scope
        return self._noop_scope

    def start_span(
        self,
        name,  # type: str
        child_of=None,  # type: Optional[Span]
        service=None,  # type: Optional[str]
        resource=None,  # type: Optional[str]
        span_type=None,  # type: Optional[str]
        activate=False,  # type: bool
    ):
        # type: (...) -> Span
        """Return a span that represents an operation called ``name``.

        Note that the :meth:`.trace` method will almost always be preferred
        over this method as it provides automatic span parenting. This method
        should only be used if manual parenting is desired.

        :param str name: the name of the operation being traced.
        :param object child_of: a ``Span`` representing the parent for this span.
        :param str service: the name of the service being traced.
        :param str resource: an optional name of the resource being tracked.
        :param str span_type: an optional operation type.
        :param activate: activate the span once it is created.

        To create a child for a root span::

            root_span = tracer.start_span("web.request")
            span = tracer.start_span("web.decoder", child_of=root_span)

        Spans from ``start_span`` are not activated by default.
        """
        if service is None:
            if child_of is not None:
                service = child_of.service
            else:
                service = config.service

        if child_of is not None:
            span = Span(
                name=name,
                trace_id=child_of.trace_id,
                parent_id=child_of.span_id,
                service=service,
                resource=resource,
                span_type=span_type,
                on_finish=[self._on_span_finish],
            )
            span._parent = child_of
            span._local_root = child_of._local_root
        else:
            # this is the root span of a new trace
            span = Span(
                name=name,
                service=service,
                resource=resource,
                span_type=span_type,
                on_finish=[self._on_span_finish],
            )
            span.set_metric(PID, self._pid)

        if config.env:
            span.set_tag_str(ENV_KEY, config.env)
        if config.version and service == config.service:
            span.set_tag_str(VERSION_KEY, config.version)

        if activate:
            self.context_provider.activate(span)

        for func in self._on_start_span:
            try:
                func(span)
            except Exception:
                log.debug("on_start_span hook %r failed", func, exc_info=True)

        return span

    def trace(self, name, service=None, resource=None, span_type=None):
        # type: (str, Optional[str], Optional[str], Optional[str]) -> Span
        """Activate and return a new span that inherits from the current active span.

        The returned span *must* be ``finish``'d or it will remain active
        indefinitely::

            >>> with tracer.trace("web.request") as span:
                    # do something

        Once the span finishes, its parent becomes the active span again.
        """
        return self.start_span(
            name,
            child_of=self.context_provider.active(),
            service=service,
            resource=resource,
            span_type=span_type,
            activate=True,
        )

    def current_span(self):
        # type: () -> Optional[Span]
        """Return the active span in the current execution context."""
        return self.context_provider.active()

    def current_root_span(self):
        # type: () -> Optional[Span]
        """Returns the local root span of the current execution."""
        span = self.current_span()
        if span is None:
            return None
        return span._local_root

    def _on_span_finish(self, span):
        # type: (Span) -> None
        if self.context_provider.active() is span:
            self.context_provider.activate(span._parent)

        if self.enabled:
            try:
                self._writer.write([span])
            except Exception:
                log.error("failed to write span %r", span, exc_info=True)

        log.debug("finishing span - %r (enabled:%s)", span, self.enabled)
