"""
Scope management for callback and event driven code.

The active span lives in a context variable (see :mod:`cbtrace._trace.provider`).
That is enough for code that runs synchronously inside an activation, but client
libraries that deliver results through callbacks or event emitters resume user code
later, from whatever execution happens to drain their I/O. ``Scope.bind`` and
``Scope.bind_emitter`` capture the active span when the callback or listener is
handed over and re-establish it around every later invocation::

    from cbtrace import tracer

    scope = tracer.scope()
    span = tracer.start_span("parent")

    def on_rows(rows):
        assert scope.active() is span

    scope.activate(span, lambda: emitter.on("rows", on_rows))
"""
import functools
from typing import Any
from typing import Callable
from typing import Dict
from typing import List
from typing import Optional
from typing import Tuple

import wrapt

from ..internal.logger import get_logger
from ..internal.utils.wrappers import iswrapped
from .provider import BaseContextProvider
from .span import Span


log = get_logger(__name__)

# methods registering a listener as ``method(event, listener, ...)``
_ADD_LISTENER_METHODS = ("on", "once", "add_listener", "prepend_listener", "prepend_once_listener")
# methods removing a listener as ``method(event, listener)``
_REMOVE_LISTENER_METHODS = ("off", "remove_listener")

_DD_BOUND_LISTENERS = "_datadog_bound_listeners"
_DD_BOUND_LISTENERS_PROXY = "_self_" + _DD_BOUND_LISTENERS

_CURRENT = object()


class Scope(object):
    """Activate spans for a synchronous extent and carry them across callbacks."""

    def __init__(self, context_provider):
        # type: (BaseContextProvider) -> None
        self._provider = context_provider

    def active(self):
        # type: () -> Optional[Span]
        """Return the span active in the current execution, or ``None``."""
        return self._provider.active()

    def activate(self, span, fn, *args, **kwargs):
        # type: (Optional[Span], Callable[..., Any], Any, Any) -> Any
        """Run ``fn(*args, **kwargs)`` with ``span`` active and return its result.

        The previously active span is restored once ``fn`` returns or raises. ``span``
        may be ``None`` to run ``fn`` with no active span.
        """
        token = self._provider.activate(span)
        try:
            return fn(*args, **kwargs)
        finally:
            self._provider.deactivate(token)

    def bind(self, fn, span=_CURRENT):
        # type: (Callable[..., Any], Any) -> Callable[..., Any]
        """Return a callable that runs ``fn`` with ``span`` active.

        ``span`` defaults to the span active when ``bind`` is called, ``None`` included,
        so the binding reflects the flow that handed ``fn`` over rather than the flow
        that eventually invokes it.
        """
        if not callable(fn):
            return fn
        if span is _CURRENT:
            span = self.active()

        @functools.wraps(fn)
        def bound(*args, **kwargs):
            return self.activate(span, fn, *args, **kwargs)

        bound.__dd_wrapped__ = fn  # type: ignore[attr-defined]
        return bound

    def bind_emitter(self, emitter):
        # type: (Any) -> Any
        """Bind every listener later registered on ``emitter`` to the span active at registration.

        The registration and removal methods are replaced on the instance only, so
        other emitters of the same class are left untouched. Calling this twice on
        the same emitter is a no-op.
        """
        if emitter is None:
            return emitter

        for name in _ADD_LISTENER_METHODS:
            method = getattr(emitter, name, None)
            if method is None or iswrapped(method):
                continue
            try:
                setattr(emitter, name, wrapt.FunctionWrapper(method, self._traced_add_listener))
            except AttributeError:
                log.debug("can't bind %s.%s to the active span. skipping", type(emitter).__name__, name, exc_info=True)

        for name in _REMOVE_LISTENER_METHODS:
            method = getattr(emitter, name, None)
            if method is None or iswrapped(method):
                continue
            try:
                setattr(emitter, name, wrapt.FunctionWrapper(method, _traced_remove_listener))
            except AttributeError:
                log.debug("can't unbind %s.%s listeners. skipping", type(emitter).__name__, name, exc_info=True)

        return emitter

    def _traced_add_listener(self, wrapped, instance, args, kwargs):
        if len(args) < 2 or not callable(args[1]):
            return wrapped(*args, **kwargs)

        event, listener = args[0], args[1]
        bound = self.bind(listener)
        _bound_listeners(wrapped).setdefault((event, id(listener)), []).append(bound)
        return wrapped(event, bound, *args[2:], **kwargs)

    def __repr__(self):
        return "%s(provider=%r)" % (self.__class__.__name__, self._provider)


class NoopScope(Scope):
    """Scope used when context propagation is disabled.

    Nothing is ever activated: callbacks and listeners observe whatever the
    execution that runs them observes, which is no active span.
    """

    def active(self):
        # type: () -> Optional[Span]
        return None

    def activate(self, span, fn, *args, **kwargs):
        # type: (Optional[Span], Callable[..., Any], Any, Any) -> Any
        return fn(*args, **kwargs)

    def bind(self, fn, span=_CURRENT):
        # type: (Callable[..., Any], Any) -> Callable[..., Any]
        return fn

    def bind_emitter(self, emitter):
        # type: (Any) -> Any
        return emitter


def _bound_listeners(method):
    # type: (Any) -> Dict[Tuple[Any, int], List[Callable[..., Any]]]
    """Bound listeners of the emitter owning ``method``, keyed by event and listener identity.

    Listeners need not be hashable. Every bound listener references its listener,
    so an identity stays unique while its entry is kept.
    """
    emitter = getattr(method, "__self__", None)
    store = getattr(emitter, _DD_BOUND_LISTENERS, None)
    if store is None:
        store = {}
        name = _DD_BOUND_LISTENERS_PROXY if isinstance(emitter, wrapt.ObjectProxy) else _DD_BOUND_LISTENERS
        try:
            setattr(emitter, name, store)
        except AttributeError:
            log.debug("can't keep track of bound listeners on %r", emitter)
    return store


def _traced_remove_listener(wrapped, instance, args, kwargs):
    if len(args) < 2:
        return wrapped(*args, **kwargs)

    event, listener = args[0], args[1]
    listeners = _bound_listeners(wrapped)
    key = (event, id(listener))
    bound = listeners.get(key)
    if not bound:
        return wrapped(*args, **kwargs)

    listener = bound.pop()
    if not bound:
        del listeners[key]
    return wrapped(event, listener, *args[2:], **kwargs)
