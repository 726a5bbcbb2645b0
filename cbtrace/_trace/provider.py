import abc
import contextvars
from typing import Optional

from .span import Span


_DD_CONTEXTVAR: contextvars.ContextVar[Optional[Span]] = contextvars.ContextVar("cbtrace_contextvar", default=None)


class BaseContextProvider(metaclass=abc.ABCMeta):
    """
    A ``ContextProvider`` is an interface that provides the blueprint
    for a class capable to retrieve the current active span. Context
    providers must inherit this class and implement:
    * the ``active`` method, that returns the current active ``Span``
    * the ``activate`` method, that sets the current active ``Span``
    * the ``deactivate`` method, that restores the previously active ``Span``
    """

    @abc.abstractmethod
    def activate(self, span: Optional[Span]) -> contextvars.Token:
        pass

    @abc.abstractmethod
    def deactivate(self, token: contextvars.Token) -> None:
        pass

    @abc.abstractmethod
    def active(self) -> Optional[Span]:
        pass


class DefaultContextProvider(BaseContextProvider):
    """Context provider that retrieves the active span from a context variable.

    It is suitable for synchronous programming and for asynchronous executors
    that support contextvars. Every thread and every asyncio task observes its own
    value, so concurrent activations never clobber one another.
    """

    def activate(self, span: Optional[Span]) -> contextvars.Token:
        """Makes the given span active in the current execution.

        The returned token restores the previous value when handed to ``deactivate``.
        """
        return _DD_CONTEXTVAR.set(span)

    def deactivate(self, token: contextvars.Token) -> None:
        _DD_CONTEXTVAR.reset(token)

    def active(self) -> Optional[Span]:
        """Returns the active span for the current execution."""
        return _DD_CONTEXTVAR.get()
