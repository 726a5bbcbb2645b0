"""
This module contains public utility functions for writing cbtrace integrations.
"""
from typing import TYPE_CHECKING
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Optional  # noqa:F401

import wrapt

from .._trace.pin import Pin
from ..internal.logger import get_logger
from ..internal.utils import wrappers


if TYPE_CHECKING:  # pragma: no cover
    from ..settings import IntegrationConfig  # noqa:F401


log = get_logger(__name__)

wrap = wrapt.wrap_function_wrapper
unwrap = wrappers.unwrap
iswrapped = wrappers.iswrapped


def with_traced_module(func):
    """Helper for providing tracing essentials (module and pin) for tracing
    wrappers.

    This helper enables tracing wrappers to dynamically be disabled when the
    corresponding pin is disabled.

    Usage::

        @with_traced_module
        def my_traced_wrapper(couchbase, pin, func, instance, args, kwargs):
            # Do tracing stuff
            pass

        def patch():
            import couchbase
            wrap(couchbase.Cluster, "query", my_traced_wrapper(couchbase))
    """

    def with_mod(mod):
        def wrapper(wrapped, instance, args, kwargs):
            pin = Pin._find(instance, mod)
            if pin and not pin.enabled():
                return wrapped(*args, **kwargs)
            elif not pin:
                log.debug("Pin not found for traced method %r", wrapped)
                return wrapped(*args, **kwargs)
            return func(mod, pin, wrapped, instance, args, kwargs)

        return wrapper

    return with_mod


def ext_service(pin, int_config, default=None):
    # type: (Optional[Pin], Optional[IntegrationConfig], Optional[str]) -> Optional[str]
    """Returns the service name for an integration which is external
    to the application. External meaning that the integration generates
    spans wrapping code that is outside the scope of the user's application. Eg. A database, RPC, cache, etc.
    """
    if pin and pin.service:
        return pin.service

    if int_config is not None:
        if "service" in int_config and int_config.service is not None:
            return int_config.service
        if "service_name" in int_config and int_config.service_name is not None:
            return int_config.service_name
        if "_default_service" in int_config and int_config._default_service is not None:
            return int_config._default_service

    # A default is required since it's an external service.
    return default
