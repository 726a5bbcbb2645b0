import sys
from typing import Any
from typing import Callable
from typing import Dict
from typing import Optional  # noqa:F401
from typing import Tuple

from ... import config
from ..._trace.pin import Pin
from ...constants import COMPONENT
from ...constants import _DD_PATCH_ATTR
from ...constants import SPAN_KIND
from ...ext import SpanKind
from ...ext import SpanTypes
from ...ext import couchbase as couchbasex
from ...internal.logger import get_logger
from ...internal.utils import get_argument_value
from ...internal.utils.wrappers import unwrap as _u
from ..trace_utils import ext_service
from ..trace_utils import iswrapped
from ..trace_utils import with_traced_module
from ..trace_utils import wrap as _w
from .completion import PendingQuery
from .query import describe_query
from .query import resolve_bucket_name


log = get_logger(__name__)


config._add("couchbase", dict(_default_service=None))

# client classes dispatching queries
_QUERY_TARGETS = ("Cluster", "Bucket")

_Args = Tuple[Any, ...]
_Kwargs = Dict[str, Any]
_Callback = Callable[..., Any]


def patch():
    """Instrument the installed ``couchbase`` client."""
    import couchbase

    patch_module(couchbase)


def unpatch():
    import couchbase

    unpatch_module(couchbase)


def patch_module(couchbase):
    # type: (Any) -> None
    """Instrument the client exposed by ``couchbase``, a module or any namespace holding
    the ``Cluster``, ``Bucket`` and query classes.
    """
    if getattr(couchbase, _DD_PATCH_ATTR, False):
        return
    setattr(couchbase, _DD_PATCH_ATTR, True)

    Pin().onto(couchbase)

    for name in _QUERY_TARGETS:
        cls = getattr(couchbase, name, None)
        if cls is not None and hasattr(cls, "query"):
            _w(cls, "query", traced_query(couchbase))

    cluster = getattr(couchbase, "Cluster", None)
    if cluster is not None and hasattr(cluster, "open_bucket"):
        _w(cluster, "open_bucket", traced_open_bucket(couchbase))


def unpatch_module(couchbase):
    # type: (Any) -> None
    if not getattr(couchbase, _DD_PATCH_ATTR, False):
        return
    setattr(couchbase, _DD_PATCH_ATTR, False)

    for name in _QUERY_TARGETS:
        cls = getattr(couchbase, name, None)
        if cls is not None and iswrapped(cls, "query"):
            _u(cls, "query")

    cluster = getattr(couchbase, "Cluster", None)
    if cluster is not None and iswrapped(cluster, "open_bucket"):
        _u(cluster, "open_bucket")

    pin = Pin.get_from(couchbase)
    if pin is not None:
        pin.remove_from(couchbase)


@with_traced_module
def traced_query(couchbase, pin, func, instance, args, kwargs):
    tracer = pin.tracer
    scope = tracer.scope()
    parent = scope.active()

    span = tracer.start_span(
        couchbasex.QUERY,
        child_of=parent,
        service=_get_service(pin),
        span_type=SpanTypes.SQL,
    )
    span.set_tag_str(SPAN_KIND, SpanKind.CLIENT)
    span.set_tag_str(COMPONENT, config.couchbase.integration_name)
    span.set_tags(pin.tags)
    try:
        _set_query_tags(span, couchbase, instance, get_argument_value(args, kwargs, 0, "query", optional=True))
    except Exception:
        log.debug("failed to tag couchbase query span %r", span, exc_info=True)

    pending = PendingQuery(span, parent, scope)
    args, kwargs, callback = _replace_callback(args, kwargs, pending.wrap_callback)
    try:
        result = func(*args, **kwargs)
    except BaseException:
        pending.finish(sys.exc_info()[1])
        raise

    if callback is None:
        return pending.listen(result)
    return result


@with_traced_module
def traced_open_bucket(couchbase, pin, func, instance, args, kwargs):
    scope = pin.tracer.scope()
    args, kwargs, _ = _replace_callback(args, kwargs, scope.bind)

    bucket = func(*args, **kwargs)

    # buckets opened from a cluster report under the cluster's service
    instance_pin = Pin.get_from(instance)
    if instance_pin is not None and Pin.get_from(bucket) is None:
        instance_pin.clone().onto(bucket)

    return scope.bind_emitter(bucket)


def _get_service(pin):
    # type: (Pin) -> Optional[str]
    service = config._get_service()
    default = "%s-%s" % (service, couchbasex.SERVICE) if service else couchbasex.SERVICE
    return ext_service(pin, config.couchbase, default=default)


def _set_query_tags(span, couchbase, instance, query):
    bucket = resolve_bucket_name(couchbase, instance)
    if bucket is not None:
        span.set_tag_str(couchbasex.BUCKET, bucket)

    descriptor = describe_query(couchbase, query, bucket)
    if descriptor is None:
        log.debug("unknown couchbase query %r, leaving its span untagged", type(query))
        return

    span.set_tag_str(couchbasex.QUERY_TYPE, descriptor.kind)
    if descriptor.resource is not None:
        span.resource = descriptor.resource
    if descriptor.ddoc is not None:
        span.set_tag_str(couchbasex.DDOC, descriptor.ddoc)


def _replace_callback(args, kwargs, replace):
    # type: (_Args, _Kwargs, Callable[[_Callback], _Callback]) -> Tuple[_Args, _Kwargs, Optional[_Callback]]
    """Swap the trailing callback of a client call for ``replace(callback)``.

    The callback is either the ``callback`` keyword or the last positional argument
    following the first one. Every other argument is left in place.
    """
    callback = kwargs.get("callback")
    if callable(callback):
        kwargs = dict(kwargs)
        kwargs["callback"] = replace(callback)
        return args, kwargs, callback

    if len(args) > 1 and callable(args[-1]):
        callback = args[-1]
        return args[:-1] + (replace(callback),), kwargs, callback

    return args, kwargs, None
