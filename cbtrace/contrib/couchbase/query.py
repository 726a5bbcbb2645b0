"""
Describe the queries handed to ``Cluster.query`` and ``Bucket.query``.

The client accepts four families of query objects. Each one is mapped to a
:class:`QueryDescriptor` by checking it against the client's own query classes;
anything else is left undescribed rather than guessed.
"""
from typing import Any
from typing import NamedTuple
from typing import Optional

from ...ext.couchbase import QueryKind


class QueryDescriptor(NamedTuple):
    kind: QueryKind
    resource: Optional[str] = None
    ddoc: Optional[str] = None
    bucket: Optional[str] = None


# Most specific classes first: analytics queries may derive from N1QL queries.
_QUERY_CLASSES = (
    ("CbasQuery", QueryKind.CBAS),
    ("SearchQuery", QueryKind.SEARCH),
    ("ViewQuery", QueryKind.VIEW),
    ("N1qlQuery", QueryKind.N1QL),
)


def query_kind(couchbase, query):
    # type: (Any, Any) -> Optional[QueryKind]
    """Return the kind of ``query``, or ``None`` when it is not a known query class."""
    for class_name, kind in _QUERY_CLASSES:
        if _isinstance(query, couchbase, class_name):
            return kind
    return None


def describe_query(couchbase, query, bucket=None):
    # type: (Any, Any, Optional[str]) -> Optional[QueryDescriptor]
    """Build the descriptor of ``query`` issued on ``bucket``.

    :param couchbase: the client module holding the query classes
    :param query: the first argument given to ``query()``
    :param bucket: the bucket name when known at call time
    """
    kind = query_kind(couchbase, query)
    if kind is None:
        return None

    if kind is QueryKind.VIEW:
        return QueryDescriptor(
            kind,
            resource=_str_attr(query, "name"),
            ddoc=_str_attr(query, "ddoc"),
            bucket=bucket,
        )
    if kind is QueryKind.SEARCH:
        return QueryDescriptor(kind, resource=_str_attr(query, "index"), bucket=bucket)
    return QueryDescriptor(kind, resource=_str_attr(query, "statement"), bucket=bucket)


def resolve_bucket_name(couchbase, instance):
    # type: (Any, Any) -> Optional[str]
    """Return the name of the bucket a query on ``instance`` runs against, if known now.

    A bucket knows its own name. A cluster dispatches through one of its buckets
    and only knows which once that bucket is connected; queries issued before that
    are queued by the client and stay unnamed.
    """
    if _isinstance(instance, couchbase, "Bucket"):
        return _str_attr(instance, "name")
    if not _isinstance(instance, couchbase, "Cluster"):
        return None

    buckets = getattr(instance, "buckets", None) or ()
    if isinstance(buckets, dict):
        buckets = buckets.values()

    for bucket in list(buckets):
        if getattr(bucket, "connected", False):
            return _str_attr(bucket, "name")
    return None


def _isinstance(obj, couchbase, class_name):
    # type: (Any, Any, str) -> bool
    cls = getattr(couchbase, class_name, None)
    return isinstance(cls, type) and isinstance(obj, cls)


def _str_attr(obj, name):
    # type: (Any, str) -> Optional[str]
    value = getattr(obj, name, None)
    if isinstance(value, str) and value:
        return value
    return None
