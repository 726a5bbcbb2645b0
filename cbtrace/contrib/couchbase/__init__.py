"""Instrument the Couchbase query client to report queries as spans.

``Cluster.query`` and ``Bucket.query`` calls create one ``couchbase.call`` span each,
finished when the query completes, whether the result is delivered to a callback or
through the ``rows``/``error`` events of the returned emitter. Callbacks and listeners
run with the span that was active when they were handed to the client::

    from cbtrace import patch, tracer

    # If not patched yet, you can patch couchbase specifically
    patch(couchbase=True)

    import couchbase

    cluster = couchbase.Cluster("couchbase://localhost")
    bucket = cluster.open_bucket("travel-sample")

    with tracer.trace("web.request") as span:
        def on_result(err, rows):
            assert tracer.scope().active() is span

        bucket.query(couchbase.N1qlQuery("SELECT 1+1"), on_result)

Use a pin to specify metadata related to a cluster::

    from cbtrace import Pin

    Pin.override(cluster, service="orders-couchbase")

Global Configuration
~~~~~~~~~~~~~~~~~~~~

.. py:data:: cbtrace.config.couchbase["service"]

   The service name reported by default for couchbase spans.

   This option can also be set with the ``DD_COUCHBASE_SERVICE`` environment
   variable.

   Default: ``"<DD_SERVICE>-couchbase"`` when ``DD_SERVICE`` is set, ``"couchbase"`` otherwise.

.. py:data:: cbtrace.config.context_propagation

   Whether callbacks and listeners run with the span active when they were handed
   to the client. This option can also be set with the ``DD_CONTEXT_PROPAGATION``
   environment variable.

   Default: ``True``
"""
from .patch import patch  # noqa: F401
from .patch import patch_module  # noqa: F401
from .patch import unpatch  # noqa: F401
from .patch import unpatch_module  # noqa: F401


__all__ = ["patch", "unpatch", "patch_module", "unpatch_module"]
