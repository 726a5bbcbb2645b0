import typing as t

from envier import En


class CoreConfig(En):
    __prefix__ = "dd"

    service = En.v(
        t.Optional[str],
        "service",
        default=None,
        help_type="String",
        help="Service name to be used for the application. Couchbase spans default to ``<service>-couchbase``.",
    )

    env = En.v(
        t.Optional[str],
        "env",
        default=None,
        help_type="String",
        help="Set an application's environment e.g. ``prod``, ``pre-prod``, ``staging``.",
    )

    version = En.v(
        t.Optional[str],
        "version",
        default=None,
        help_type="String",
        help="Set an application's version in traces and logs e.g. ``1.2.3``.",
    )

    tracing_enabled = En.v(
        bool,
        "trace_enabled",
        default=True,
        help_type="Boolean",
        help="Enable sending of spans to the configured writer. Spans are still created when disabled.",
    )

    context_propagation = En.v(
        bool,
        "context_propagation",
        default=True,
        help_type="Boolean",
        help="Re-establish the active span inside client callbacks and event listeners. "
        "When disabled, the scope manager becomes a no-op and callbacks observe no active span.",
    )


config = CoreConfig()
