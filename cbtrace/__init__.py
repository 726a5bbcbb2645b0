from .settings._config import config  # noqa: E402
from ._trace.tracer import Tracer  # noqa: E402
from ._trace.span import Span  # noqa: E402


tracer = Tracer()

from ._trace.pin import Pin  # noqa: E402
from ._monkey import patch  # noqa: E402
from ._monkey import patch_all  # noqa: E402
from .version import __version__  # noqa: E402


__all__ = [
    "patch",
    "patch_all",
    "config",
    "tracer",
    "Tracer",
    "Span",
    "Pin",
    "__version__",
]
