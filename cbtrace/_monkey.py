import importlib
import os
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Set  # noqa:F401

from wrapt.importer import when_imported

from .internal.logger import get_logger
from .internal.utils import formats


log = get_logger(__name__)

# Default set of modules to automatically patch or not
PATCH_MODULES = {
    "couchbase": True,
}

# Modules whose import triggers the patching of a given integration
_MODULES_FOR_CONTRIB = {
    "couchbase": ("couchbase",),
}

_PATCHED_MODULES = set()  # type: Set[str]


class PatchException(Exception):
    """Wraps regular `Exception` class when patching modules"""

    pass


class ModuleNotFoundException(PatchException):
    pass


def _on_import_factory(module, path_f, raise_errors=True):
    # type: (str, str, bool) -> Callable[[Any], None]
    """Factory to create an import hook for the provided module name"""

    def on_import(hook):
        # Import and patch module
        try:
            imported_module = importlib.import_module(path_f % (module,))
            imported_module.patch()
        except Exception as e:
            if raise_errors:
                raise
            log.error(
                "failed to enable cbtrace support for %s: %s",
                module,
                str(e),
            )

    return on_import


def patch(raise_errors=True, **patch_modules):
    # type: (bool, bool) -> None
    """Patch only a set of given modules.

    The integration is installed as soon as the library is imported, or right away
    when it is already imported.

    :param bool raise_errors: Raise error if one patch fail.
    :param dict patch_modules: List of modules to patch.

        >>> patch(couchbase=True)
    """
    contribs = [c for c, enabled in patch_modules.items() if enabled]
    for contrib in contribs:
        if contrib not in PATCH_MODULES:
            if raise_errors:
                raise ModuleNotFoundException("%s does not have automatic instrumentation" % contrib)
            log.debug("%s does not have automatic instrumentation. skipping", contrib)
            continue

        for module in _MODULES_FOR_CONTRIB.get(contrib, (contrib,)):
            # Use factory to create handler to close over `module` and `raise_errors` values from this loop
            when_imported(module)(_on_import_factory(contrib, "cbtrace.contrib.%s", raise_errors=raise_errors))

        # manually add module to patched modules
        _PATCHED_MODULES.add(contrib)

    log.info(
        "Configured cbtrace instrumentation for %s integration(s). The following modules have been patched: %s",
        len(contribs),
        ",".join(contribs),
    )


def patch_all(**patch_modules):
    # type: (bool) -> None
    """Enables cbtrace library instrumentation.

    In addition to ``patch_modules``, an override can be specified via an
    environment variable, ``DD_TRACE_<module>_ENABLED`` for each module.

    ``patch_modules`` have the highest precedence for overriding.

        >>> patch_all(couchbase=False)
    """
    modules = PATCH_MODULES.copy()

    # The enabled setting can be overridden by environment variables
    for module in modules:
        env_var = "DD_TRACE_%s_ENABLED" % module.upper()
        if env_var in os.environ:
            modules[module] = formats.asbool(os.environ[env_var])

    # Arguments take precedence over the environment and the defaults.
    modules.update(patch_modules)

    patch(raise_errors=False, **modules)


def _get_patched_modules():
    # type: () -> Set[str]
    """Get the list of patched modules"""
    return _PATCHED_MODULES
