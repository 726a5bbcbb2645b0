from typing import Any
from typing import Dict
from typing import Optional
from typing import Tuple


class ArgumentError(Exception):
    """
    This is raised when an argument lookup, either by position or by keyword, is
    not found.
    """


def get_argument_value(
    args,  # type: Tuple[Any, ...]
    kwargs,  # type: Dict[str, Any]
    pos,  # type: int
    kw,  # type: str
    optional=False,  # type: bool
):
    # type: (...) -> Optional[Any]
    """
    Return the value of a target function argument that may have been passed in
    as a positional argument or a keyword argument. Monkey-patched functions do not
    share the signature of their target, so the value has to be inferred from the
    packed args and kwargs.

    Keyword arguments are prioritized, followed by the positional argument. If the
    argument cannot be resolved, an ``ArgumentError`` is raised, unless ``optional``
    is set, in which case ``None`` is returned.
    """
    try:
        return kwargs[kw]
    except KeyError:
        try:
            return args[pos]
        except IndexError:
            if optional:
                return None
            raise ArgumentError("%s (at position %d)" % (kw, pos))

