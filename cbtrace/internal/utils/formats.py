from typing import Any  # noqa:F401
from typing import Union  # noqa:F401


def asbool(value):
    # type: (Union[str, bool, None]) -> bool
    """Convert the given String to a boolean object.

    Accepted values are `True` and `1`.
    """
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    return value.lower() in ("true", "1")


def stringify(obj):
    # type: (Any) -> str
    if isinstance(obj, bytes):
        return obj.decode("utf-8", errors="replace")
    return str(obj)
