from collections.abc import Mapping
from typing import Any


class AttrDict(Mapping):
    """Dict-like object that allows for item attribute access

    Example::

       data = AttrDict()
       data['key'] = 'value'
       print(data['key'])

       data.key = 'new-value'
       print(data.key)
    """

    def __init__(self, *args, **kwargs):
        # type: (Any, Any) -> None
        self.__dict__.update(*args, **kwargs)

    def __getattr__(self, name):
        # type: (str) -> Any
        return getattr(self.__dict__, name)

    def __contains__(self, name):  # type: ignore[override]
        # type: (str) -> bool
        return name in self.__dict__

    def __getitem__(self, name):
        # type: (str) -> Any
        return self.__dict__[name]

    def __setitem__(self, name, value):
        # type: (str, Any) -> None
        self.__dict__[name] = value

    def __iter__(self):
        return iter(self.__dict__)

    def __len__(self):
        return len(self.__dict__)
