import abc
import json
import sys
from typing import TYPE_CHECKING
from typing import List  # noqa:F401
from typing import Optional  # noqa:F401
from typing import TextIO  # noqa:F401


if TYPE_CHECKING:  # pragma: no cover
    from .span import Span  # noqa:F401


class TraceWriter(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def write(self, spans=None):
        # type: (Optional[List[Span]]) -> None
        pass


class LogWriter(TraceWriter):
    """Writes every finished span as one JSON document per line.

    Without an explicit stream, spans go to whatever ``sys.stdout`` is when they
    are written.
    """

    def __init__(
        self,
        out=None,  # type: Optional[TextIO]
    ):
        # type: (...) -> None
        self.out = out

    def write(self, spans=None):
        # type: (Optional[List[Span]]) -> None
        if not spans:
            return

        out = self.out if self.out is not None else sys.stdout
        encoded = json.dumps({"traces": [[span.to_dict() for span in spans]]}, default=str)
        out.write(encoded + "\n")
        out.flush()
