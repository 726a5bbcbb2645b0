from enum import Enum
from enum import unique


class StrEnum(str, Enum):
    def __str__(self):
        return str(self.value)


@unique
class SpanTypes(StrEnum):
    SQL = "sql"


@unique
class SpanKind(StrEnum):
    CLIENT = "client"
    SERVER = "server"
    PRODUCER = "producer"
    CONSUMER = "consumer"
    INTERNAL = "internal"
