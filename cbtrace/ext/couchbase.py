from . import StrEnum


SERVICE = "couchbase"
QUERY = "couchbase.call"

# tags
QUERY_TYPE = "query.type"
BUCKET = "bucket.name"
DDOC = "ddoc"

# emitter events
ROW_EVENT = "row"
ROWS_EVENT = "rows"
ERROR_EVENT = "error"


class QueryKind(StrEnum):
    N1QL = "n1ql"
    VIEW = "view"
    SEARCH = "search"
    CBAS = "cbas"
