from typing import Any, Optional


class CollectError(Exception):
    """Recoverable failure while extracting a chunk"""


class NotFoundError(CollectError):
    """Block, transaction or receipt is absent at the requested identifier"""


class FetchError(CollectError):
    """Transport failure talking to the node, safe to retry"""


class RpcError(FetchError):
    def __init__(self, method: str, code: Optional[int], message: str, data: Any = None):
        super().__init__(f"{method} failed: {code} {message}")
        self.method = method
        self.code = code
        self.message = message
        self.data = data


class FatalCollectError(Exception):
    """Failure that must abort the chunk and never be retried"""


class MissingSchemaError(FatalCollectError):
    pass


class MalformedDataError(FatalCollectError):
    pass


class RowCountError(FatalCollectError):
    pass


__all__ = [
    "CollectError",
    "NotFoundError",
    "FetchError",
    "RpcError",
    "FatalCollectError",
    "MissingSchemaError",
    "MalformedDataError",
    "RowCountError",
]
