import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from .columns import ColumnData
from .config import ChunkDim, Datatype, Schemas, Table
from .errors import MissingSchemaError
from .fetcher import Fetcher
from .params import Params

logger = logging.getLogger(__name__)

ExtractFn = Callable[[Params, Fetcher, Schemas], Awaitable[Any]]
TransformFn = Callable[[Any, ColumnData, Schemas], None]


@dataclass(frozen=True)
class CollectByBlock:
    extract: ExtractFn
    transform: TransformFn
    dims: Tuple[ChunkDim, ...] = (ChunkDim.BLOCK_NUMBER,)


@dataclass(frozen=True)
class CollectByTransaction:
    extract: ExtractFn
    transform: TransformFn
    dims: Tuple[ChunkDim, ...] = (ChunkDim.TRANSACTION_HASH,)


@dataclass(frozen=True)
class Collector:
    datatype: Datatype
    columns: Type[ColumnData]
    by_block: Optional[CollectByBlock] = None
    by_transaction: Optional[CollectByTransaction] = None

    def chunk_dims(self) -> Tuple[ChunkDim, ...]:
        dims = []
        if self.by_block is not None:
            dims.append(ChunkDim.BLOCK_NUMBER)
        if self.by_transaction is not None:
            dims.append(ChunkDim.TRANSACTION_HASH)
        return tuple(dims)


def get_schema(schemas: Schemas, datatype: Datatype) -> Table:
    schema = schemas.get(datatype)
    if schema is None:
        raise MissingSchemaError(f"schema missing for {datatype.value}")
    return schema


__all__ = [
    "CollectByBlock",
    "CollectByTransaction",
    "Collector",
    "get_schema",
]
