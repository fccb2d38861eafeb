from . import config, datasets, errors, types, utils
from .config import ChunkDim, Datatype, Table, freeze_schemas
from .fetcher import Fetcher
from .freeze import collect_by_block, collect_by_transaction, collect_chunk, freeze
from .log_decoder import LogDecoder
from .params import Params, block_requests, transaction_requests
from .rpc import RpcFetcher
from .schemas import make_table

__all__ = [
    "config",
    "datasets",
    "errors",
    "types",
    "utils",
    "ChunkDim",
    "Datatype",
    "Table",
    "freeze_schemas",
    "Fetcher",
    "RpcFetcher",
    "LogDecoder",
    "Params",
    "block_requests",
    "transaction_requests",
    "make_table",
    "collect_by_block",
    "collect_by_transaction",
    "collect_chunk",
    "freeze",
]
