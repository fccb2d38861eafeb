import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from .log_decoder import LogDecoder

logger = logging.getLogger(__name__)


class Datatype(str, Enum):
    BLOCKS = "blocks"
    LOGS = "logs"
    TRACES = "traces"
    CODE_DIFFS = "code_diffs"
    BALANCE_DIFFS = "balance_diffs"
    CONTRACTS = "contracts"
    ERC20_METADATA = "erc20_metadata"
    ERC721_TRANSFERS = "erc721_transfers"
    NATIVE_TRANSFERS = "native_transfers"


class ChunkDim(str, Enum):
    BLOCK_NUMBER = "block_number"
    TRANSACTION_HASH = "transaction_hash"
    ADDRESS = "address"


class ColumnType(str, Enum):
    UINT32 = "uint32"
    UINT64 = "uint64"
    BOOLEAN = "boolean"
    STRING = "string"
    BINARY = "binary"
    U256 = "u256"


class ColumnEncoding(str, Enum):
    BINARY = "binary"
    HEX = "hex"


class U256Type(str, Enum):
    BINARY = "binary"
    HEX = "hex"
    DECIMAL_STRING = "decimal_string"


@dataclass(frozen=True)
class Table:
    datatype: Datatype
    columns: Tuple[str, ...]
    binary_encoding: ColumnEncoding = ColumnEncoding.BINARY
    column_encodings: Mapping[str, ColumnEncoding] = field(default_factory=dict)
    u256_types: Mapping[str, U256Type] = field(default_factory=dict)
    default_u256_type: U256Type = U256Type.BINARY
    sort_columns: Tuple[str, ...] = ()
    chain_id: Optional[int] = None
    log_decoder: Optional[LogDecoder] = None

    def has_column(self, name: str) -> bool:
        return name in self.columns

    def column_encoding(self, name: str) -> ColumnEncoding:
        return self.column_encodings.get(name, self.binary_encoding)

    def u256_type(self, name: str) -> U256Type:
        return self.u256_types.get(name, self.default_u256_type)


Schemas = Mapping[Datatype, Table]


def freeze_schemas(tables: Dict[Datatype, Table]) -> Schemas:
    """Build the read-only schema registry shared by every chunk of a run"""
    for datatype, table in tables.items():
        if datatype != table.datatype:
            raise ValueError(
                f"table for {table.datatype.value} registered under {datatype.value}"
            )

    logger.debug(f"schema registry: {[d.value for d in tables]}")

    return MappingProxyType(dict(tables))


__all__ = [
    "Datatype",
    "ChunkDim",
    "ColumnType",
    "ColumnEncoding",
    "U256Type",
    "Table",
    "Schemas",
    "freeze_schemas",
]
