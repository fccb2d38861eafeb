import dataclasses
import logging
from typing import List

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..fetcher import Fetcher
from ..params import Params
from ..types import Log

logger = logging.getLogger(__name__)

# keccak256("Transfer(address,address,uint256)")
EVENT_TRANSFER = bytes.fromhex(
    "ddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
)


class Erc721TransferColumns(ColumnData):
    datatype = Datatype.ERC721_TRANSFERS
    column_types = {
        "block_number": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT32,
        "log_index": ColumnType.UINT32,
        "transaction_hash": ColumnType.BINARY,
        "erc721": ColumnType.BINARY,
        "from_address": ColumnType.BINARY,
        "to_address": ColumnType.BINARY,
        "token_id": ColumnType.U256,
    }
    default_sort = ("block_number", "log_index")


def has_transfer_shape(log: Log) -> bool:
    return len(log.topics) == 3 and len(log.data) == 32


def is_erc721_transfer(log: Log) -> bool:
    return has_transfer_shape(log) and log.topics[0] == EVENT_TRANSFER


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Log]:
    log_filter = dataclasses.replace(
        params.log_filter(), topics=(EVENT_TRANSFER, None, None, None)
    )
    logs = await fetcher.get_logs(log_filter)
    return [log for log in logs if has_transfer_shape(log)]


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Log]:
    logs = await fetcher.get_transaction_logs(params.get_transaction_hash())
    return [log for log in logs if is_erc721_transfer(log)]


def transform(logs: List[Log], columns: Erc721TransferColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.ERC721_TRANSFERS)
    process_erc721_transfers(logs, columns, schema)


def process_erc721_transfers(
    logs: List[Log], columns: Erc721TransferColumns, schema: Table
) -> None:
    for log in logs:
        if not has_transfer_shape(log):
            continue
        # logs of pending blocks lack their position
        if (
            log.block_number is None
            or log.transaction_hash is None
            or log.transaction_index is None
            or log.log_index is None
        ):
            continue

        columns.n_rows += 1
        columns.store(schema, "block_number", log.block_number)
        columns.store(schema, "transaction_index", log.transaction_index)
        columns.store(schema, "log_index", log.log_index)
        columns.store(schema, "transaction_hash", log.transaction_hash)
        columns.store(schema, "erc721", log.address)
        columns.store(schema, "from_address", log.topics[1][12:])
        columns.store(schema, "to_address", log.topics[2][12:])
        columns.store(schema, "token_id", int.from_bytes(log.data, "big"))


COLLECTOR = Collector(
    datatype=Datatype.ERC721_TRANSFERS,
    columns=Erc721TransferColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
