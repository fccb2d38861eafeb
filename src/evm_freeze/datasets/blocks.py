import logging

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..errors import MalformedDataError, NotFoundError
from ..fetcher import Fetcher
from ..params import Params
from ..types import Block

logger = logging.getLogger(__name__)


class BlockColumns(ColumnData):
    datatype = Datatype.BLOCKS
    column_types = {
        "hash": ColumnType.BINARY,
        "parent_hash": ColumnType.BINARY,
        "author": ColumnType.BINARY,
        "state_root": ColumnType.BINARY,
        "transactions_root": ColumnType.BINARY,
        "receipts_root": ColumnType.BINARY,
        "block_number": ColumnType.UINT32,
        "gas_used": ColumnType.UINT64,
        "extra_data": ColumnType.BINARY,
        "logs_bloom": ColumnType.BINARY,
        "timestamp": ColumnType.UINT32,
        "total_difficulty": ColumnType.U256,
        "size": ColumnType.UINT32,
        "base_fee_per_gas": ColumnType.UINT64,
    }
    default_exclude = ("logs_bloom", "transactions_root", "receipts_root", "state_root")
    default_sort = ("block_number",)


async def extract_by_block(params: Params, fetcher: Fetcher, schemas: Schemas) -> Block:
    block = await fetcher.get_block(params.get_block_number())
    if block is None:
        raise NotFoundError("block not found")
    return block


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> Block:
    transaction = await fetcher.get_transaction(params.get_transaction_hash())
    if transaction is None:
        raise NotFoundError("transaction not found")
    if transaction.block_hash is None:
        raise NotFoundError("transaction is not included in a block")

    block = await fetcher.get_block_by_hash(transaction.block_hash)
    if block is None:
        raise NotFoundError("block not found")
    return block


def transform(block: Block, columns: BlockColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.BLOCKS)
    process_block(block, columns, schema)


def process_block(block: Block, columns: BlockColumns, schema: Table) -> None:
    if block.hash is None:
        raise MalformedDataError("block hash required")
    if block.author is None:
        raise MalformedDataError("block author required")

    columns.n_rows += 1
    columns.store(schema, "hash", block.hash)
    columns.store(schema, "parent_hash", block.parent_hash)
    columns.store(schema, "author", block.author)
    columns.store(schema, "state_root", block.state_root)
    columns.store(schema, "transactions_root", block.transactions_root)
    columns.store(schema, "receipts_root", block.receipts_root)
    columns.store(schema, "block_number", block.number)
    columns.store(schema, "gas_used", block.gas_used)
    columns.store(schema, "extra_data", block.extra_data)
    columns.store(schema, "logs_bloom", block.logs_bloom)
    columns.store(schema, "timestamp", block.timestamp)
    columns.store(schema, "total_difficulty", block.total_difficulty)
    columns.store(schema, "size", block.size)
    columns.store(schema, "base_fee_per_gas", block.base_fee_per_gas)


COLLECTOR = Collector(
    datatype=Datatype.BLOCKS,
    columns=BlockColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
