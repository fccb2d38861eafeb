import logging
from typing import List, Tuple

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..errors import MalformedDataError
from ..fetcher import Fetcher
from ..params import Params
from ..types import (
    ZERO_ADDRESS,
    CallAction,
    CreateAction,
    CreateResult,
    RewardAction,
    SuicideAction,
    Trace,
)

logger = logging.getLogger(__name__)


class NativeTransferColumns(ColumnData):
    datatype = Datatype.NATIVE_TRANSFERS
    column_types = {
        "block_number": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT32,
        "transfer_index": ColumnType.UINT32,
        "transaction_hash": ColumnType.BINARY,
        "from_address": ColumnType.BINARY,
        "to_address": ColumnType.BINARY,
        "value": ColumnType.U256,
        "chain_id": ColumnType.UINT64,
    }
    default_sort = ("block_number", "transfer_index")


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_block(params.get_block_number())


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_transaction(params.get_transaction_hash())


def transform(
    traces: List[Trace], columns: NativeTransferColumns, schemas: Schemas
) -> None:
    schema = get_schema(schemas, Datatype.NATIVE_TRANSFERS)
    process_native_transfers(traces, columns, schema)


def transfer_values(trace: Trace) -> Tuple[bytes, bytes, int]:
    match trace.action:
        case CallAction() as action:
            return action.from_address, action.to_address, action.value
        case CreateAction() as action:
            if not isinstance(trace.result, CreateResult):
                raise MalformedDataError("create trace without a create result")
            return action.from_address, trace.result.address, action.value
        case SuicideAction() as action:
            return action.address, action.refund_address, action.balance
        case RewardAction() as action:
            return ZERO_ADDRESS, action.author, action.value
        case _:
            raise ValueError(f"unknown trace action: {trace.action}")


def process_native_transfers(
    traces: List[Trace], columns: NativeTransferColumns, schema: Table
) -> None:
    for transfer_index, trace in enumerate(traces):
        from_address, to_address, value = transfer_values(trace)

        columns.n_rows += 1
        columns.store(schema, "block_number", trace.block_number)
        columns.store(schema, "transaction_index", trace.transaction_position)
        columns.store(schema, "transfer_index", transfer_index)
        columns.store(schema, "transaction_hash", trace.transaction_hash)
        columns.store(schema, "from_address", from_address)
        columns.store(schema, "to_address", to_address)
        columns.store(schema, "value", value)
        columns.store(schema, "chain_id", schema.chain_id)


COLLECTOR = Collector(
    datatype=Datatype.NATIVE_TRANSFERS,
    columns=NativeTransferColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
