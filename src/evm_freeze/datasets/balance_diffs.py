import logging
from typing import Tuple

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..fetcher import Fetcher
from ..params import Params
from ..types import Born, Changed, Died, Diff, Same, StateDiffs

logger = logging.getLogger(__name__)


class BalanceDiffColumns(ColumnData):
    datatype = Datatype.BALANCE_DIFFS
    column_types = {
        "block_number": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT64,
        "transaction_hash": ColumnType.BINARY,
        "address": ColumnType.BINARY,
        "from_value": ColumnType.U256,
        "to_value": ColumnType.U256,
    }
    default_sort = ("block_number", "transaction_index")


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> StateDiffs:
    return await fetcher.trace_block_state_diffs(params.get_block_number())


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> StateDiffs:
    return await fetcher.trace_transaction_state_diffs(params.get_transaction_hash())


def transform(
    response: StateDiffs, columns: BalanceDiffColumns, schemas: Schemas
) -> None:
    schema = get_schema(schemas, Datatype.BALANCE_DIFFS)
    process_balance_diffs(response, columns, schema)


def balance_diff_values(diff: Diff) -> Tuple[int, int]:
    match diff:
        case Same():
            return 0, 0
        case Born(value=value):
            return 0, value
        case Died(value=value):
            return value, 0
        case Changed(from_value=from_value, to_value=to_value):
            return from_value, to_value
        case _:
            raise ValueError(f"unknown diff: {diff}")


def process_balance_diffs(
    response: StateDiffs, columns: BalanceDiffColumns, schema: Table
) -> None:
    block_number, transaction_hash, traces = response
    for index, trace in enumerate(traces):
        if trace.state_diff is None:
            continue
        for address, account_diff in trace.state_diff.items():
            from_value, to_value = balance_diff_values(account_diff.balance)

            columns.n_rows += 1
            columns.store(schema, "block_number", block_number)
            columns.store(schema, "transaction_index", index)
            columns.store(
                schema, "transaction_hash", transaction_hash or trace.transaction_hash
            )
            columns.store(schema, "address", address)
            columns.store(schema, "from_value", from_value)
            columns.store(schema, "to_value", to_value)


COLLECTOR = Collector(
    datatype=Datatype.BALANCE_DIFFS,
    columns=BalanceDiffColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
