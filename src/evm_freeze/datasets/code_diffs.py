import logging
from typing import Optional, Tuple

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..fetcher import Fetcher
from ..params import Params
from ..types import ZERO_HASH, Born, Changed, Died, Diff, Same, StateDiffs

logger = logging.getLogger(__name__)


class CodeDiffColumns(ColumnData):
    datatype = Datatype.CODE_DIFFS
    column_types = {
        "block_number": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT64,
        "transaction_hash": ColumnType.BINARY,
        "address": ColumnType.BINARY,
        "from_value": ColumnType.BINARY,
        "to_value": ColumnType.BINARY,
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


def transform(response: StateDiffs, columns: CodeDiffColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.CODE_DIFFS)
    process_code_diffs(response, columns, schema)


def code_diff_values(diff: Diff) -> Tuple[bytes, bytes]:
    match diff:
        case Same():
            # diff present but unchanged, still emitted with zero sentinels
            return ZERO_HASH, ZERO_HASH
        case Born(value=value):
            return ZERO_HASH, value
        case Died(value=value):
            return value, ZERO_HASH
        case Changed(from_value=from_value, to_value=to_value):
            return from_value, to_value
        case _:
            raise ValueError(f"unknown diff: {diff}")


def process_code_diffs(
    response: StateDiffs, columns: CodeDiffColumns, schema: Table
) -> None:
    block_number, transaction_hash, traces = response
    for index, trace in enumerate(traces):
        if trace.state_diff is None:
            continue
        for address, account_diff in trace.state_diff.items():
            process_code_diff(
                address,
                account_diff.code,
                block_number,
                transaction_hash or trace.transaction_hash,
                index,
                columns,
                schema,
            )


def process_code_diff(
    address: bytes,
    diff: Diff,
    block_number: Optional[int],
    transaction_hash: Optional[bytes],
    transaction_index: int,
    columns: CodeDiffColumns,
    schema: Table,
) -> None:
    from_value, to_value = code_diff_values(diff)

    columns.n_rows += 1
    columns.store(schema, "block_number", block_number)
    columns.store(schema, "transaction_index", transaction_index)
    columns.store(schema, "transaction_hash", transaction_hash)
    columns.store(schema, "address", address)
    columns.store(schema, "from_value", from_value)
    columns.store(schema, "to_value", to_value)


COLLECTOR = Collector(
    datatype=Datatype.CODE_DIFFS,
    columns=CodeDiffColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
