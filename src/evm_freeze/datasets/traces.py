import logging
from typing import List, Optional, Tuple

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..fetcher import Fetcher
from ..params import Params
from ..types import (
    CallAction,
    CallResult,
    CreateAction,
    CreateResult,
    RewardAction,
    SuicideAction,
    Trace,
)

logger = logging.getLogger(__name__)


class TraceColumns(ColumnData):
    datatype = Datatype.TRACES
    column_types = {
        "action_type": ColumnType.STRING,
        "action_from": ColumnType.BINARY,
        "action_to": ColumnType.BINARY,
        "action_value": ColumnType.U256,
        "action_gas": ColumnType.UINT64,
        "action_input": ColumnType.BINARY,
        "action_call_type": ColumnType.STRING,
        "action_init": ColumnType.BINARY,
        "action_author": ColumnType.BINARY,
        "action_reward_type": ColumnType.STRING,
        "result_gas_used": ColumnType.UINT64,
        "result_output": ColumnType.BINARY,
        "result_code": ColumnType.BINARY,
        "result_address": ColumnType.BINARY,
        "trace_address": ColumnType.STRING,
        "subtraces": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT32,
        "transaction_hash": ColumnType.BINARY,
        "block_number": ColumnType.UINT32,
        "block_hash": ColumnType.BINARY,
        "error": ColumnType.STRING,
        "chain_id": ColumnType.UINT64,
    }
    default_sort = ("block_number", "transaction_index")


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_block(params.get_block_number())


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_transaction(params.get_transaction_hash())


def transform(traces: List[Trace], columns: TraceColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.TRACES)
    process_traces(traces, columns, schema)


def filter_failed_traces(traces: List[Trace]) -> List[Trace]:
    """Drop traces that errored together with all of their sub-traces"""
    error_address: Optional[Tuple[int, ...]] = None
    filtered = []
    for trace in traces:
        # each root trace starts a new transaction
        if len(trace.trace_address) == 0:
            error_address = None

        if error_address is not None:
            if trace.trace_address[: len(error_address)] == error_address:
                continue
            error_address = None

        if trace.error is not None:
            error_address = trace.trace_address
        else:
            filtered.append(trace)

    return filtered


def action_fields(trace: Trace) -> dict:
    match trace.action:
        case CallAction() as action:
            return {
                "action_type": "call",
                "action_from": action.from_address,
                "action_to": action.to_address,
                "action_value": action.value,
                "action_gas": action.gas,
                "action_input": action.input,
                "action_call_type": action.call_type,
            }
        case CreateAction() as action:
            return {
                "action_type": "create",
                "action_from": action.from_address,
                "action_value": action.value,
                "action_gas": action.gas,
                "action_init": action.init,
            }
        case SuicideAction() as action:
            return {
                "action_type": "suicide",
                "action_from": action.address,
                "action_to": action.refund_address,
                "action_value": action.balance,
            }
        case RewardAction() as action:
            return {
                "action_type": "reward",
                "action_author": action.author,
                "action_value": action.value,
                "action_reward_type": action.reward_type,
            }
        case _:
            raise ValueError(f"unknown trace action: {trace.action}")


def result_fields(trace: Trace) -> dict:
    match trace.result:
        case CallResult() as result:
            return {"result_gas_used": result.gas_used, "result_output": result.output}
        case CreateResult() as result:
            return {
                "result_gas_used": result.gas_used,
                "result_code": result.code,
                "result_address": result.address,
            }
        case _:
            return {}


def process_traces(traces: List[Trace], columns: TraceColumns, schema: Table) -> None:
    for trace in traces:
        fields = action_fields(trace)
        fields.update(result_fields(trace))

        columns.n_rows += 1
        for name in TraceColumns.column_types:
            if name.startswith("action_") or name.startswith("result_"):
                columns.store(schema, name, fields.get(name))
        columns.store(
            schema, "trace_address", " ".join(str(i) for i in trace.trace_address)
        )
        columns.store(schema, "subtraces", trace.subtraces)
        columns.store(schema, "transaction_index", trace.transaction_position)
        columns.store(schema, "transaction_hash", trace.transaction_hash)
        columns.store(schema, "block_number", trace.block_number)
        columns.store(schema, "block_hash", trace.block_hash)
        columns.store(schema, "error", trace.error)
        columns.store(schema, "chain_id", schema.chain_id)


COLLECTOR = Collector(
    datatype=Datatype.TRACES,
    columns=TraceColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
