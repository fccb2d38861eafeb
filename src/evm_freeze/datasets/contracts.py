import logging
from typing import List

from eth_utils import keccak

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
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
from .traces import filter_failed_traces

logger = logging.getLogger(__name__)


class ContractColumns(ColumnData):
    datatype = Datatype.CONTRACTS
    column_types = {
        "block_number": ColumnType.UINT32,
        "create_index": ColumnType.UINT32,
        "transaction_hash": ColumnType.BINARY,
        "contract_address": ColumnType.BINARY,
        "deployer": ColumnType.BINARY,
        "factory": ColumnType.BINARY,
        "init_code": ColumnType.BINARY,
        "code": ColumnType.BINARY,
        "init_code_hash": ColumnType.BINARY,
        "code_hash": ColumnType.BINARY,
        "chain_id": ColumnType.UINT64,
    }
    default_sort = ("block_number", "create_index")


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_block(params.get_block_number())


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Trace]:
    return await fetcher.trace_transaction(params.get_transaction_hash())


def transform(traces: List[Trace], columns: ContractColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.CONTRACTS)
    process_contracts(traces, columns, schema)


def next_deployer(deployer: bytes, trace: Trace) -> bytes:
    """Origin of the current top-level call, inherited by nested traces"""
    if len(trace.trace_address) > 0:
        return deployer

    match trace.action:
        case CallAction(from_address=origin) | CreateAction(from_address=origin):
            return origin
        case SuicideAction(refund_address=origin):
            return origin
        case RewardAction(author=origin):
            return origin
        case _:
            raise ValueError(f"unknown trace action: {trace.action}")


def process_contracts(traces: List[Trace], columns: ContractColumns, schema: Table) -> None:
    deployer = ZERO_ADDRESS
    create_index = 0
    for trace in filter_failed_traces(traces):
        deployer = next_deployer(deployer, trace)

        action, result = trace.action, trace.result
        if not isinstance(action, CreateAction) or not isinstance(result, CreateResult):
            continue

        columns.n_rows += 1
        columns.store(schema, "block_number", trace.block_number)
        columns.store(schema, "create_index", create_index)
        columns.store(schema, "transaction_hash", trace.transaction_hash)
        columns.store(schema, "contract_address", result.address)
        columns.store(schema, "deployer", deployer)
        columns.store(schema, "factory", action.from_address)
        columns.store(schema, "init_code", action.init)
        columns.store(schema, "code", result.code)
        columns.store(schema, "init_code_hash", keccak(action.init))
        columns.store(schema, "code_hash", keccak(result.code))
        columns.store(schema, "chain_id", schema.chain_id)
        create_index += 1


COLLECTOR = Collector(
    datatype=Datatype.CONTRACTS,
    columns=ContractColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
