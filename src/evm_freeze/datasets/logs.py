import dataclasses
import logging
from typing import Dict, List

import pyarrow as pa

from ..collect import CollectByBlock, CollectByTransaction, Collector, get_schema
from ..columns import ColumnData
from ..config import ColumnType, Datatype, Schemas, Table
from ..errors import NotFoundError
from ..fetcher import Fetcher
from ..params import Params
from ..types import Log

logger = logging.getLogger(__name__)

EVENT_COLUMN_PREFIX = "event__"


class LogColumns(ColumnData):
    datatype = Datatype.LOGS
    column_types = {
        "block_number": ColumnType.UINT32,
        "transaction_index": ColumnType.UINT32,
        "log_index": ColumnType.UINT32,
        "transaction_hash": ColumnType.BINARY,
        "address": ColumnType.BINARY,
        "topic0": ColumnType.BINARY,
        "topic1": ColumnType.BINARY,
        "topic2": ColumnType.BINARY,
        "topic3": ColumnType.BINARY,
        "data": ColumnType.BINARY,
    }
    default_sort = ("block_number", "log_index")

    def __init__(self):
        super().__init__()
        # decoded event arguments, one array per processed batch
        self.event_cols: Dict[str, List[pa.Array]] = {}

    def extra_arrays(self, schema: Table) -> Dict[str, pa.Array]:
        decoder = schema.log_decoder
        if decoder is None:
            return {}

        out = {}
        for field in decoder.schema:
            chunks = self.event_cols.get(field.name, [])
            if chunks:
                array = pa.concat_arrays(chunks)
            else:
                array = pa.array([], type=field.type)
            out[EVENT_COLUMN_PREFIX + field.name] = array

        return out


async def extract_by_block(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Log]:
    schema = get_schema(schemas, Datatype.LOGS)

    log_filter = params.log_filter()
    if schema.log_decoder is not None and log_filter.topics[0] is None:
        log_filter = dataclasses.replace(
            log_filter, topics=(schema.log_decoder.topic0, *log_filter.topics[1:])
        )

    return await fetcher.get_logs(log_filter)


async def extract_by_transaction(
    params: Params, fetcher: Fetcher, schemas: Schemas
) -> List[Log]:
    receipt = await fetcher.get_transaction_receipt(params.get_transaction_hash())
    if receipt is None:
        raise NotFoundError("transaction receipt not found")
    return list(receipt.logs)


def transform(logs: List[Log], columns: LogColumns, schemas: Schemas) -> None:
    schema = get_schema(schemas, Datatype.LOGS)
    process_logs(logs, columns, schema)


def process_logs(logs: List[Log], columns: LogColumns, schema: Table) -> None:
    accepted = []
    for log in logs:
        if (
            log.block_number is None
            or log.transaction_hash is None
            or log.transaction_index is None
            or log.log_index is None
        ):
            continue
        accepted.append(log)

        columns.n_rows += 1
        columns.store(schema, "block_number", log.block_number)
        columns.store(schema, "transaction_index", log.transaction_index)
        columns.store(schema, "log_index", log.log_index)
        columns.store(schema, "transaction_hash", log.transaction_hash)
        columns.store(schema, "address", log.address)
        columns.store(schema, "data", log.data)

        for i in range(4):
            topic = log.topics[i] if i < len(log.topics) else None
            columns.store(schema, f"topic{i}", topic)

    if schema.log_decoder is not None:
        decoded = schema.log_decoder.parse_logs(accepted)
        for name, array in decoded.items():
            columns.event_cols.setdefault(name, []).append(array)


COLLECTOR = Collector(
    datatype=Datatype.LOGS,
    columns=LogColumns,
    by_block=CollectByBlock(extract=extract_by_block, transform=transform),
    by_transaction=CollectByTransaction(
        extract=extract_by_transaction, transform=transform
    ),
)
