import asyncio
import logging
from typing import List, Sequence

import polars as pl

from .collect import get_schema
from .config import ChunkDim, Datatype, Schemas
from .dataframes import sort_df
from .datasets import get_collector
from .errors import FetchError
from .fetcher import Fetcher
from .params import Params

logger = logging.getLogger(__name__)


async def collect_by_block(
    datatype: Datatype, params: Params, fetcher: Fetcher, schemas: Schemas
) -> pl.DataFrame:
    collector = get_collector(datatype)
    if collector.by_block is None:
        raise ValueError(f"{datatype.value} can not be collected by block")

    return await _collect(datatype, collector.by_block, params, fetcher, schemas)


async def collect_by_transaction(
    datatype: Datatype, params: Params, fetcher: Fetcher, schemas: Schemas
) -> pl.DataFrame:
    collector = get_collector(datatype)
    if collector.by_transaction is None:
        raise ValueError(f"{datatype.value} can not be collected by transaction")

    return await _collect(datatype, collector.by_transaction, params, fetcher, schemas)


async def _collect(datatype, contract, params, fetcher, schemas) -> pl.DataFrame:
    missing = params.missing_dims(contract.dims)
    if missing:
        raise ValueError(
            f"{datatype.value} request is missing {[d.value for d in missing]}"
        )

    schema = get_schema(schemas, datatype)

    response = await contract.extract(params, fetcher, schemas)

    columns = get_collector(datatype).columns()
    contract.transform(response, columns, schemas)

    logger.debug(f"collected {columns.n_rows} {datatype.value} rows for {params}")

    return columns.to_df(schema)


async def collect_chunk(
    datatype: Datatype,
    params: Params,
    fetcher: Fetcher,
    schemas: Schemas,
    by: ChunkDim = ChunkDim.BLOCK_NUMBER,
    retries: int = 0,
) -> pl.DataFrame:
    """Run one chunk, retrying the whole chunk on transport failures"""
    attempt = 0
    while True:
        try:
            if by == ChunkDim.TRANSACTION_HASH:
                return await collect_by_transaction(datatype, params, fetcher, schemas)
            return await collect_by_block(datatype, params, fetcher, schemas)
        except FetchError as e:
            if attempt >= retries:
                raise
            attempt += 1
            logger.warning(
                f"retrying {datatype.value} chunk {params} ({attempt}/{retries}): {e}"
            )


async def freeze(
    datatype: Datatype,
    requests: Sequence[Params],
    fetcher: Fetcher,
    schemas: Schemas,
    by: ChunkDim = ChunkDim.BLOCK_NUMBER,
    max_concurrent_chunks: int = 4,
    retries: int = 0,
) -> pl.DataFrame:
    """Collect every request concurrently and merge them into one sorted DataFrame"""
    schema = get_schema(schemas, datatype)
    semaphore = asyncio.Semaphore(max_concurrent_chunks)

    async def run(params: Params) -> pl.DataFrame:
        async with semaphore:
            return await collect_chunk(
                datatype, params, fetcher, schemas, by=by, retries=retries
            )

    logger.info(f"collecting {len(requests)} {datatype.value} chunks by {by.value}")

    tasks = [
        asyncio.create_task(run(params), name=f"{datatype.value} {params}")
        for params in requests
    ]

    try:
        fragments: List[pl.DataFrame] = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise

    if fragments:
        df = merge_fragments(fragments)
    else:
        df = get_collector(datatype).columns().to_df(schema)

    logger.info(f"collected {df.height} {datatype.value} rows")

    return sort_df(df, schema)


def merge_fragments(fragments: List[pl.DataFrame]) -> pl.DataFrame:
    columns = fragments[0].columns
    for fragment in fragments[1:]:
        if fragment.columns != columns:
            raise ValueError(
                f"chunk columns differ: {fragment.columns} != {columns}"
            )

    return pl.concat(fragments, how="vertical")


__all__ = [
    "collect_by_block",
    "collect_by_transaction",
    "collect_chunk",
    "freeze",
    "merge_fragments",
]
