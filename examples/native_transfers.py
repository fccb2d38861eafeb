# Install the package first: pip install -e .
#
# You can run this script with:
# RPC_URL=http://localhost:8545 python examples/native_transfers.py
# The node must expose the trace_ namespace (erigon, reth, nethermind).
################################################################################
# Import dependencies

import asyncio
import logging
import os

import polars as pl

from evm_freeze import (
    ChunkDim,
    Datatype,
    RpcFetcher,
    block_requests,
    freeze,
    freeze_schemas,
    make_table,
)
from evm_freeze.config import ColumnEncoding, U256Type
from evm_freeze.utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

################################################################################
# Configuration

RPC_URL = os.environ.get("RPC_URL", "https://ethereum-rpc.publicnode.com")
FROM_BLOCK = 18_000_000
TO_BLOCK = 18_000_004

################################################################################
# Main


async def main():
    schemas = freeze_schemas(
        {
            Datatype.NATIVE_TRANSFERS: make_table(
                Datatype.NATIVE_TRANSFERS,
                binary_encoding=ColumnEncoding.HEX,
                default_u256_type=U256Type.DECIMAL_STRING,
                chain_id=1,
            ),
        }
    )
    fetcher = RpcFetcher(RPC_URL, max_concurrent_requests=8)

    try:
        df = await freeze(
            Datatype.NATIVE_TRANSFERS,
            block_requests(FROM_BLOCK, TO_BLOCK),
            fetcher,
            schemas,
            by=ChunkDim.BLOCK_NUMBER,
            retries=2,
        )
    finally:
        await fetcher.aclose()

    logger.info(f"collected {df.height} native transfers")

    # Largest transfers first
    top = df.with_columns(pl.col("value").cast(pl.Float64).alias("value_wei")).sort(
        "value_wei", descending=True
    )
    print(top.head(10))


if __name__ == "__main__":
    asyncio.run(main())
