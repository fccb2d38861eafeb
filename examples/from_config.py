# You can run this script with:
# RPC_URL=http://localhost:8545 python examples/from_config.py examples/config.yaml 18000000 18000009
################################################################################

import asyncio
import logging
import sys

from evm_freeze import block_requests, freeze
from evm_freeze.parser import build_schemas, create_fetcher, parse_config
from evm_freeze.utils import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


async def main(config_path: str, from_block: int, to_block: int):
    config = parse_config(config_path)
    schemas = build_schemas(config)
    fetcher = create_fetcher(config)
    requests = block_requests(from_block, to_block)

    try:
        for datatype in schemas:
            df = await freeze(
                datatype,
                requests,
                fetcher,
                schemas,
                max_concurrent_chunks=config.max_concurrent_chunks,
                retries=config.retries,
            )
            logger.info(f"{datatype.value}: {df.height} rows")
            print(df.head(5))
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        await fetcher.aclose()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1], int(sys.argv[2]), int(sys.argv[3])))
