import asyncio
import logging
from typing import NamedTuple, Optional

from eth_abi import decode as abi_decode
from eth_abi.exceptions import DecodingError

from ..collect import CollectByBlock, Collector, get_schema
from ..columns import ColumnData
from ..config import ChunkDim, ColumnType, Datatype, Schemas
from ..errors import RpcError
from ..fetcher import Fetcher
from ..params import Params

logger = logging.getLogger(__name__)

NAME_SELECTOR = bytes.fromhex("06fdde03")
SYMBOL_SELECTOR = bytes.fromhex("95d89b41")
DECIMALS_SELECTOR = bytes.fromhex("313ce567")


class Erc20Metadata(NamedTuple):
    block_number: int
    address: bytes
    name: Optional[str]
    symbol: Optional[str]
    decimals: Optional[int]


class Erc20MetadataColumns(ColumnData):
    datatype = Datatype.ERC20_METADATA
    column_types = {
        "block_number": ColumnType.UINT32,
        "erc20": ColumnType.BINARY,
        "name": ColumnType.STRING,
        "symbol": ColumnType.STRING,
        "decimals": ColumnType.UINT32,
    }
    default_sort = ("block_number", "erc20")


def decode_string(output: Optional[bytes]) -> Optional[str]:
    """Decode an ABI string return value, or a bytes32 one as older tokens use"""
    if not output:
        return None

    try:
        (value,) = abi_decode(["string"], output)
    except (DecodingError, UnicodeDecodeError):
        if len(output) != 32:
            return None
        try:
            value = output.rstrip(b"\x00").decode("utf-8")
        except UnicodeDecodeError:
            return None

    return value or None


def decode_decimals(output: Optional[bytes]) -> Optional[int]:
    if not output:
        return None

    try:
        (value,) = abi_decode(["uint256"], output)
    except DecodingError:
        return None

    if value >= 2**32:
        return None
    return value


async def call_or_none(
    fetcher: Fetcher, address: bytes, call_data: bytes, block_number: int
) -> Optional[bytes]:
    # contracts are free to not implement any of the metadata calls
    try:
        return await fetcher.call(address, call_data, block_number)
    except RpcError as e:
        logger.debug(f"call {call_data.hex()} to 0x{address.hex()} failed: {e}")
        return None


async def extract(params: Params, fetcher: Fetcher, schemas: Schemas) -> Erc20Metadata:
    block_number = params.get_block_number()
    address = params.get_address()

    name, symbol, decimals = await asyncio.gather(
        call_or_none(fetcher, address, NAME_SELECTOR, block_number),
        call_or_none(fetcher, address, SYMBOL_SELECTOR, block_number),
        call_or_none(fetcher, address, DECIMALS_SELECTOR, block_number),
    )

    return Erc20Metadata(
        block_number=block_number,
        address=address,
        name=decode_string(name),
        symbol=decode_string(symbol),
        decimals=decode_decimals(decimals),
    )


def transform(
    response: Erc20Metadata, columns: Erc20MetadataColumns, schemas: Schemas
) -> None:
    schema = get_schema(schemas, Datatype.ERC20_METADATA)

    columns.n_rows += 1
    columns.store(schema, "block_number", response.block_number)
    columns.store(schema, "erc20", response.address)
    columns.store(schema, "name", response.name)
    columns.store(schema, "symbol", response.symbol)
    columns.store(schema, "decimals", response.decimals)


COLLECTOR = Collector(
    datatype=Datatype.ERC20_METADATA,
    columns=Erc20MetadataColumns,
    by_block=CollectByBlock(
        extract=extract,
        transform=transform,
        dims=(ChunkDim.BLOCK_NUMBER, ChunkDim.ADDRESS),
    ),
)
