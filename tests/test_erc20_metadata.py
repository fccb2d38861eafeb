import pytest

from evm_freeze import Datatype, Params, collect_by_block, collect_by_transaction
from evm_freeze.config import freeze_schemas
from evm_freeze.datasets.erc20_metadata import (
    DECIMALS_SELECTOR,
    NAME_SELECTOR,
    SYMBOL_SELECTOR,
    decode_decimals,
    decode_string,
)
from evm_freeze.errors import FetchError, RpcError
from evm_freeze.schemas import make_table

from fakes import address, word

TOKEN = address(0x20)


def abi_string(value: str) -> bytes:
    raw = value.encode()
    padding = b"\x00" * (-len(raw) % 32)
    return word(32) + word(len(raw)) + raw + padding


@pytest.fixture
def schemas():
    return freeze_schemas({Datatype.ERC20_METADATA: make_table(Datatype.ERC20_METADATA)})


def test_decode_string():
    assert decode_string(abi_string("Wrapped Ether")) == "Wrapped Ether"
    assert decode_string(b"MKR".ljust(32, b"\x00")) == "MKR"
    assert decode_string(b"") is None
    assert decode_string(None) is None
    assert decode_string(bytes(32)) is None
    assert decode_string(b"\xff\xfe".ljust(32, b"\x00")) is None


def test_decode_string_rejects_malformed_output():
    # declared length runs past the payload
    assert decode_string(word(32) + word(100) + b"ABC".ljust(32, b"\x00")) is None
    # offset points outside the payload
    assert decode_string(word(4096) + word(3) + b"ABC".ljust(32, b"\x00")) is None
    assert decode_string(abi_string("Wrapped Ether")[:70]) is None
    assert decode_string(b"MKR") is None


def test_decode_decimals():
    assert decode_decimals(word(18)) == 18
    assert decode_decimals(b"") is None
    assert decode_decimals(word(2**32)) is None
    assert decode_decimals(b"\x12") is None


@pytest.mark.asyncio
async def test_full_metadata(fetcher, schemas):
    fetcher.call_results[(TOKEN, NAME_SELECTOR)] = abi_string("Wrapped Ether")
    fetcher.call_results[(TOKEN, SYMBOL_SELECTOR)] = abi_string("WETH")
    fetcher.call_results[(TOKEN, DECIMALS_SELECTOR)] = word(18)

    df = await collect_by_block(
        Datatype.ERC20_METADATA, Params(block_number=90, address=TOKEN), fetcher, schemas
    )

    assert df.row(0, named=True) == {
        "block_number": 90,
        "erc20": TOKEN,
        "name": "Wrapped Ether",
        "symbol": "WETH",
        "decimals": 18,
    }


@pytest.mark.asyncio
async def test_reverted_calls_become_null(fetcher, schemas):
    fetcher.call_results[(TOKEN, NAME_SELECTOR)] = RpcError("eth_call", 3, "execution reverted")
    fetcher.call_results[(TOKEN, SYMBOL_SELECTOR)] = abi_string("ABC")

    df = await collect_by_block(
        Datatype.ERC20_METADATA, Params(block_number=90, address=TOKEN), fetcher, schemas
    )

    assert df.height == 1
    assert df["name"].to_list() == [None]
    assert df["symbol"].to_list() == ["ABC"]
    assert df["decimals"].to_list() == [None]


@pytest.mark.asyncio
async def test_transport_errors_propagate(fetcher, schemas):
    fetcher.call_results[(TOKEN, DECIMALS_SELECTOR)] = FetchError("connection reset")

    with pytest.raises(FetchError):
        await collect_by_block(
            Datatype.ERC20_METADATA, Params(block_number=90, address=TOKEN), fetcher, schemas
        )


@pytest.mark.asyncio
async def test_requires_address(fetcher, schemas):
    with pytest.raises(ValueError, match="address"):
        await collect_by_block(
            Datatype.ERC20_METADATA, Params(block_number=90), fetcher, schemas
        )


@pytest.mark.asyncio
async def test_not_collectable_by_transaction(fetcher, schemas):
    with pytest.raises(ValueError):
        await collect_by_transaction(
            Datatype.ERC20_METADATA, Params(transaction_hash=word(1)), fetcher, schemas
        )
