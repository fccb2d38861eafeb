import polars as pl
import pytest

from evm_freeze import Datatype, LogDecoder, Params, collect_by_block, collect_by_transaction
from evm_freeze.config import ColumnEncoding, U256Type, freeze_schemas
from evm_freeze.datasets.erc721_transfers import (
    EVENT_TRANSFER,
    has_transfer_shape,
    is_erc721_transfer,
)
from evm_freeze.datasets.logs import LogColumns, process_logs
from evm_freeze.errors import NotFoundError
from evm_freeze.schemas import make_table
from evm_freeze.types import Log, Receipt

from fakes import address, hash32, padded, word

TRANSFER_SIGNATURE = "Transfer(address indexed from, address indexed to, uint256 amount)"


def transfer_log(block, log_index, topics, data, token=address(0x70), tx_index=0):
    return Log(
        address=token,
        topics=topics,
        data=data,
        block_number=block,
        transaction_hash=hash32(tx_index),
        transaction_index=tx_index,
        log_index=log_index,
    )


def transfer_topics(from_address, to_address):
    return (EVENT_TRANSFER, padded(from_address), padded(to_address))


@pytest.fixture
def schemas():
    return freeze_schemas(
        {
            Datatype.LOGS: make_table(Datatype.LOGS),
            Datatype.ERC721_TRANSFERS: make_table(
                Datatype.ERC721_TRANSFERS, default_u256_type=U256Type.DECIMAL_STRING
            ),
        }
    )


def test_transfer_shape():
    topics = transfer_topics(address(1), address(2))

    assert has_transfer_shape(transfer_log(1, 0, topics, word(5)))
    assert not has_transfer_shape(transfer_log(1, 0, topics[:2], word(5)))
    assert not has_transfer_shape(transfer_log(1, 0, topics, word(5) + b"\x00"))
    assert not is_erc721_transfer(
        transfer_log(1, 0, (hash32(9),) + topics[1:], word(5))
    )


@pytest.mark.asyncio
async def test_logs_store_topics_by_position(fetcher, schemas):
    fetcher.logs = [
        transfer_log(60, 0, (hash32(1),), b"\x01"),
        transfer_log(60, 1, (hash32(1), hash32(2), hash32(3), hash32(4)), b""),
        transfer_log(60, 2, (), b"\x02"),
        # pending log without a position
        Log(address=address(0x70), topics=(hash32(1),), block_number=60),
    ]

    df = await collect_by_block(Datatype.LOGS, Params(block_number=60), fetcher, schemas)

    assert df["log_index"].to_list() == [0, 1, 2]
    assert df["topic0"].to_list() == [hash32(1), hash32(1), None]
    assert df["topic1"].to_list() == [None, hash32(2), None]
    assert df["topic3"].to_list() == [None, hash32(4), None]
    assert df["data"].to_list() == [b"\x01", b"", b"\x02"]


@pytest.mark.asyncio
async def test_logs_by_transaction_reads_receipt(fetcher, schemas):
    log = transfer_log(61, 0, (hash32(1),), b"", tx_index=3)
    fetcher.receipts[hash32(3)] = Receipt(transaction_hash=hash32(3), logs=(log,))

    df = await collect_by_transaction(
        Datatype.LOGS, Params(transaction_hash=hash32(3)), fetcher, schemas
    )
    assert df["transaction_index"].to_list() == [3]

    with pytest.raises(NotFoundError):
        await collect_by_transaction(
            Datatype.LOGS, Params(transaction_hash=hash32(4)), fetcher, schemas
        )


@pytest.mark.asyncio
async def test_logs_respect_address_filter(fetcher, schemas):
    fetcher.logs = [
        transfer_log(62, 0, (hash32(1),), b"", token=address(0x70)),
        transfer_log(62, 1, (hash32(1),), b"", token=address(0x71)),
    ]

    df = await collect_by_block(
        Datatype.LOGS, Params(block_number=62, address=address(0x71)), fetcher, schemas
    )

    assert df["address"].to_list() == [address(0x71)]


@pytest.mark.asyncio
async def test_erc721_transfers_by_block(fetcher, schemas):
    topics = transfer_topics(address(1), address(2))
    fetcher.logs = [
        transfer_log(70, 0, topics, word(42)),
        # oversized payload
        transfer_log(70, 1, topics, word(42) + word(0)),
        transfer_log(70, 2, topics + (word(7),), b""),
        transfer_log(70, 3, topics[:2], word(1)),
        transfer_log(70, 4, (hash32(9),) + topics[1:], word(1)),
    ]

    df = await collect_by_block(
        Datatype.ERC721_TRANSFERS, Params(block_number=70), fetcher, schemas
    )

    assert fetcher.log_filters[0].topics[0] == EVENT_TRANSFER
    assert df["log_index"].to_list() == [0]
    assert df["erc721"].to_list() == [address(0x70)]
    assert df["from_address"].to_list() == [address(1)]
    assert df["to_address"].to_list() == [address(2)]
    assert df["token_id"].to_list() == ["42"]


@pytest.mark.asyncio
async def test_erc721_transfers_by_transaction(fetcher, schemas):
    topics = transfer_topics(address(1), address(2))
    fetcher.receipts[hash32(0)] = Receipt(
        transaction_hash=hash32(0),
        logs=(
            transfer_log(71, 0, (hash32(9),) + topics[1:], word(1)),
            transfer_log(71, 1, topics, word(3)),
        ),
    )

    df = await collect_by_transaction(
        Datatype.ERC721_TRANSFERS, Params(transaction_hash=hash32(0)), fetcher, schemas
    )

    assert df["log_index"].to_list() == [1]
    assert df["token_id"].to_list() == ["3"]


def test_log_decoder_topic0():
    decoder = LogDecoder(TRANSFER_SIGNATURE)

    assert decoder.topic0 == EVENT_TRANSFER
    assert decoder.field_names == ["from", "to", "amount"]


@pytest.mark.asyncio
async def test_logs_with_decoder(fetcher):
    decoder = LogDecoder(TRANSFER_SIGNATURE)
    schemas = freeze_schemas(
        {
            Datatype.LOGS: make_table(
                Datatype.LOGS,
                columns=["block_number", "log_index"],
                binary_encoding=ColumnEncoding.HEX,
                default_u256_type=U256Type.DECIMAL_STRING,
                log_decoder=decoder,
            )
        }
    )
    topics = transfer_topics(address(1), address(2))
    fetcher.logs = [
        transfer_log(80, 0, topics, word(100)),
        # incomplete logs are neither stored nor decoded
        Log(address=address(0x70), topics=topics, data=word(5), block_number=80),
        transfer_log(80, 2, topics, word(200)),
    ]

    df = await collect_by_block(Datatype.LOGS, Params(block_number=80), fetcher, schemas)

    assert fetcher.log_filters[0].topics[0] == EVENT_TRANSFER
    assert df.columns == [
        "block_number",
        "log_index",
        "event__from",
        "event__to",
        "event__amount",
    ]
    assert df["event__from"].to_list() == ["0x" + address(1).hex()] * 2
    assert df["event__amount"].to_list() == ["100", "200"]


def test_decoded_columns_accumulate_across_batches():
    decoder = LogDecoder(TRANSFER_SIGNATURE)
    schema = make_table(Datatype.LOGS, columns=["log_index"], log_decoder=decoder)
    topics = transfer_topics(address(1), address(2))
    columns = LogColumns()

    process_logs([transfer_log(81, 0, topics, word(1))], columns, schema)
    process_logs([transfer_log(82, 0, topics, word(2))], columns, schema)

    arrays = columns.extra_arrays(schema)
    assert len(arrays["event__amount"]) == 2
    assert columns.n_rows == 2


def test_decoder_only_attaches_to_logs():
    with pytest.raises(ValueError):
        make_table(Datatype.BLOCKS, log_decoder=LogDecoder(TRANSFER_SIGNATURE))


@pytest.mark.asyncio
async def test_decoded_wide_integers_as_binary(fetcher):
    schemas = freeze_schemas(
        {
            Datatype.LOGS: make_table(
                Datatype.LOGS,
                columns=["log_index"],
                log_decoder=LogDecoder(TRANSFER_SIGNATURE),
            )
        }
    )
    topics = transfer_topics(address(1), address(2))
    fetcher.logs = [
        transfer_log(83, 0, topics, word(100)),
        transfer_log(83, 1, topics, word(2**200)),
    ]

    df = await collect_by_block(Datatype.LOGS, Params(block_number=83), fetcher, schemas)

    assert df.schema["event__amount"] == pl.Binary
    assert [int.from_bytes(v, "big") for v in df["event__amount"].to_list()] == [100, 2**200]
    assert df["event__to"].to_list() == [address(2), address(2)]
