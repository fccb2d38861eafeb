import pyarrow as pa
import pytest

from evm_freeze.config import (
    ColumnEncoding,
    Datatype,
    U256Type,
    freeze_schemas,
)
from evm_freeze.dataframes import sort_df, u256_array
from evm_freeze.datasets.blocks import BlockColumns, process_block
from evm_freeze.errors import RowCountError
from evm_freeze.schemas import default_tables, make_table
from evm_freeze.types import Block

from fakes import address, hash32


def make_block(number: int) -> Block:
    return Block(
        hash=hash32(number),
        author=address(0xAA),
        number=number,
        gas_used=21000,
        timestamp=1_700_000_000 + number,
        total_difficulty=2**70,
    )


def test_store_skips_inactive_columns():
    schema = make_table(Datatype.BLOCKS, columns=["hash", "block_number"])
    columns = BlockColumns()

    process_block(make_block(1), columns, schema)

    assert columns.n_rows == 1
    assert columns.data["hash"] == [hash32(1)]
    assert columns.data["block_number"] == [1]
    assert columns.data["author"] == []
    assert columns.data["gas_used"] == []


def test_validate_rejects_mismatched_lengths():
    schema = make_table(Datatype.BLOCKS, columns=["hash", "block_number"])
    columns = BlockColumns()
    process_block(make_block(1), columns, schema)
    columns.data["hash"].append(hash32(2))

    with pytest.raises(RowCountError):
        columns.validate(schema)

    with pytest.raises(RowCountError):
        columns.to_df(schema)


def test_default_columns_exclude_roots_and_bloom():
    schema = make_table(Datatype.BLOCKS)

    assert "logs_bloom" not in schema.columns
    assert "state_root" not in schema.columns
    assert "hash" in schema.columns
    assert schema.sort_columns == ("block_number",)


def test_include_and_exclude_columns():
    schema = make_table(
        Datatype.BLOCKS, include_columns=["logs_bloom"], exclude_columns=["extra_data"]
    )

    assert "logs_bloom" in schema.columns
    assert "extra_data" not in schema.columns
    # declared order is kept regardless of request order
    assert schema.columns.index("hash") < schema.columns.index("logs_bloom")


def test_make_table_rejects_unknown_columns():
    with pytest.raises(ValueError, match="unknown columns"):
        make_table(Datatype.BLOCKS, columns=["hash", "nonce"])


def test_make_table_rejects_empty_selection():
    with pytest.raises(ValueError, match="no columns"):
        make_table(Datatype.BLOCKS, columns=["hash"], exclude_columns=["hash"])


def test_freeze_schemas_is_read_only():
    schemas = freeze_schemas({Datatype.BLOCKS: make_table(Datatype.BLOCKS)})

    with pytest.raises(TypeError):
        schemas[Datatype.LOGS] = make_table(Datatype.LOGS)


def test_freeze_schemas_rejects_mismatched_keys():
    with pytest.raises(ValueError):
        freeze_schemas({Datatype.LOGS: make_table(Datatype.BLOCKS)})


def test_u256_array_encodings():
    values = [1, 2**255, None]

    binary = u256_array(values, U256Type.BINARY)
    assert binary.type == pa.binary()
    assert binary.to_pylist() == [(1).to_bytes(32, "big"), (2**255).to_bytes(32, "big"), None]

    assert u256_array(values, U256Type.HEX).to_pylist() == ["0x1", hex(2**255), None]
    assert u256_array(values, U256Type.DECIMAL_STRING).to_pylist() == [
        "1",
        str(2**255),
        None,
    ]


def test_to_df_binary_encoding():
    schema = make_table(Datatype.BLOCKS, columns=["hash", "block_number", "total_difficulty"])
    columns = BlockColumns()
    process_block(make_block(7), columns, schema)

    df = columns.to_df(schema)

    assert df.columns == ["hash", "block_number", "total_difficulty"]
    assert df["hash"].to_list() == [hash32(7)]
    assert df["total_difficulty"].to_list() == [(2**70).to_bytes(32, "big")]


def test_to_df_hex_encoding_with_override():
    schema = make_table(
        Datatype.BLOCKS,
        columns=["hash", "author", "block_number", "total_difficulty"],
        binary_encoding=ColumnEncoding.HEX,
        column_encodings={"author": ColumnEncoding.BINARY},
        u256_types={"total_difficulty": U256Type.DECIMAL_STRING},
    )
    columns = BlockColumns()
    process_block(make_block(7), columns, schema)

    df = columns.to_df(schema)

    assert df["hash"].to_list() == ["0x" + hash32(7).hex()]
    assert df["author"].to_list() == [address(0xAA)]
    assert df["block_number"].to_list() == [7]
    assert df["total_difficulty"].to_list() == [str(2**70)]


def test_empty_accumulator_assembles_typed_frame():
    schema = make_table(Datatype.BLOCKS, columns=["hash", "block_number"])

    df = BlockColumns().to_df(schema)

    assert df.height == 0
    assert df.columns == ["hash", "block_number"]


def test_sort_df_uses_present_sort_columns():
    schema = make_table(
        Datatype.BLOCKS, columns=["hash", "block_number"], sort_columns=["block_number", "timestamp"]
    )
    columns = BlockColumns()
    for n in (3, 1, 2):
        process_block(make_block(n), columns, schema)

    df = sort_df(columns.to_df(schema), schema)

    assert df["block_number"].to_list() == [1, 2, 3]


def test_default_tables():
    tables = default_tables([Datatype.BLOCKS, Datatype.LOGS], chain_id=10)

    assert set(tables) == {Datatype.BLOCKS, Datatype.LOGS}
    assert all(table.chain_id == 10 for table in tables.values())
