import logging
from typing import TYPE_CHECKING, Any, List, Optional, Sequence

import polars as pl
import pyarrow as pa
from cherry_core import prefix_hex_encode, u256_to_binary

from .config import ColumnEncoding, ColumnType, Table, U256Type
from .errors import RowCountError

if TYPE_CHECKING:
    from .columns import ColumnData

logger = logging.getLogger(__name__)

ARROW_TYPES = {
    ColumnType.UINT32: pa.uint32(),
    ColumnType.UINT64: pa.uint64(),
    ColumnType.BOOLEAN: pa.bool_(),
    ColumnType.STRING: pa.string(),
    ColumnType.BINARY: pa.binary(),
}


def u256_to_bytes(value: int) -> bytes:
    return value.to_bytes(32, "big", signed=value < 0)


def u256_array(values: Sequence[Optional[int]], u256_type: U256Type) -> pa.Array:
    match u256_type:
        case U256Type.BINARY:
            converted: List[Any] = [None if v is None else u256_to_bytes(v) for v in values]
            return pa.array(converted, type=pa.binary())
        case U256Type.HEX:
            return pa.array([None if v is None else hex(v) for v in values], type=pa.string())
        case U256Type.DECIMAL_STRING:
            return pa.array([None if v is None else str(v) for v in values], type=pa.string())
        case _:
            raise ValueError(f"unknown u256 type: {u256_type}")


def decimal_array(name: str, array: pa.Array, u256_type: U256Type) -> pa.Array:
    """Encode a decoded decimal256 column the way u256 columns are encoded"""
    if u256_type == U256Type.BINARY and pa.types.is_decimal256(array.type):
        batch = pa.RecordBatch.from_arrays([array], names=[name])
        return u256_to_binary(batch).column(0).cast(pa.binary())

    values = [None if v is None else int(v) for v in array.to_pylist()]
    return u256_array(values, u256_type)


def hex_encode_columns(table: pa.Table, names: List[str]) -> pa.Table:
    if not names:
        return table

    batch = pa.RecordBatch.from_arrays(
        [table.column(name).combine_chunks() for name in names], names=names
    )
    encoded = prefix_hex_encode(batch)

    for name in names:
        table = table.set_column(
            table.schema.get_field_index(name),
            name,
            encoded.column(encoded.schema.get_field_index(name)),
        )

    return table


def normalize_array(name: str, array: pa.Array, schema: Table) -> tuple[pa.Array, bool]:
    """Apply the table's encodings to a column that has no declared type.

    Returns the converted array and whether it still needs hex encoding.
    """
    if pa.types.is_decimal(array.type):
        return decimal_array(name, array, schema.u256_type(name)), False

    if pa.types.is_fixed_size_binary(array.type) or pa.types.is_large_binary(array.type):
        array = array.cast(pa.binary())

    if pa.types.is_binary(array.type):
        return array, schema.column_encoding(name) == ColumnEncoding.HEX

    return array, False


def to_df(columns: "ColumnData", schema: Table) -> pl.DataFrame:
    """Assemble a finished accumulator into a DataFrame"""
    columns.validate(schema)

    names = []
    arrays = []
    hex_names = []

    for name in schema.columns:
        column_type = columns.column_types[name]
        values = columns.data[name]

        if column_type == ColumnType.U256:
            arrays.append(u256_array(values, schema.u256_type(name)))
        else:
            arrays.append(pa.array(values, type=ARROW_TYPES[column_type]))
            if (
                column_type == ColumnType.BINARY
                and schema.column_encoding(name) == ColumnEncoding.HEX
            ):
                hex_names.append(name)

        names.append(name)

    for name, array in columns.extra_arrays(schema).items():
        if len(array) != columns.n_rows:
            raise RowCountError(
                f"{columns.datatype.value}.{name} has {len(array)} values for {columns.n_rows} rows"
            )
        array, needs_hex = normalize_array(name, array, schema)
        arrays.append(array)
        names.append(name)
        if needs_hex:
            hex_names.append(name)

    table = pa.Table.from_arrays(arrays, names=names)
    table = hex_encode_columns(table, hex_names)

    logger.debug(
        f"assembled {columns.datatype.value}: {table.num_rows} rows, {table.num_columns} columns"
    )

    return pl.from_arrow(table)


def sort_df(df: pl.DataFrame, schema: Table) -> pl.DataFrame:
    by = [c for c in schema.sort_columns if c in df.columns]
    if not by:
        return df
    return df.sort(by, maintain_order=True)


__all__ = [
    "to_df",
    "sort_df",
    "u256_array",
    "u256_to_bytes",
    "decimal_array",
    "hex_encode_columns",
]
