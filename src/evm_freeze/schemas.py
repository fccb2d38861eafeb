import logging
from typing import Dict, Mapping, Optional, Sequence

from .config import ColumnEncoding, Datatype, Table, U256Type
from .datasets import get_collector
from .log_decoder import LogDecoder

logger = logging.getLogger(__name__)


def make_table(
    datatype: Datatype,
    columns: Optional[Sequence[str]] = None,
    include_columns: Sequence[str] = (),
    exclude_columns: Sequence[str] = (),
    binary_encoding: ColumnEncoding = ColumnEncoding.BINARY,
    column_encodings: Optional[Mapping[str, ColumnEncoding]] = None,
    u256_types: Optional[Mapping[str, U256Type]] = None,
    default_u256_type: U256Type = U256Type.BINARY,
    sort_columns: Optional[Sequence[str]] = None,
    chain_id: Optional[int] = None,
    log_decoder: Optional[LogDecoder] = None,
) -> Table:
    """Build the Table for a datatype from a column selection.

    `columns` replaces the datatype's default columns. `include_columns` and
    `exclude_columns` adjust whichever set is chosen.
    """
    column_data = get_collector(datatype).columns
    known = column_data.column_types

    if columns is None:
        columns = column_data.default_columns()

    requested = set(columns) | set(include_columns) | set(exclude_columns)
    requested |= set(column_encodings or {}) | set(u256_types or {})
    unknown = sorted(c for c in requested if c not in known)
    if unknown:
        raise ValueError(f"unknown columns for {datatype.value}: {unknown}")

    selected = [c for c in known if (c in columns or c in include_columns)]
    selected = [c for c in selected if c not in exclude_columns]
    if not selected:
        raise ValueError(f"no columns selected for {datatype.value}")

    if log_decoder is not None and datatype != Datatype.LOGS:
        raise ValueError("a log decoder can only be attached to logs")

    if sort_columns is None:
        sort_columns = column_data.default_sort

    logger.debug(f"table {datatype.value}: {selected}")

    return Table(
        datatype=datatype,
        columns=tuple(selected),
        binary_encoding=binary_encoding,
        column_encodings=dict(column_encodings or {}),
        u256_types=dict(u256_types or {}),
        default_u256_type=default_u256_type,
        sort_columns=tuple(sort_columns),
        chain_id=chain_id,
        log_decoder=log_decoder,
    )


def default_tables(
    datatypes: Sequence[Datatype], **kwargs
) -> Dict[Datatype, Table]:
    return {datatype: make_table(datatype, **kwargs) for datatype in datatypes}


__all__ = ["make_table", "default_tables"]
