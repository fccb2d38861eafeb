import logging
from typing import Any, ClassVar, Dict, List, Tuple

import polars as pl
import pyarrow as pa

from .config import ColumnType, Datatype, Table
from .dataframes import to_df
from .errors import RowCountError

logger = logging.getLogger(__name__)


class ColumnData:
    """Parallel column sequences for one datatype, filled by a single chunk.

    Subclasses list every column they can produce in `column_types`. Only
    the columns a Table activates ever receive values.
    """

    datatype: ClassVar[Datatype]
    column_types: ClassVar[Dict[str, ColumnType]]
    default_exclude: ClassVar[Tuple[str, ...]] = ()
    default_sort: ClassVar[Tuple[str, ...]] = ()

    def __init__(self):
        self.n_rows = 0
        self.data: Dict[str, List[Any]] = {name: [] for name in self.column_types}

    @classmethod
    def default_columns(cls) -> Tuple[str, ...]:
        return tuple(c for c in cls.column_types if c not in cls.default_exclude)

    def store(self, schema: Table, name: str, value: Any) -> None:
        if schema.has_column(name):
            self.data[name].append(value)

    def extra_arrays(self, schema: Table) -> Dict[str, pa.Array]:
        """Columns produced outside the fixed column set"""
        return {}

    def validate(self, schema: Table) -> None:
        for name in schema.columns:
            n_values = len(self.data[name])
            if n_values != self.n_rows:
                raise RowCountError(
                    f"{self.datatype.value}.{name} has {n_values} values for {self.n_rows} rows"
                )

    def to_df(self, schema: Table) -> pl.DataFrame:
        return to_df(self, schema)


__all__ = ["ColumnData"]
