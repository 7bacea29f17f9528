"""Reading data from storage into data frames."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sparkwire.dataframe import DataFrame, _next_plan_id
from sparkwire.messages import (
    DataSource,
    NamedTable,
    Read,
    Relation,
    SparkConnectClient,
)


def _read_relation(read: Read) -> Relation:
    return Relation(rel_type=read, plan_id=_next_plan_id())


@dataclass
class DataFrameReader:
    """Builds data frames that read from a data source or a table."""

    client: Optional[SparkConnectClient]
    format_source: str = ""

    def format(self, source: str) -> DataFrameReader:
        """Set the data source format, e.g. parquet."""
        self.format_source = source
        return self

    def load(self, path: str) -> DataFrame:
        """A data frame reading the data at ``path``."""
        source = DataSource(format=self.format_source or None, paths=(path,))
        return DataFrame(self.client, _read_relation(Read(source)))

    def table(self, name: str) -> DataFrame:
        """A data frame reading the table ``name``."""
        return DataFrame(self.client, _read_relation(Read(NamedTable(name))))