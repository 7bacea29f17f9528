"""Writing the contents of a data frame to storage."""

from __future__ import annotations

from dataclasses import dataclass

from sparkwire.errors import ErrorKind, with_type
from sparkwire.messages import (
    Command,
    Plan,
    Relation,
    SaveMode,
    SparkConnectClient,
    WriteOperation,
)

_SAVE_MODES = {
    "append": SaveMode.APPEND,
    "overwrite": SaveMode.OVERWRITE,
    "errorifexists": SaveMode.ERROR_IF_EXISTS,
    "ignore": SaveMode.IGNORE,
}


def get_save_mode(mode: str) -> SaveMode:
    """Map a save mode name, in any letter case, to its SaveMode."""
    if mode == "":
        return SaveMode.UNSPECIFIED
    try:
        return _SAVE_MODES[mode.casefold()]
    except KeyError:
        raise with_type(
            ValueError(f"unsupported save mode: {mode}"), ErrorKind.INVALID_INPUT
        ) from None


@dataclass
class DataFrameWriter:
    """Saves the rows of a relation through a client, with a chosen mode and format."""

    client: SparkConnectClient
    relation: Relation
    save_mode: str = ""
    format_source: str = ""

    def mode(self, save_mode: str) -> DataFrameWriter:
        """Set the save mode, e.g. append, overwrite, errorifexists or ignore."""
        self.save_mode = save_mode
        return self

    def format(self, source: str) -> DataFrameWriter:
        """Set the data source format, e.g. parquet."""
        self.format_source = source
        return self

    def save(self, path: str) -> None:
        """Write the data to ``path`` and wait for the write to finish."""
        mode = get_save_mode(self.save_mode)
        operation = WriteOperation(
            input=self.relation,
            path=path,
            mode=mode,
            source=self.format_source or None,
        )
        stream = self.client.execute_plan(Plan(Command(operation)))
        stream.to_table()