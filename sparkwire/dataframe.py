"""Data frames: lazily built relations that are executed through a client."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from sparkwire.column import Column, SqlExpression
from sparkwire.errors import ErrorKind, SparkConnectError, with_type
from sparkwire.messages import (
    Command,
    CreateDataFrameViewCommand,
    Expression,
    Filter,
    Join,
    JoinType,
    Plan,
    Project,
    Relation,
    RelationType,
    RepartitionByExpression,
    SparkConnectClient,
    SubqueryAlias,
    UnresolvedAttribute,
)
from sparkwire.writer import DataFrameWriter

_plan_ids = itertools.count(1)


def _next_plan_id() -> int:
    return next(_plan_ids)


def _relation(rel_type: RelationType) -> Relation:
    return Relation(rel_type=rel_type, plan_id=_next_plan_id())


@dataclass(frozen=True)
class DataFrame:
    """A distributed collection of rows, described by a relation."""

    client: Optional[SparkConnectClient]
    relation: Relation

    @property
    def plan_id(self) -> Optional[int]:
        """The plan id of the relation behind this data frame."""
        return self.relation.plan_id

    def _derive(self, rel_type: RelationType) -> DataFrame:
        return DataFrame(self.client, _relation(rel_type))

    def _plan(self) -> Plan:
        return Plan(self.relation)

    def schema(self) -> Any:
        """Ask the server for the schema of this data frame."""
        try:
            response = self.client.analyze_plan(self._plan())
        except Exception as exc:
            raise with_type(
                RuntimeError(f"failed to analyze plan: {exc}"), ErrorKind.EXECUTION
            ) from exc
        return response.schema

    def select_expr(self, *args: str) -> DataFrame:
        """Project the data frame onto SQL expressions."""
        expressions = tuple(SqlExpression(e).to_proto() for e in args)
        return self._derive(Project(input=self.relation, expressions=expressions))

    def alias(self, alias: str) -> DataFrame:
        """Name this data frame as a subquery."""
        return self._derive(SubqueryAlias(input=self.relation, alias=alias))

    def cross_join(self, other: DataFrame) -> DataFrame:
        """Join with ``other`` using the cross product."""
        return self._derive(
            Join(left=self.relation, right=other.relation, join_type=JoinType.CROSS)
        )

    def writer(self) -> DataFrameWriter:
        """A writer that saves this data frame to storage."""
        return DataFrameWriter(self.client, self.relation)

    def write(self) -> DataFrameWriter:
        """Alias of :meth:`writer`."""
        return self.writer()

    def create_temp_view(self, view_name: str, replace: bool, is_global: bool) -> None:
        """Create, or with ``replace`` replace, a temporary view of this data frame."""
        command = CreateDataFrameViewCommand(
            input=self.relation, name=view_name, replace=replace, is_global=is_global
        )
        try:
            stream = self.client.execute_plan(Plan(Command(command)))
        except SparkConnectError as exc:
            raise with_type(
                RuntimeError(f"failed to create temp view {view_name}: {exc}"),
                ErrorKind.EXECUTION,
            ) from exc
        stream.to_table()

    def _repartition(
        self, num_partitions: int, expressions: Sequence[Expression]
    ) -> DataFrame:
        return self._derive(
            RepartitionByExpression(
                input=self.relation,
                partition_exprs=tuple(expressions),
                num_partitions=num_partitions or None,
            )
        )

    def repartition(
        self, num_partitions: int, columns: Optional[Sequence[str]]
    ) -> DataFrame:
        """Repartition into ``num_partitions`` (0 leaves it to the server) by column names."""
        expressions = [UnresolvedAttribute(c) for c in columns or ()]
        return self._repartition(num_partitions, expressions)

    def repartition_by_range(self, num_partitions: int, *args: Column) -> DataFrame:
        """Repartition by ranges of the given columns."""
        return self._repartition(num_partitions, [c.to_proto() for c in args])

    def filter(self, condition: Column) -> DataFrame:
        """Keep the rows for which ``condition`` holds."""
        return self._derive(Filter(input=self.relation, condition=condition.to_proto()))

    def filter_by_string(self, condition: str) -> DataFrame:
        """Keep the rows for which the SQL ``condition`` holds."""
        return self.filter(Column(SqlExpression(condition)))

    def select(self, *args: Column) -> DataFrame:
        """Project the data frame onto the given columns."""
        expressions = tuple(c.to_proto() for c in args)
        return self._derive(Project(input=self.relation, expressions=expressions))