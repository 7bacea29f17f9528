"""Column expressions and their conversion into plan expressions."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Sequence, Union

from sparkwire.errors import ErrorKind, with_type
from sparkwire.messages import (
    AliasExpr,
    Expression,
    ExpressionString,
    LiteralValue,
    NullOrdering,
    SortDirection,
    SortOrder,
    UnresolvedAttribute,
    UnresolvedFunctionCall,
)

_LONG_MIN = -(2**63)
_LONG_MAX = 2**63 - 1


class _SchemaDataFrame(Protocol):
    """What a delayed column reference needs from the data frame it refers to."""

    @property
    def plan_id(self) -> Optional[int]: ...

    def schema(self) -> Any: ...


class ColumnExpression(abc.ABC):
    """An expression that can be turned into a plan expression."""

    @abc.abstractmethod
    def to_proto(self) -> Expression:
        """Build the plan expression."""

    @abc.abstractmethod
    def debug_string(self) -> str:
        """Describe the expression in a human-readable form."""


@dataclass(frozen=True)
class ColumnReference(ColumnExpression):
    """A reference to a column by name, optionally bound to a plan."""

    unparsed_identifier: str
    plan_id: Optional[int] = None

    def to_proto(self) -> Expression:
        return UnresolvedAttribute(
            unparsed_identifier=self.unparsed_identifier, plan_id=self.plan_id
        )

    def debug_string(self) -> str:
        return self.unparsed_identifier


@dataclass(frozen=True)
class SqlExpression(ColumnExpression):
    """An expression given as SQL text, parsed by the server."""

    expression: str

    def to_proto(self) -> Expression:
        return ExpressionString(expression=self.expression)

    def debug_string(self) -> str:
        return self.expression


@dataclass(frozen=True)
class Literal(ColumnExpression):
    """A constant value."""

    value: Any

    def to_proto(self) -> Expression:
        value = self.value
        if isinstance(value, bool):
            return LiteralValue("boolean", value)
        if isinstance(value, int):
            if not _LONG_MIN <= value <= _LONG_MAX:
                raise with_type(
                    OverflowError(f"literal {value} does not fit into a long"),
                    ErrorKind.INVALID_PLAN,
                )
            return LiteralValue("long", value)
        if isinstance(value, float):
            return LiteralValue("double", value)
        if isinstance(value, str):
            return LiteralValue("string", value)
        if isinstance(value, (bytes, bytearray)):
            return LiteralValue("binary", bytes(value))
        raise with_type(
            TypeError(f"unsupported literal type {type(value).__name__}"),
            ErrorKind.INVALID_PLAN,
        )

    def debug_string(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class UnresolvedFunction(ColumnExpression):
    """A call of a function that the server resolves by name."""

    name: str
    args: tuple[ColumnExpression, ...] = ()
    is_distinct: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args or ()))

    def to_proto(self) -> Expression:
        return UnresolvedFunctionCall(
            function_name=self.name,
            arguments=tuple(arg.to_proto() for arg in self.args),
            is_distinct=self.is_distinct,
        )

    def debug_string(self) -> str:
        distinct = "DISTINCT " if self.is_distinct else ""
        args = ", ".join(arg.debug_string() for arg in self.args)
        return f"{self.name}({distinct}{args})"


@dataclass(frozen=True)
class ColumnAlias(ColumnExpression):
    """An expression given a new name; a string alias is a single name part."""

    alias: Union[str, tuple[str, ...]]
    expr: ColumnExpression
    metadata: Optional[str] = None

    def __post_init__(self) -> None:
        if isinstance(self.alias, str):
            object.__setattr__(self, "alias", (self.alias,))
        else:
            object.__setattr__(self, "alias", tuple(self.alias))

    def to_proto(self) -> Expression:
        return AliasExpr(expr=self.expr.to_proto(), name=self.alias, metadata=self.metadata)

    def debug_string(self) -> str:
        return f"{self.expr.debug_string()} AS {'.'.join(self.alias)}"


@dataclass(frozen=True)
class SortExpression(ColumnExpression):
    """An expression with a sort direction and null ordering."""

    child: ColumnExpression
    direction: SortDirection
    null_ordering: NullOrdering

    def to_proto(self) -> Expression:
        return SortOrder(
            child=self.child.to_proto(),
            direction=self.direction,
            null_ordering=self.null_ordering,
        )

    def debug_string(self) -> str:
        return self.child.debug_string()


@dataclass(frozen=True)
class CaseWhenBranch:
    """One ``WHEN condition THEN value`` arm of a CASE expression."""

    condition: ColumnExpression
    value: ColumnExpression


@dataclass(frozen=True)
class CaseWhenExpression(ColumnExpression):
    """A CASE expression, sent to the server as a call of ``when``."""

    branches: tuple[CaseWhenBranch, ...]
    else_expr: Optional[ColumnExpression] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "branches", tuple(self.branches))

    def _as_function(self) -> UnresolvedFunction:
        args: list[ColumnExpression] = []
        for branch in self.branches:
            args.extend((branch.condition, branch.value))
        if self.else_expr is not None:
            args.append(self.else_expr)
        return UnresolvedFunction("when", tuple(args), False)

    def to_proto(self) -> Expression:
        return self._as_function().to_proto()

    def debug_string(self) -> str:
        branches = " ".join(
            f"WHEN {b.condition.debug_string()} THEN {b.value.debug_string()}"
            for b in self.branches
        )
        else_part = (
            f"ELSE {self.else_expr.debug_string()}" if self.else_expr is not None else ""
        )
        return f"CASE {branches} {else_part} END"


@dataclass(frozen=True)
class DelayedColumnReference(ColumnExpression):
    """A column of a specific data frame, checked against its schema when converted."""

    unparsed_identifier: str
    df: _SchemaDataFrame = field(compare=False)

    def to_proto(self) -> Expression:
        schema = self.df.schema()
        if not any(f.name == self.unparsed_identifier for f in schema.fields):
            raise with_type(
                LookupError(f"cannot resolve column {self.unparsed_identifier}"),
                ErrorKind.INVALID_PLAN,
            )
        return UnresolvedAttribute(
            unparsed_identifier=self.unparsed_identifier, plan_id=self.df.plan_id
        )

    def debug_string(self) -> str:
        return self.unparsed_identifier


@dataclass(frozen=True)
class Column:
    """A column of a data frame, built from an expression."""

    expr: ColumnExpression

    def to_proto(self) -> Expression:
        return self.expr.to_proto()

    def _binary(self, name: str, other: Column) -> Column:
        return Column(UnresolvedFunction(name, (self.expr, other.expr), False))

    def lt(self, other: Column) -> Column:
        return self._binary("<", other)

    def le(self, other: Column) -> Column:
        return self._binary("<=", other)

    def gt(self, other: Column) -> Column:
        return self._binary(">", other)

    def ge(self, other: Column) -> Column:
        return self._binary(">=", other)

    def eq(self, other: Column) -> Column:
        return self._binary("==", other)

    def neq(self, other: Column) -> Column:
        comparison = UnresolvedFunction("==", (self.expr, other.expr), False)
        return Column(UnresolvedFunction("not", (comparison,), False))

    def mul(self, other: Column) -> Column:
        return self._binary("*", other)

    def div(self, other: Column) -> Column:
        return self._binary("/", other)

    def desc(self) -> Column:
        return Column(
            SortExpression(self.expr, SortDirection.DESCENDING, NullOrdering.NULLS_LAST)
        )

    def asc(self) -> Column:
        return Column(
            SortExpression(self.expr, SortDirection.ASCENDING, NullOrdering.NULLS_FIRST)
        )

    def alias(self, alias: str) -> Column:
        return Column(ColumnAlias(alias, self.expr))


def unresolved_function_with_columns(name: str, *args: Column) -> UnresolvedFunction:
    """Build a function call whose arguments are the expressions of ``args``."""
    return UnresolvedFunction(name, tuple(c.expr for c in args), False)


def of_df(df: _SchemaDataFrame, col_name: str) -> Column:
    """Refer to ``col_name`` of the data frame ``df``."""
    return Column(DelayedColumnReference(col_name, df))


__all__: Sequence[str] = (
    "ColumnExpression",
    "ColumnReference",
    "SqlExpression",
    "Literal",
    "UnresolvedFunction",
    "ColumnAlias",
    "SortExpression",
    "CaseWhenBranch",
    "CaseWhenExpression",
    "DelayedColumnReference",
    "Column",
    "unresolved_function_with_columns",
    "of_df",
)