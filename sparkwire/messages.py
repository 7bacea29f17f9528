"""Plan, expression and RPC message types exchanged with a Spark Connect server."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol, Union


class SortDirection(enum.IntEnum):
    UNSPECIFIED = 0
    ASCENDING = 1
    DESCENDING = 2


class NullOrdering(enum.IntEnum):
    UNSPECIFIED = 0
    NULLS_FIRST = 1
    NULLS_LAST = 2


class JoinType(enum.IntEnum):
    UNSPECIFIED = 0
    INNER = 1
    FULL_OUTER = 2
    LEFT_OUTER = 3
    RIGHT_OUTER = 4
    LEFT_ANTI = 5
    LEFT_SEMI = 6
    CROSS = 7


class SaveMode(enum.IntEnum):
    UNSPECIFIED = 0
    APPEND = 1
    OVERWRITE = 2
    ERROR_IF_EXISTS = 3
    IGNORE = 4


# Expressions


@dataclass(frozen=True)
class UnresolvedAttribute:
    unparsed_identifier: str
    plan_id: Optional[int] = None


@dataclass(frozen=True)
class UnresolvedFunctionCall:
    function_name: str
    arguments: tuple[Expression, ...] = ()
    is_distinct: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "arguments", tuple(self.arguments))


@dataclass(frozen=True)
class ExpressionString:
    expression: str


LITERAL_TYPES = frozenset(
    {"byte", "short", "integer", "long", "float", "double", "string", "boolean", "binary"}
)


@dataclass(frozen=True)
class LiteralValue:
    """A typed literal; ``type_name`` is one of LITERAL_TYPES."""

    type_name: str
    value: Any

    def __post_init__(self) -> None:
        if self.type_name not in LITERAL_TYPES:
            raise ValueError(f"unknown literal type {self.type_name!r}")


@dataclass(frozen=True)
class AliasExpr:
    expr: Expression
    name: tuple[str, ...]
    metadata: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", tuple(self.name))


@dataclass(frozen=True)
class SortOrder:
    child: Expression
    direction: SortDirection = SortDirection.UNSPECIFIED
    null_ordering: NullOrdering = NullOrdering.UNSPECIFIED


Expression = Union[
    UnresolvedAttribute,
    UnresolvedFunctionCall,
    ExpressionString,
    LiteralValue,
    AliasExpr,
    SortOrder,
]


# Relations


@dataclass(frozen=True)
class Relation:
    rel_type: RelationType
    plan_id: Optional[int] = None


@dataclass(frozen=True)
class Project:
    input: Relation
    expressions: tuple[Expression, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "expressions", tuple(self.expressions))


@dataclass(frozen=True)
class Filter:
    input: Relation
    condition: Expression


@dataclass(frozen=True)
class SubqueryAlias:
    input: Relation
    alias: str


@dataclass(frozen=True)
class Join:
    left: Relation
    right: Relation
    join_type: JoinType = JoinType.UNSPECIFIED


@dataclass(frozen=True)
class RepartitionByExpression:
    input: Relation
    partition_exprs: tuple[Expression, ...] = ()
    num_partitions: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "partition_exprs", tuple(self.partition_exprs))


@dataclass(frozen=True)
class ShowString:
    input: Relation
    num_rows: int
    truncate: int = 0
    vertical: bool = False


@dataclass(frozen=True)
class DataSource:
    format: Optional[str] = None
    paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "paths", tuple(self.paths))


@dataclass(frozen=True)
class NamedTable:
    unparsed_identifier: str


@dataclass(frozen=True)
class Read:
    read_type: Union[DataSource, NamedTable]


RelationType = Union[
    Project, Filter, SubqueryAlias, Join, RepartitionByExpression, ShowString, Read
]


# Commands and plans


@dataclass(frozen=True)
class WriteOperation:
    input: Relation
    path: str
    mode: SaveMode = SaveMode.UNSPECIFIED
    source: Optional[str] = None


@dataclass(frozen=True)
class CreateDataFrameViewCommand:
    input: Relation
    name: str
    replace: bool = False
    is_global: bool = False


@dataclass(frozen=True)
class SqlCommand:
    sql: str


@dataclass(frozen=True)
class Command:
    command_type: Union[WriteOperation, CreateDataFrameViewCommand, SqlCommand]


@dataclass(frozen=True)
class Plan:
    """A unit of work: either a relation to evaluate or a command to run."""

    op_type: Union[Relation, Command, None] = None

    def is_command(self) -> bool:
        return isinstance(self.op_type, Command)

    @property
    def root(self) -> Optional[Relation]:
        return self.op_type if isinstance(self.op_type, Relation) else None

    @property
    def command(self) -> Optional[Command]:
        return self.op_type if isinstance(self.op_type, Command) else None


# RPC requests and responses


@dataclass(frozen=True)
class UserContext:
    user_id: str


@dataclass(frozen=True)
class ExecutePlanRequest:
    session_id: str
    plan: Plan
    user_context: Optional[UserContext] = None
    operation_id: Optional[str] = None
    reattachable: bool = False


@dataclass(frozen=True)
class ExecutePlanResponse:
    """One message of an execution's response stream."""

    session_id: str = ""
    response_id: str = ""
    schema: Any = None
    arrow_batch: Optional[bytes] = None
    sql_command_result: Optional[Relation] = None
    result_complete: bool = False


@dataclass(frozen=True)
class ReattachExecuteRequest:
    session_id: str
    operation_id: str
    user_context: Optional[UserContext] = None
    last_response_id: Optional[str] = None


@dataclass(frozen=True)
class AnalyzePlanRequest:
    session_id: str
    plan: Plan
    user_context: Optional[UserContext] = None


@dataclass(frozen=True)
class AnalyzePlanResponse:
    session_id: str = ""
    schema: Any = None


# Interfaces


class SparkConnectRPCClient(Protocol):
    """The raw RPC surface of the Spark Connect service."""

    def execute_plan(self, request: ExecutePlanRequest) -> Any:
        """Start an execution and return its response stream."""

    def analyze_plan(self, request: AnalyzePlanRequest) -> AnalyzePlanResponse:
        """Analyze a plan."""

    def config(self, request: Any) -> Any:
        """Read or change session configuration."""

    def add_artifacts(self) -> Any:
        """Open an artifact upload stream."""

    def artifact_status(self, request: Any) -> Any:
        """Query the status of uploaded artifacts."""

    def interrupt(self, request: Any) -> Any:
        """Interrupt running executions."""

    def reattach_execute(self, request: ReattachExecuteRequest) -> Any:
        """Reattach to a running execution and return its response stream."""

    def release_execute(self, request: Any) -> Any:
        """Release the server-side state of an execution."""


class ExecuteResponseStream(Protocol):
    """The result of an execution, read into a table."""

    properties: dict[str, Any]

    def to_table(self) -> tuple[Any, Any]:
        """Read the whole stream and return the schema and the table."""


class SparkConnectClient(Protocol):
    """Executes plans at the level of plans and tables rather than raw RPCs."""

    def execute_plan(self, plan: Plan) -> ExecuteResponseStream:
        """Execute a plan and return its response stream."""

    def execute_command(self, plan: Plan) -> tuple[Any, Any, dict[str, Any]]:
        """Execute a command plan and return table, schema and properties."""

    def analyze_plan(self, plan: Plan) -> AnalyzePlanResponse:
        """Analyze a plan."""