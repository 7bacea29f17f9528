import pytest

from sparkwire.column import Column, ColumnReference
from sparkwire.dataframe import DataFrame
from sparkwire.errors import ErrorKind, SparkConnectError, with_type
from sparkwire.functions import col, expr, lit
from sparkwire.messages import (
    AnalyzePlanResponse,
    CreateDataFrameViewCommand,
    ExpressionString,
    Filter,
    Join,
    JoinType,
    LiteralValue,
    NamedTable,
    NullOrdering,
    Project,
    Read,
    Relation,
    RepartitionByExpression,
    SortDirection,
    SortOrder,
    SubqueryAlias,
    UnresolvedAttribute,
    UnresolvedFunctionCall,
)
from sparkwire.writer import DataFrameWriter


class _Stream:
    def __init__(self):
        self.read = False
        self.properties = {}

    def to_table(self):
        self.read = True
        return None, None


class _Client:
    def __init__(self, error=None, schema=None):
        self.error = error
        self.schema_value = schema
        self.plans = []
        self.streams = []

    def execute_plan(self, plan):
        if self.error is not None:
            raise self.error
        self.plans.append(plan)
        stream = _Stream()
        self.streams.append(stream)
        return stream

    def execute_command(self, plan):
        raise AssertionError("not used")

    def analyze_plan(self, plan):
        if self.error is not None:
            raise self.error
        self.plans.append(plan)
        return AnalyzePlanResponse(session_id="s", schema=self.schema_value)


def _base(client=None):
    return DataFrame(client, Relation(Read(NamedTable("t")), plan_id=0))


def test_select_expr_builds_project_of_expression_strings():
    df = _base()
    result = df.select_expr("id < 10", "name")
    project = result.relation.rel_type
    assert isinstance(project, Project)
    assert project.input == df.relation
    assert project.expressions == (
        ExpressionString("id < 10"),
        ExpressionString("name"),
    )


def test_alias_builds_subquery_alias():
    df = _base()
    result = df.alias("a")
    assert result.relation.rel_type == SubqueryAlias(input=df.relation, alias="a")


def test_cross_join_uses_cross_join_type():
    left = _base()
    right = _base().alias("r")
    joined = left.cross_join(right)
    assert joined.relation.rel_type == Join(
        left=left.relation, right=right.relation, join_type=JoinType.CROSS
    )


def test_derived_frames_get_fresh_increasing_plan_ids():
    df = _base()
    first = df.alias("a")
    second = df.alias("b")
    assert first.plan_id != second.plan_id
    assert second.plan_id > first.plan_id
    assert first.plan_id != df.plan_id


def test_filter_with_column_condition():
    df = _base()
    result = df.filter(col("id").lt(lit(20)))
    assert result.relation.rel_type == Filter(
        input=df.relation,
        condition=UnresolvedFunctionCall(
            "<", (UnresolvedAttribute("id"), LiteralValue("long", 20)), False
        ),
    )


def test_filter_with_expr_condition():
    df = _base()
    result = df.filter(col("id").lt(expr("10")))
    condition = result.relation.rel_type.condition
    assert condition.arguments[1] == ExpressionString("10")


def test_filter_by_string():
    df = _base()
    result = df.filter_by_string("id < 10")
    assert result.relation.rel_type == Filter(
        input=df.relation, condition=ExpressionString("id < 10")
    )


def test_filter_with_unsupported_literal_raises_invalid_plan():
    df = _base()
    with pytest.raises(SparkConnectError) as info:
        df.filter(col("id").lt(lit(object())))
    assert info.value.has_kind(ErrorKind.INVALID_PLAN)


def test_select_projects_columns():
    df = _base()
    result = df.select(col("word"), col("count").alias("c"))
    project = result.relation.rel_type
    assert project.input == df.relation
    assert project.expressions[0] == UnresolvedAttribute("word")
    assert project.expressions[1].name == ("c",)


def test_repartition_with_count_and_no_columns():
    df = _base()
    result = df.repartition(2, None)
    assert result.relation.rel_type == RepartitionByExpression(
        input=df.relation, partition_exprs=(), num_partitions=2
    )


def test_repartition_with_columns_and_zero_leaves_count_unset():
    df = _base()
    result = df.repartition(0, ["word", "count"])
    rel = result.relation.rel_type
    assert rel.num_partitions is None
    assert rel.partition_exprs == (
        UnresolvedAttribute("word"),
        UnresolvedAttribute("count"),
    )


def test_repartition_by_range_with_sort_column():
    df = _base()
    result = df.repartition_by_range(0, col("word").desc())
    rel = result.relation.rel_type
    assert rel.num_partitions is None
    assert rel.partition_exprs == (
        SortOrder(
            UnresolvedAttribute("word"),
            SortDirection.DESCENDING,
            NullOrdering.NULLS_LAST,
        ),
    )


def test_create_temp_view_executes_command():
    client = _Client()
    df = _base(client)
    df.create_temp_view("view1", True, False)
    assert len(client.plans) == 1
    command = client.plans[0].command.command_type
    assert command == CreateDataFrameViewCommand(
        input=df.relation, name="view1", replace=True, is_global=False
    )
    assert client.streams[0].read is True


def test_create_temp_view_wraps_execution_failure():
    failure = with_type(RuntimeError("boom"), ErrorKind.EXECUTION)
    df = _base(_Client(error=failure))
    with pytest.raises(SparkConnectError) as info:
        df.create_temp_view("view1", True, False)
    assert info.value.has_kind(ErrorKind.EXECUTION)
    assert "view1" in str(info.value)


def test_writer_and_write_use_the_frame_relation():
    client = _Client()
    df = _base(client)
    writer = df.writer()
    assert isinstance(writer, DataFrameWriter)
    assert writer.relation == df.relation
    assert df.write().relation == df.relation


def test_schema_comes_from_analyze_plan():
    client = _Client(schema="schema-of-t")
    df = _base(client)
    assert df.schema() == "schema-of-t"
    assert client.plans[0].root == df.relation


def test_schema_failure_is_execution_error():
    df = _base(_Client(error=RuntimeError("down")))
    with pytest.raises(SparkConnectError) as info:
        df.schema()
    assert info.value.has_kind(ErrorKind.EXECUTION)


def test_column_of_plain_reference_has_no_plan_id():
    df = _base()
    result = df.select(Column(ColumnReference("x")))
    assert result.relation.rel_type.expressions[0].plan_id is None