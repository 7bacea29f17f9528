import dataclasses

import pytest

from sparkwire.messages import (
    AliasExpr,
    Command,
    CreateDataFrameViewCommand,
    DataSource,
    ExecutePlanRequest,
    Filter,
    Join,
    JoinType,
    LiteralValue,
    NamedTable,
    Plan,
    Read,
    Relation,
    RepartitionByExpression,
    SaveMode,
    SortDirection,
    SqlCommand,
    UnresolvedAttribute,
    UnresolvedFunctionCall,
    WriteOperation,
)


def _table(name):
    return Relation(Read(NamedTable(name)))


def test_plan_with_command_is_command():
    command = Command(SqlCommand("select 1"))
    plan = Plan(command)
    assert plan.is_command() is True
    assert plan.command == command
    assert plan.root is None


def test_plan_with_relation_is_not_command():
    rel = _table("t")
    plan = Plan(rel)
    assert plan.is_command() is False
    assert plan.root == rel
    assert plan.command is None


def test_empty_plan_is_not_command():
    assert Plan().is_command() is False


def test_function_arguments_become_tuple():
    attr = UnresolvedAttribute("col1")
    call = UnresolvedFunctionCall("<", [attr, attr])
    assert call.arguments == (attr, attr)
    assert call.is_distinct is False


def test_nested_structures_compare_by_value():
    first = Filter(_table("t"), UnresolvedFunctionCall("==", [UnresolvedAttribute("a")]))
    second = Filter(_table("t"), UnresolvedFunctionCall("==", (UnresolvedAttribute("a"),)))
    assert first == second
    assert hash(first) == hash(second)


def test_alias_names_become_tuple():
    alias = AliasExpr(UnresolvedAttribute("a"), ["x", "y"])
    assert alias.name == ("x", "y")
    assert alias.metadata is None


def test_messages_are_immutable():
    rel = Relation(Read(NamedTable("t")), plan_id=2)
    with pytest.raises(dataclasses.FrozenInstanceError):
        rel.plan_id = 3
    assert rel.plan_id == 2


def test_unknown_literal_type_rejected():
    with pytest.raises(ValueError):
        LiteralValue("complex", 1j)


def test_literal_keeps_value():
    literal = LiteralValue("long", 20)
    assert literal.value == 20
    assert literal.type_name == "long"


def test_relation_plan_id_round_trip():
    rel = Relation(Read(DataSource("parquet", ["path"])), plan_id=5)
    assert rel.plan_id == 5
    assert rel.rel_type.read_type.paths == ("path",)
    assert rel.rel_type.read_type.format == "parquet"


def test_repartition_defaults():
    rep = RepartitionByExpression(_table("t"))
    assert rep.partition_exprs == ()
    assert rep.num_partitions is None


def test_write_and_view_defaults():
    write = WriteOperation(_table("t"), "path")
    view = CreateDataFrameViewCommand(_table("t"), "view1")
    assert write.mode is SaveMode.UNSPECIFIED
    assert write.source is None
    assert view.replace is False and view.is_global is False


def test_enum_values_fixed_by_protocol():
    assert JoinType(7) is JoinType.CROSS
    assert SaveMode(4) is SaveMode.IGNORE
    assert SortDirection(2) is SortDirection.DESCENDING


def test_join_default_type():
    join = Join(_table("a"), _table("b"))
    assert join.join_type is JoinType.UNSPECIFIED


def test_execute_request_defaults():
    request = ExecutePlanRequest("session", Plan())
    assert request.reattachable is False
    assert request.operation_id is None and request.session_id == "session"