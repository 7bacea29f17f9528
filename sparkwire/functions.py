"""Shorthands for building columns."""

from __future__ import annotations

from typing import Any

from sparkwire.column import Column, ColumnReference, Literal, SqlExpression


def expr(expression: str) -> Column:
    """A column given by SQL text."""
    return Column(SqlExpression(expression))


def col(name: str) -> Column:
    """A column referred to by name."""
    return Column(ColumnReference(name))


def lit(value: Any) -> Column:
    """A constant column."""
    return Column(Literal(value))