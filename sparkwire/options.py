"""Options that control how the client talks to the server."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SparkClientOptions:
    """Client behaviour switches."""

    reattach_execution: bool = False


DEFAULT_SPARK_CLIENT_OPTIONS = SparkClientOptions()