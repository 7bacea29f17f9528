"""Execution of plans against a Spark Connect server and reading of their results."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional, Sequence

from sparkwire.errors import (
    ErrorKind,
    InvalidServerSideSessionDetailsError,
    from_rpc_error,
    with_type,
)
from sparkwire.messages import (
    AnalyzePlanRequest,
    AnalyzePlanResponse,
    ExecutePlanRequest,
    ExecutePlanResponse,
    Plan,
    SparkConnectRPCClient,
    UserContext,
)
from sparkwire.options import DEFAULT_SPARK_CLIENT_OPTIONS, SparkClientOptions

SchemaConverter = Callable[[Any], Any]
BatchReader = Callable[[bytes, Any], Any]

_USER_ID = "na"


def _keep_schema(schema: Any) -> Any:
    return schema


def _keep_batch(data: bytes, schema: Any) -> Any:
    return data


@dataclass
class ExecutePlanClient:
    """The response stream of one execution, read into a schema and a table.

    ``schema_converter`` turns the schema sent by the server into the schema
    object handed to callers; ``batch_reader`` turns one batch of serialized
    rows into a record. The table is the tuple of records, or None when the
    server sent no rows at all.
    """

    response_stream: Any
    session_id: str
    operation_id: str = ""
    options: SparkClientOptions = DEFAULT_SPARK_CLIENT_OPTIONS
    schema_converter: SchemaConverter = _keep_schema
    batch_reader: BatchReader = _keep_batch
    schema: Any = field(default=None, init=False)
    properties: dict[str, Any] = field(default_factory=dict, init=False)
    done: bool = field(default=False, init=False)

    def _responses(self) -> Iterator[ExecutePlanResponse]:
        while True:
            try:
                response = self.response_stream.recv()
            except EOFError:
                return
            except Exception as exc:
                raise with_type(from_rpc_error(exc), ErrorKind.EXECUTION) from exc
            yield response

    def to_table(self) -> tuple[Any, Optional[tuple[Any, ...]]]:
        """Read the whole stream and return the schema and the table."""
        batches: list[Any] = []
        self.done = False
        for response in self._responses():
            if response.session_id != self.session_id:
                raise with_type(
                    InvalidServerSideSessionDetailsError(
                        self.session_id, response.session_id
                    ),
                    ErrorKind.INVALID_SERVER_SIDE_SESSION,
                )
            if response.schema is not None:
                try:
                    self.schema = self.schema_converter(response.schema)
                except Exception as exc:
                    raise with_type(exc, ErrorKind.EXECUTION) from exc
            if response.sql_command_result is not None:
                self.properties["sql_command_result"] = response.sql_command_result
            if response.arrow_batch is not None:
                batches.append(self.batch_reader(response.arrow_batch, self.schema))
            if response.result_complete:
                self.done = True

        # Without a completion marker the server may have cut the stream short.
        if self.options.reattach_execution and not self.done:
            raise with_type(
                RuntimeError("the result is not complete"), ErrorKind.EXECUTION
            )
        return self.schema, (tuple(batches) if batches else None)


@dataclass
class SparkExecutor:
    """Executes and analyzes plans through an RPC client within one session."""

    client: SparkConnectRPCClient
    metadata: Optional[Sequence[tuple[str, str]]] = None
    session_id: str = ""
    options: SparkClientOptions = DEFAULT_SPARK_CLIENT_OPTIONS
    schema_converter: SchemaConverter = _keep_schema
    batch_reader: BatchReader = _keep_batch

    def _new_request(self, plan: Plan) -> ExecutePlanRequest:
        # Every execution gets its own operation id so that it can be reattached.
        return ExecutePlanRequest(
            session_id=self.session_id,
            plan=plan,
            user_context=UserContext(user_id=_USER_ID),
            operation_id=str(uuid.uuid4()),
            reattachable=self.options.reattach_execution,
        )

    def _start(self, request: ExecutePlanRequest) -> ExecutePlanClient:
        try:
            stream = self.client.execute_plan(request)
        except Exception as exc:
            raise with_type(
                RuntimeError(
                    f"failed to call ExecutePlan in session {self.session_id}: {exc}"
                ),
                ErrorKind.EXECUTION,
            ) from exc
        return ExecutePlanClient(
            response_stream=stream,
            session_id=self.session_id,
            operation_id=request.operation_id or "",
            options=self.options,
            schema_converter=self.schema_converter,
            batch_reader=self.batch_reader,
        )

    def execute_plan(self, plan: Plan) -> ExecutePlanClient:
        """Start executing ``plan`` and return its response stream."""
        return self._start(self._new_request(plan))

    def execute_command(
        self, plan: Plan
    ) -> tuple[Optional[tuple[Any, ...]], Any, dict[str, Any]]:
        """Execute a command plan and return its table, schema and properties."""
        request = self._new_request(plan)
        if not plan.is_command():
            raise with_type(
                ValueError("the supplied plan does not contain a command"),
                ErrorKind.EXECUTION,
            )
        stream = self._start(request)
        schema, table = stream.to_table()
        return table, schema, stream.properties

    def analyze_plan(self, plan: Plan) -> AnalyzePlanResponse:
        """Ask the server for the schema of ``plan``."""
        request = AnalyzePlanRequest(
            session_id=self.session_id,
            plan=plan,
            user_context=UserContext(user_id=_USER_ID),
        )
        try:
            return self.client.analyze_plan(request)
        except Exception as exc:
            raise with_type(from_rpc_error(exc), ErrorKind.EXECUTION) from exc


def new_executor_from_client(
    client: SparkConnectRPCClient,
    metadata: Optional[Sequence[tuple[str, str]]],
    session_id: str,
) -> SparkExecutor:
    """Create an executor over an existing RPC client with the default options."""
    return SparkExecutor(
        client=client,
        metadata=metadata,
        session_id=session_id,
        options=DEFAULT_SPARK_CLIENT_OPTIONS,
    )