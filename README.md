# sparkwire

`sparkwire` is the core of a client for a Spark Connect server. It parses
connection strings, opens gRPC channels, builds logical plans and column
expressions as plain Python objects, reads execution response streams, retries
failed calls, and turns RPC failures into Python exceptions.

## Modules

- `sparkwire.channel` – `new_builder(connection)` parses
  `sc://host:port/;key=value;...` strings into a `BaseBuilder` (also available
  as `ChannelBuilder`) with `host`, `port`, `token`, `user` and `headers`.
  The default port is `15002`; `token` and `user_id` are taken as
  credentials and every other parameter becomes a header. `build()` opens a
  `grpc.Channel`: plain text without a token, TLS with an access token
  otherwise.
- `sparkwire.messages` – the plan, expression and request/response types as
  frozen dataclasses (`Plan`, `Relation`, `Project`, `Filter`, `Join`,
  `WriteOperation`, `ExecutePlanRequest`, `ExecutePlanResponse`, ...), the
  enums `SortDirection`, `NullOrdering`, `JoinType` and `SaveMode`, and the
  protocols `SparkConnectRPCClient`, `ExecuteResponseStream` and
  `SparkConnectClient`.
- `sparkwire.column` and `sparkwire.functions` – `col`, `lit` and `expr`
  create `Column` objects that combine with `lt`, `le`, `gt`, `ge`, `eq`,
  `neq`, `mul`, `div`, `asc`, `desc` and `alias`, and become plan
  expressions with `to_proto()`. `of_df(df, name)` refers to a column of a
  particular data frame and checks it against that frame's schema when
  converted.
- `sparkwire.dataframe` – `DataFrame` builds relations lazily: `select`,
  `select_expr`, `filter`, `filter_by_string`, `alias`, `cross_join`,
  `repartition`, `repartition_by_range`; `schema()` and
  `create_temp_view(...)` go through the client.
- `sparkwire.reader` and `sparkwire.writer` – `DataFrameReader` (`format`,
  `load`, `table`) and `DataFrameWriter` (`mode`, `format`, `save`). Save
  modes are `append`, `overwrite`, `errorifexists` and `ignore`, matched
  without regard to case; `get_save_mode` maps a name to a `SaveMode`.
- `sparkwire.client` – `SparkExecutor` (and `new_executor_from_client`)
  executes and analyzes plans within one session over any object that
  implements `SparkConnectRPCClient`. `ExecutePlanClient.to_table()` reads a
  response stream, checks that every response belongs to the session, and
  returns the schema and the table (a tuple of record batches, or `None` when
  no rows were sent).
- `sparkwire.retry` – `RetryPolicy`, `RetryState`, `call_with_retries` and
  `RetriableSparkConnectClient`. Calls failing with `UNAVAILABLE`, or with an
  internal error mentioning `INVALID_CURSOR.DISCONNECTED`, are retried with
  exponential backoff and jitter. `RetriableExecutePlanStream` re-sends the
  request when a stream breaks before its first response, and reattaches
  from the last response id afterwards.
- `sparkwire.errors` – every failure is a `SparkConnectError` tagged with an
  `ErrorKind` (check with `has_kind`); `from_rpc_error` turns an RPC failure
  into a `SparkError` carrying the status code, SQL state, error class, error
  id and message parameters.
- `sparkwire.options` – `SparkClientOptions(reattach_execution=...)`. When
  set, executions are marked reattachable and a stream that ends without a
  completion marker is reported as an error.

## Building expressions and plans

```python
from sparkwire import functions
from sparkwire.reader import DataFrameReader

condition = functions.col("id").lt(functions.lit(10))
print(condition.to_proto())

df = DataFrameReader(client=None).format("parquet").load("/data/words.parquet")
small = df.filter(condition).select(functions.col("word").alias("w"))
print(small.relation)
```

## Parsing a connection string

```python
from sparkwire.channel import new_builder

builder = new_builder("sc://localhost:15002/;user_id=alice;token=token;x-trace=on")
print(builder.host, builder.port, builder.user, builder.headers)
channel = builder.build()
```

Strings with any other scheme, without a host name, with a port that is not a
number, or with a path that does not start with `/;` are rejected with a
`SparkConnectError` of kind `ErrorKind.INVALID_INPUT`.

## Save modes

```python
from sparkwire.errors import ErrorKind, SparkConnectError
from sparkwire.writer import get_save_mode

get_save_mode("Overwrite")   # SaveMode.OVERWRITE
get_save_mode("")            # SaveMode.UNSPECIFIED
try:
    get_save_mode("XYZ")
except SparkConnectError as exc:
    assert exc.has_kind(ErrorKind.INVALID_INPUT)
```

## Handling errors

```python
from sparkwire.errors import from_rpc_error

try:
    ...
except Exception as exc:
    print(from_rpc_error(exc))
```

A `SparkError` for an internal server failure with a SQL state prints as
`[ERROR_CLASS] message. SQLSTATE: 42703`; any other prints as
`[Code] message`, for example `[Unknown] Unknown error`.

## What the package does not do

- It has no session object and no ready-made RPC stub: `BaseBuilder.build()`
  opens a channel, but the calls themselves go through an object you supply
  that implements `SparkConnectRPCClient` (`execute_plan`, `analyze_plan`,
  ...). The messages are Python dataclasses, not serialized wire messages.
- It does not decode result data. By default schemas are passed through as
  received and record batches are kept as raw bytes; `SparkExecutor` and
  `ExecutePlanClient` accept a `schema_converter` and a `batch_reader` to do
  that conversion.
- `DataFrame` builds plans, asks for schemas, creates views and writes; it has
  no methods to collect rows or print them.
- There is no command-line program.

## Running the tests

```
pip install -e ".[test]"
pytest
```