"""Retry policies and a client wrapper that retries failed RPCs transparently."""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Iterator, Optional, Sequence, TypeVar

import grpc

from sparkwire.errors import ErrorKind, from_rpc_error, with_type
from sparkwire.messages import (
    AnalyzePlanRequest,
    AnalyzePlanResponse,
    ExecutePlanRequest,
    ExecutePlanResponse,
    ReattachExecuteRequest,
    SparkConnectRPCClient,
)
from sparkwire.options import DEFAULT_SPARK_CLIENT_OPTIONS, SparkClientOptions

T = TypeVar("T")

RetryHandler = Callable[[BaseException], bool]

_MILLISECOND = timedelta(milliseconds=1)


def default_retry_handler(error: BaseException) -> bool:
    """Retry when the server is unavailable or the result cursor was disconnected."""
    status = from_rpc_error(error)
    if status is None:
        return False
    if status.code is grpc.StatusCode.UNAVAILABLE:
        return True
    if status.code is grpc.StatusCode.INTERNAL:
        return "INVALID_CURSOR.DISCONNECTED" in status.message
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Which errors to retry, how often, and how the waits between retries grow."""

    max_retries: int
    initial_backoff: timedelta
    max_backoff: timedelta
    backoff_multiplier: float
    jitter: timedelta
    min_jitter_threshold: timedelta
    name: str
    handler: RetryHandler = default_retry_handler


DEFAULT_RETRY_POLICY = RetryPolicy(
    max_retries=15,
    initial_backoff=timedelta(milliseconds=50),
    max_backoff=timedelta(minutes=1),
    backoff_multiplier=4.0,
    jitter=timedelta(milliseconds=500),
    min_jitter_threshold=timedelta(milliseconds=2000),
    name="DefaultRetryPolicy",
    handler=default_retry_handler,
)

TESTING_RETRY_POLICY = RetryPolicy(
    max_retries=5,
    initial_backoff=timedelta(0),
    max_backoff=timedelta(microseconds=1),
    backoff_multiplier=2.0,
    jitter=timedelta(0),
    min_jitter_threshold=timedelta(0),
    name="TestingRetryPolicy",
    handler=default_retry_handler,
)

DEFAULT_RETRY_POLICY_REGISTRY: tuple[RetryPolicy, ...] = (DEFAULT_RETRY_POLICY,)


@dataclass
class RetryState:
    """Progress of the retries of one request, independent of the policy."""

    retry_count: int = 0
    next_wait: timedelta = timedelta(0)

    def next_attempt(self, policy: RetryPolicy) -> Optional[timedelta]:
        """Return how long to wait before the next retry, or None once retries are used up."""
        if self.retry_count >= policy.max_retries:
            return None
        if self.retry_count == 0:
            self.next_wait = policy.initial_backoff

        self.retry_count += 1
        wait = self.next_wait
        millis = self.next_wait // _MILLISECOND
        self.next_wait = timedelta(milliseconds=int(millis * policy.backoff_multiplier))
        if self.next_wait > policy.max_backoff:
            self.next_wait = policy.max_backoff

        if wait > policy.min_jitter_threshold:
            wait += random.random() * policy.jitter
        return wait


def call_with_retries(policies: Sequence[RetryPolicy], func: Callable[[], T]) -> T:
    """Call ``func`` until it succeeds, retrying errors that one of the policies accepts.

    Errors no policy accepts, and errors once the retries are used up, are raised
    tagged with ``ErrorKind.RETRIES_EXCEEDED``.
    """
    state = RetryState()
    while True:
        try:
            return func()
        except Exception as exc:
            policy = next((p for p in policies if p.handler(exc)), None)
            if policy is None:
                raise with_type(exc, ErrorKind.RETRIES_EXCEEDED) from exc
            wait = state.next_attempt(policy)
            if wait is None:
                raise with_type(exc, ErrorKind.RETRIES_EXCEEDED) from exc
        time.sleep(wait.total_seconds())


class RetriableExecutePlanStream:
    """A response stream that resumes transparently after retriable failures.

    Before any response has arrived a failure re-sends the original request;
    afterwards the execution is reattached from the last response received.
    """

    def __init__(
        self,
        stream: Any,
        client: SparkConnectRPCClient,
        request: Optional[ExecutePlanRequest] = None,
        retry_policies: Sequence[RetryPolicy] = (),
    ) -> None:
        self.stream = stream
        self.client = client
        self.request = request
        self.retry_policies = tuple(retry_policies)
        self.last_response_id: Optional[str] = None
        self.result_complete = False

    def _replace_stream(self, new_stream: Any) -> None:
        if isinstance(new_stream, RetriableExecutePlanStream):
            new_stream = new_stream.stream
        self.stream = new_stream

    def _attempt(self) -> Optional[ExecutePlanResponse]:
        try:
            response = self.stream.recv()
        except EOFError:
            return None
        except Exception:
            if self.last_response_id is None:
                self._replace_stream(self.client.execute_plan(self.request))
            else:
                request = self.request
                reattach = ReattachExecuteRequest(
                    session_id=request.session_id,
                    operation_id=request.operation_id or "",
                    user_context=request.user_context,
                    last_response_id=self.last_response_id,
                )
                self._replace_stream(self.client.reattach_execute(reattach))
            raise
        self.last_response_id = response.response_id
        return response

    def recv(self) -> ExecutePlanResponse:
        """Return the next response; raises EOFError when the stream has ended."""
        response = call_with_retries(self.retry_policies, self._attempt)
        if response is None:
            raise EOFError("end of response stream")
        return response

    def __iter__(self) -> Iterator[ExecutePlanResponse]:
        while True:
            try:
                yield self.recv()
            except EOFError:
                return


@dataclass
class RetriableSparkConnectClient:
    """Wraps an RPC client so that every call is retried according to the policies."""

    client: SparkConnectRPCClient
    session_id: str
    retry_policies: Sequence[RetryPolicy] = field(
        default_factory=lambda: DEFAULT_RETRY_POLICY_REGISTRY
    )
    options: SparkClientOptions = DEFAULT_SPARK_CLIENT_OPTIONS

    def execute_plan(self, request: ExecutePlanRequest) -> RetriableExecutePlanStream:
        stream = call_with_retries(
            self.retry_policies, lambda: self.client.execute_plan(request)
        )
        return RetriableExecutePlanStream(
            stream=stream,
            client=self,
            request=request,
            retry_policies=self.retry_policies,
        )

    def analyze_plan(self, request: AnalyzePlanRequest) -> AnalyzePlanResponse:
        return call_with_retries(
            self.retry_policies, lambda: self.client.analyze_plan(request)
        )

    def config(self, request: Any) -> Any:
        return call_with_retries(self.retry_policies, lambda: self.client.config(request))

    def add_artifacts(self) -> Any:
        return call_with_retries(self.retry_policies, self.client.add_artifacts)

    def artifact_status(self, request: Any) -> Any:
        return call_with_retries(
            self.retry_policies, lambda: self.client.artifact_status(request)
        )

    def interrupt(self, request: Any) -> Any:
        return call_with_retries(
            self.retry_policies, lambda: self.client.interrupt(request)
        )

    def reattach_execute(self, request: ReattachExecuteRequest) -> Any:
        return call_with_retries(
            self.retry_policies, lambda: self.client.reattach_execute(request)
        )

    def release_execute(self, request: Any) -> Any:
        return call_with_retries(
            self.retry_policies, lambda: self.client.release_execute(request)
        )