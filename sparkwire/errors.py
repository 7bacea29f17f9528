"""Error types raised by the client and conversion of RPC failures."""

from __future__ import annotations

import enum
import json
import traceback
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

import grpc


class ErrorKind(enum.Enum):
    """Categories that an error raised by the client can be tagged with."""

    CONNECTION = "connection error"
    READ = "read error"
    EXECUTION = "execution error"
    INVALID_INPUT = "invalid input"
    INVALID_PLAN = "invalid plan"
    RETRIES_EXCEEDED = "retries exceeded"
    INVALID_SERVER_SIDE_SESSION = "invalid server side session"
    TEST_SETUP = "test setup error"

    def __str__(self) -> str:
        return self.value


Kind = Union[ErrorKind, str]


class SparkConnectError(Exception):
    """An error tagged with a kind, wrapping the error that caused it."""

    def __init__(self, kind: Kind, cause: BaseException) -> None:
        super().__init__(kind, cause)
        self.kind = kind
        self.cause = cause
        self.__cause__ = cause
        self._stack = "".join(traceback.format_stack()[:-1])

    def __str__(self) -> str:
        return f"{self.kind}: {self.cause}"

    def has_kind(self, kind: Kind) -> bool:
        """Return True if this error or any error it wraps carries ``kind``."""
        if self.kind == kind:
            return True
        seen: set[int] = set()
        err: Optional[BaseException] = self.cause
        while err is not None and id(err) not in seen:
            seen.add(id(err))
            if isinstance(err, SparkConnectError):
                return err.has_kind(kind)
            err = err.__cause__
        return False

    def verbose(self) -> str:
        """Describe the error with its kind, cause and the stack where it was wrapped."""
        return (
            "[sparkerror] "
            f"Error Type: {self.kind}\n"
            f"Error Cause: {self.cause}\n"
            f"{self._stack}"
        )


def with_type(err: BaseException, kind: ErrorKind) -> SparkConnectError:
    """Wrap ``err`` so that it can later be recognised by ``kind``."""
    return SparkConnectError(kind, err)


def with_string(err: BaseException, message: str) -> SparkConnectError:
    """Wrap ``err`` under a free-form message used as its kind."""
    return SparkConnectError(message, err)


@dataclass(frozen=True)
class ErrorInfo:
    """Structured detail attached to an RPC status."""

    reason: str = ""
    domain: str = ""
    metadata: Mapping[str, str] = field(default_factory=dict)


def _status_name(code: grpc.StatusCode) -> str:
    if code is grpc.StatusCode.OK:
        return "OK"
    if code is grpc.StatusCode.CANCELLED:
        return "Canceled"
    return "".join(part.capitalize() for part in code.name.split("_"))


class RpcStatusError(Exception):
    """An RPC failure carrying a status code, a message and structured details."""

    def __init__(
        self,
        code: grpc.StatusCode,
        message: str = "",
        details: Sequence[Any] = (),
    ) -> None:
        super().__init__(code, message)
        self.code = code
        self.message = message
        self.details = tuple(details)

    def __str__(self) -> str:
        return f"rpc error: code = {_status_name(self.code)} desc = {self.message}"


class UnsupportedResponseTypeError(Exception):
    """Raised when the server sends a response of a type the client cannot handle."""

    def __init__(self, response_type: Any) -> None:
        super().__init__(response_type)
        self.response_type = response_type

    def __str__(self) -> str:
        return f"Received unsupported response type: {type(self.response_type).__name__}"


class InvalidServerSideSessionDetailsError(Exception):
    """Raised when the server answers for a session other than the client's own."""

    def __init__(self, own_session_id: str, received_session_id: str) -> None:
        super().__init__(own_session_id, received_session_id)
        self.own_session_id = own_session_id
        self.received_session_id = received_session_id

    def __str__(self) -> str:
        return (
            f"Received invalid session id {self.received_session_id}, "
            f"expected {self.own_session_id}"
        )


@dataclass(eq=False)
class SparkError(Exception):
    """An error reported by Spark, with the details the server attached to it."""

    message: str = ""
    code: grpc.StatusCode = grpc.StatusCode.OK
    sql_state: str = ""
    error_class: str = ""
    reason: str = ""
    error_id: str = ""
    parameters: Optional[dict[str, str]] = None
    status: Optional[RpcStatusError] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.code is grpc.StatusCode.INTERNAL and self.sql_state:
            return f"[{self.error_class}] {self.message}. SQLSTATE: {self.sql_state}"
        return f"[{_status_name(self.code)}] {self.message}"


def _find_status(error: BaseException) -> Optional[RpcStatusError]:
    seen: set[int] = set()
    err: Optional[BaseException] = error
    while err is not None and id(err) not in seen:
        seen.add(id(err))
        if isinstance(err, RpcStatusError):
            return err
        err = err.__cause__
    return None


def _parse_parameters(raw: str) -> Optional[dict[str, str]]:
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None
    if isinstance(parsed, dict) and all(isinstance(v, str) for v in parsed.values()):
        return dict(parsed)
    return None


def from_rpc_error(error: Optional[BaseException]) -> Optional[SparkError]:
    """Convert an RPC failure into a SparkError; None when there was no error.

    Errors that carry no RPC status are reported with the UNKNOWN code.
    """
    if error is None:
        return None
    status = _find_status(error)
    details: Sequence[Any] = ()
    if status is not None:
        code = status.code
        details = status.details
        message = status.message if status is error else str(error)
    elif isinstance(error, grpc.RpcError) and callable(getattr(error, "code", None)):
        code = error.code() or grpc.StatusCode.UNKNOWN
        describe = getattr(error, "details", None)
        message = (describe() if callable(describe) else None) or ""
    else:
        code = grpc.StatusCode.UNKNOWN
        message = str(error)

    result = SparkError(message=message, code=code, status=status)
    for info in details:
        if not isinstance(info, ErrorInfo):
            continue
        metadata = info.metadata
        if "messageParameters" in metadata:
            params = _parse_parameters(metadata["messageParameters"])
            if params is not None:
                result.parameters = params
        result.sql_state = metadata.get("sqlState", "")
        result.error_class = metadata.get("errorClass", "")
        result.error_id = metadata.get("errorId", "")
        result.reason = info.reason
    return result