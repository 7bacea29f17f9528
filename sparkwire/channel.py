"""Parsing of ``sc://`` connection strings and creation of gRPC channels."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol
from urllib.parse import unquote, urlsplit

import grpc

from sparkwire.errors import ErrorKind, with_type

DEFAULT_PORT = 15002
_DIGITS = frozenset("0123456789")


class Builder(Protocol):
    """Anything that can describe and open a connection to a Spark Connect server."""

    host: str
    port: int
    token: str
    user: str
    headers: dict[str, str]

    def build(self) -> grpc.Channel:
        """Open the gRPC channel."""


@dataclass
class BaseBuilder:
    """Connection parameters taken from a connection string."""

    host: str
    port: int = DEFAULT_PORT
    token: str = field(default="", repr=False)
    user: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def remote(self) -> str:
        """The ``host:port`` address the channel connects to."""
        return f"{self.host}:{self.port}"

    def build(self) -> grpc.Channel:
        """Open a gRPC channel; TLS with a bearer token when a token is set."""
        options = [("grpc.default_authority", self.host)]
        try:
            if not self.token:
                return grpc.insecure_channel(self.remote, options=options)
            credentials = grpc.composite_channel_credentials(
                grpc.ssl_channel_credentials(),
                grpc.access_token_call_credentials(self.token),
            )
            return grpc.secure_channel(self.remote, credentials, options=options)
        except (ValueError, TypeError, RuntimeError) as exc:
            raise with_type(
                ConnectionError(f"failed to connect to remote {self.remote}: {exc}"),
                ErrorKind.CONNECTION,
            ) from exc


ChannelBuilder = BaseBuilder


def _invalid(message: str):
    return with_type(ValueError(message), ErrorKind.INVALID_INPUT)


def _split_host_port(netloc: str) -> tuple[str, str]:
    authority = netloc.rpartition("@")[2]
    if authority.startswith("["):
        end = authority.find("]")
        if end < 0:
            raise _invalid(f"missing ']' in host {authority!r}")
        rest = authority[end + 1 :]
        if rest and not rest.startswith(":"):
            raise _invalid(f"invalid port {rest!r} after host")
        return authority[1:end], rest[1:]
    host, sep, port_text = authority.rpartition(":")
    if not sep:
        return authority, ""
    return host, port_text


def new_builder(connection: str) -> BaseBuilder:
    """Parse a connection string of the form ``sc://host:port/;key=value;...``.

    ``token`` and ``user_id`` are taken as credentials; every other parameter
    becomes a header.
    """
    try:
        parts = urlsplit(connection)
    except ValueError as exc:
        raise with_type(exc, ErrorKind.INVALID_INPUT) from exc

    host, port_text = _split_host_port(parts.netloc)
    if port_text and not set(port_text) <= _DIGITS:
        raise _invalid(f'invalid port ":{port_text}" after host')
    if not host:
        raise _invalid("URL must contain a hostname")
    if parts.scheme != "sc":
        raise _invalid("URL schema must be set to `sc`")

    port = int(port_text) if port_text else DEFAULT_PORT

    path = unquote(parts.path)
    if path and not path.startswith("/;"):
        raise _invalid(
            f"the URL path ({path}) must be empty or have a proper parameter syntax"
        )

    builder = BaseBuilder(host=host, port=port)
    for element in path.split(";"):
        props = element.split("=")
        if len(props) != 2:
            continue
        key, value = props
        if key == "token":
            builder.token = value
        elif key == "user_id":
            builder.user = value
        else:
            builder.headers[key] = value
    return builder