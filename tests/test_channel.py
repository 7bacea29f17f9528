import grpc
import pytest

from sparkwire.channel import BaseBuilder, ChannelBuilder, new_builder
from sparkwire.errors import ErrorKind, SparkConnectError

GOOD_CHANNEL_URL = "sc://host:15002/;user_id=a;token=token;x-other-header=c"


def test_basic_channel_builder():
    builder = new_builder(GOOD_CHANNEL_URL)
    assert builder.host == "host"


def test_wrong_scheme_fails():
    with pytest.raises(SparkConnectError) as info:
        new_builder("abc://asdada:1333")
    assert "scheme" not in str(info.value)
    assert info.value.has_kind(ErrorKind.INVALID_INPUT)


def test_missing_hostname_fails():
    with pytest.raises(SparkConnectError) as info:
        new_builder("sc://:1333")
    assert "scheme" not in str(info.value)
    assert "hostname" in str(info.value)


def test_default_port():
    builder = new_builder("sc://empty")
    assert builder.port == 15002
    assert builder.host == "empty"


def test_port_must_be_an_integer():
    with pytest.raises(SparkConnectError):
        new_builder("sc://empty:port")


def test_large_port_is_accepted():
    builder = new_builder("sc://empty:9999999999999")
    assert builder.port == 9999999999999


def test_path_elements_are_not_allowed():
    with pytest.raises(SparkConnectError) as info:
        new_builder("sc://abcd/this")
    assert "URL path" in str(info.value)
    assert info.value.has_kind(ErrorKind.INVALID_INPUT)


def test_good_url_parsing():
    builder = new_builder(GOOD_CHANNEL_URL)
    assert builder.host == "host"
    assert builder.port == 15002
    assert len(builder.headers) == 1
    assert builder.headers["x-other-header"] == "c"
    assert builder.user == "a"
    assert builder.token == "token"


def test_explicit_port_and_credentials():
    builder = new_builder("sc://localhost:443/;token=token;user_id=user_id;cluster_id=a")
    assert builder.port == 443
    assert builder.host == "localhost"
    assert builder.token == "token"
    assert builder.user == "user_id"
    assert builder.headers == {"cluster_id": "a"}


def test_compat_alias():
    builder = new_builder("sc://localhost")
    assert isinstance(builder, ChannelBuilder)
    assert isinstance(builder, BaseBuilder)
    assert builder.host == "localhost"


def test_channel_build_insecure():
    builder = new_builder("sc://localhost")
    assert builder.remote == "localhost:15002"
    channel = builder.build()
    try:
        assert isinstance(channel, grpc.Channel)
    finally:
        channel.close()


def test_channel_build_with_token():
    builder = new_builder("sc://localhost:443/;token=token;user_id=a")
    assert builder.remote == "localhost:443"
    channel = builder.build()
    try:
        assert isinstance(channel, grpc.Channel)
    finally:
        channel.close()