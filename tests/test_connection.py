import ipaddress
import struct

import pytest

from voicedriver.connection import (
    build_ip_discovery_request,
    generate_url,
    has_valid_mode,
    parse_ip_discovery_response,
)
from voicedriver.crypto import CryptoMode
from voicedriver.errors import ConnectionErrorKind, DriverConnectionError

LAYOUT = ">HHI64sH"


def _response(address: bytes, port: int, kind: int = 2) -> bytes:
    return struct.pack(LAYOUT, kind, 70, 1234, address, port)


def test_generate_url_strips_port_80():
    assert generate_url("example.com:80", 4) == "wss://example.com/?v=4"


def test_generate_url_keeps_other_ports():
    url = generate_url("example.com:443", 7)
    assert url.startswith("wss://example.com:443/")
    assert url.endswith("v=7")


@pytest.mark.parametrize("endpoint", ["", ":80", "bad host", "example.com:notaport"])
def test_generate_url_rejects_bad_endpoints(endpoint):
    with pytest.raises(DriverConnectionError) as info:
        generate_url(endpoint, 4)
    assert info.value.kind is ConnectionErrorKind.ENDPOINT_URL


def test_has_valid_mode():
    offered = ["xsalsa20_poly1305", "xsalsa20_poly1305_lite"]
    assert has_valid_mode(offered, CryptoMode.NORMAL) is True
    assert has_valid_mode(offered, CryptoMode.LITE) is True
    assert has_valid_mode(offered, CryptoMode.SUFFIX) is False
    assert has_valid_mode([], CryptoMode.NORMAL) is False


def test_request_fields():
    request = build_ip_discovery_request(0xDEADBEEF)
    assert len(request) == struct.calcsize(LAYOUT)
    kind, length, ssrc, address, port = struct.unpack(LAYOUT, request)
    assert kind == 1
    assert length == 70
    assert ssrc == 0xDEADBEEF
    assert address == bytes(64)
    assert port == 0


def test_parse_ipv4_response():
    address, port = parse_ip_discovery_response(_response(b"203.0.113.5", 50000))
    assert address == ipaddress.ip_address("203.0.113.5")
    assert port == 50000


def test_parse_ipv6_response():
    address, port = parse_ip_discovery_response(_response(b"2001:db8::1", 1))
    assert address == ipaddress.ip_address("2001:db8::1")
    assert port == 1


def test_request_is_not_a_valid_response():
    with pytest.raises(DriverConnectionError) as info:
        parse_ip_discovery_response(build_ip_discovery_request(5))
    assert info.value.kind is ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE


def test_short_response_rejected():
    with pytest.raises(DriverConnectionError) as info:
        parse_ip_discovery_response(_response(b"203.0.113.5", 50000)[:-1])
    assert info.value.kind is ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE


@pytest.mark.parametrize(
    "address",
    [b"a" * 64, b"not-an-address", b"\xff\xfe\x00"],
)
def test_bad_address_rejected(address):
    with pytest.raises(DriverConnectionError) as info:
        parse_ip_discovery_response(_response(address, 80))
    assert info.value.kind is ConnectionErrorKind.ILLEGAL_IP