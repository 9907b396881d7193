"""Helpers for establishing a voice connection: URLs, mode checks and IP discovery."""

from __future__ import annotations

import ipaddress
import struct
from typing import Iterable, Tuple, Union
from urllib.parse import urlsplit

from .crypto import CryptoMode
from .errors import ConnectionErrorKind, DriverConnectionError

IP_DISCOVERY_LENGTH = 70
_REQUEST = 1
_RESPONSE = 2
_IP_DISCOVERY = struct.Struct(">HHI64sH")
IP_DISCOVERY_PACKET_SIZE = _IP_DISCOVERY.size

IpAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def generate_url(endpoint: str, version: int) -> str:
    """Build the voice gateway URL for an endpoint, dropping a trailing ``:80``."""
    if endpoint.endswith(":80"):
        endpoint = endpoint[:-3]

    url = f"wss://{endpoint}/?v={version}"
    if not endpoint or any(ch.isspace() or not ch.isprintable() for ch in endpoint):
        raise DriverConnectionError(ConnectionErrorKind.ENDPOINT_URL)
    try:
        parts = urlsplit(url)
        parts.port
    except ValueError as exc:
        raise DriverConnectionError(ConnectionErrorKind.ENDPOINT_URL, exc) from exc
    if not parts.hostname:
        raise DriverConnectionError(ConnectionErrorKind.ENDPOINT_URL)
    return url


def has_valid_mode(modes: Iterable[str], mode: CryptoMode) -> bool:
    """Return whether the server offered the chosen encryption mode."""
    wanted = mode.to_request_str()
    return any(offered == wanted for offered in modes)


def build_ip_discovery_request(ssrc: int) -> bytes:
    """Build the UDP packet asking the voice server for our external address."""
    return _IP_DISCOVERY.pack(_REQUEST, IP_DISCOVERY_LENGTH, ssrc, b"", 0)


def parse_ip_discovery_response(data: bytes) -> Tuple[IpAddress, int]:
    """Read our external address and port from an IP discovery response."""
    if len(data) < IP_DISCOVERY_PACKET_SIZE:
        raise DriverConnectionError(ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE)
    pkt_type, _length, _ssrc, raw_address, port = _IP_DISCOVERY.unpack(
        bytes(data[:IP_DISCOVERY_PACKET_SIZE])
    )
    if pkt_type != _RESPONSE:
        raise DriverConnectionError(ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE)

    nul = raw_address.find(0)
    if nul < 0:
        raise DriverConnectionError(ConnectionErrorKind.ILLEGAL_IP)
    try:
        address = ipaddress.ip_address(raw_address[:nul].decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DriverConnectionError(ConnectionErrorKind.ILLEGAL_IP, exc) from exc
    return address, port