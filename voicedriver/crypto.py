"""Encryption schemes for secure RTP and the receive-side decode modes."""

from __future__ import annotations

import enum
import os
import secrets
import struct
from dataclasses import dataclass
from typing import Optional, Tuple

from nacl.bindings import crypto_secretbox, crypto_secretbox_open
from nacl.exceptions import CryptoError as _NaclCryptoError

RTP_HEADER_SIZE = 12
NONCE_SIZE = 24
TAG_SIZE = 16
KEY_SIZE = 32
LITE_NONCE_SIZE = 4


class CryptoError(_NaclCryptoError):
    """A packet could not be encrypted or decrypted."""


class DecodeMode(enum.Enum):
    """How received RTP packets are handled by the driver."""

    PASS = enum.auto()
    DECRYPT = enum.auto()
    DECODE = enum.auto()

    def should_decrypt(self) -> bool:
        """Return whether this mode decrypts received packets."""
        return self is not DecodeMode.PASS


def _check_key(key: bytes) -> bytes:
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise ValueError(f"key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def _check_header(packet: bytearray, header_len: int) -> None:
    if not 0 <= header_len <= len(packet):
        raise ValueError("header length lies outside the packet")


def _full_nonce(source: bytes, width: int) -> bytes:
    if len(source) == NONCE_SIZE:
        return source
    used = source[: min(width, len(source))]
    return used + bytes(NONCE_SIZE - len(used))


class CryptoMode(enum.Enum):
    """Variants of the XSalsa20Poly1305 scheme, named as in negotiation."""

    NORMAL = "xsalsa20_poly1305"
    SUFFIX = "xsalsa20_poly1305_suffix"
    LITE = "xsalsa20_poly1305_lite"

    def to_request_str(self) -> str:
        """Return the name of this mode as used during negotiation."""
        return self.value

    def nonce_size(self) -> int:
        """Return the number of bytes each nonce occupies within a packet."""
        if self is CryptoMode.NORMAL:
            return RTP_HEADER_SIZE
        if self is CryptoMode.SUFFIX:
            return NONCE_SIZE
        return LITE_NONCE_SIZE

    def payload_prefix_len(self) -> int:
        """Return the number of scheme bytes placed before the payload."""
        return TAG_SIZE

    def payload_suffix_len(self) -> int:
        """Return the number of scheme bytes placed after the payload."""
        if self is CryptoMode.NORMAL:
            return 0
        return self.nonce_size()

    def payload_overhead(self) -> int:
        """Return the extra bytes needed compared with an unencrypted payload."""
        return self.payload_prefix_len() + self.payload_suffix_len()

    def _split(self, packet: bytearray, header_len: int, body_end: int) -> Tuple[bytes, int]:
        """Return the nonce source bytes and where the sealed body ends."""
        if self is CryptoMode.NORMAL:
            return bytes(packet[:header_len]), body_end
        suffix = self.payload_suffix_len()
        if body_end - header_len < suffix:
            raise CryptoError("packet too small to hold its nonce")
        nonce_at = body_end - suffix
        return bytes(packet[nonce_at : nonce_at + self.nonce_size()]), nonce_at

    def decrypt_in_place(
        self, packet: bytearray, key: bytes, header_len: int = RTP_HEADER_SIZE
    ) -> Tuple[int, int]:
        """Decrypt an RT(C)P packet in place.

        Returns how many bytes to skip at the start and end of the payload.
        """
        key = _check_key(key)
        _check_header(packet, header_len)
        source, body_end = self._split(packet, header_len, len(packet))
        nonce = _full_nonce(source, self.nonce_size())

        body_start = self.payload_prefix_len()
        if header_len + body_start > body_end:
            raise CryptoError("packet too small to hold its tag")

        sealed = bytes(packet[header_len:body_end])
        try:
            plain = crypto_secretbox_open(sealed, nonce, key)
        except _NaclCryptoError as exc:
            raise CryptoError("packet failed authentication") from exc
        packet[header_len + body_start : body_end] = plain
        return body_start, self.payload_suffix_len()

    def encrypt_in_place(
        self,
        packet: bytearray,
        key: bytes,
        payload_len: int,
        header_len: int = RTP_HEADER_SIZE,
    ) -> None:
        """Encrypt an RT(C)P packet in place.

        ``payload_len`` counts the bytes after the header, including the tag
        space and any nonce already written by ``CryptoState.write_packet_nonce``.
        """
        key = _check_key(key)
        _check_header(packet, header_len)
        body_end = header_len + payload_len
        if payload_len < 0 or body_end > len(packet):
            raise ValueError("payload length lies outside the packet")
        source, sealed_end = self._split(packet, header_len, body_end)
        nonce = _full_nonce(source, self.nonce_size())

        data_start = header_len + TAG_SIZE
        if data_start > sealed_end:
            raise CryptoError("packet too small to hold its tag")
        sealed = crypto_secretbox(bytes(packet[data_start:sealed_end]), nonce, key)
        packet[header_len:sealed_end] = sealed


@dataclass
class CryptoState:
    """A crypto mode together with the per-packet state it needs.

    For ``CryptoMode.LITE`` the counter starts at a random value unless given.
    """

    mode: CryptoMode
    lite_nonce: Optional[int] = None

    def __post_init__(self) -> None:
        if self.mode is CryptoMode.LITE:
            if self.lite_nonce is None:
                self.lite_nonce = secrets.randbits(32)
            else:
                self.lite_nonce &= 0xFFFFFFFF

    def kind(self) -> CryptoMode:
        """Return the stateless mode of this state."""
        return self.mode

    def write_packet_nonce(
        self, packet: bytearray, payload_end: int, header_len: int = RTP_HEADER_SIZE
    ) -> int:
        """Write the packet's nonce after the payload, if needed; return the new payload length."""
        endpoint = payload_end + self.mode.payload_suffix_len()
        start = header_len + payload_end
        stop = header_len + endpoint
        if payload_end < 0 or stop > len(packet):
            raise ValueError("nonce does not fit in the packet")

        if self.mode is CryptoMode.SUFFIX:
            packet[start:stop] = os.urandom(stop - start)
        elif self.mode is CryptoMode.LITE:
            packet[start:stop] = struct.pack(">I", self.lite_nonce)
            self.lite_nonce = (self.lite_nonce + 1) & 0xFFFFFFFF
        return endpoint