"""Errors raised by the voice driver, its connection logic and its background tasks."""

from __future__ import annotations

import asyncio
import enum
import json

from nacl.exceptions import CryptoError as _NaclCryptoError


class JoinErrorKind(enum.Enum):
    """Reasons a manager or call handler could not use the gateway."""

    DROPPED = "request was cancelled/dropped"
    NO_SENDER = "no gateway destination"
    NO_CALL = "tried to leave a non-existent call"
    TIMED_OUT = "gateway response from Discord timed out"
    DRIVER = "establishing connection failed"


class JoinError(Exception):
    """Raised when joining or leaving a voice channel over the gateway fails."""

    def __init__(self, kind: JoinErrorKind, cause: BaseException | None = None) -> None:
        if kind is JoinErrorKind.DRIVER and not isinstance(cause, DriverConnectionError):
            raise ValueError("a driver join error needs the connection error that caused it")
        self.kind = kind
        self.cause = cause
        super().__init__(f"failed to join voice channel: {kind.value}")
        if cause is not None:
            self.__cause__ = cause

    def should_leave_server(self) -> bool:
        """True if the gateway may hold stale state, so the bot should leave before retrying."""
        return self.kind is JoinErrorKind.TIMED_OUT

    def should_reconnect_driver(self) -> bool:
        """True if the failure can be retried by reconnecting the driver."""
        return self.kind is JoinErrorKind.DRIVER


class ConnectionErrorKind(enum.Enum):
    """Classes of failure while connecting to a voice server."""

    ATTEMPT_DISCARDED = "connection attempt was aborted/discarded"
    CRYPTO = "encryption failure"
    CRYPTO_MODE_INVALID = "server changed negotiated encryption mode"
    CRYPTO_MODE_UNAVAILABLE = "server did not offer chosen encryption mode"
    ENDPOINT_URL = "endpoint URL received from gateway was invalid"
    EXPECTED_HANDSHAKE = "voice initialisation protocol was violated"
    ILLEGAL_DISCOVERY_RESPONSE = "IP discovery/NAT punching response was invalid"
    ILLEGAL_IP = "IP discovery/NAT punching response had bad IP value"
    IO = "I/O error"
    JSON = "JSON error"
    INTERCONNECT_FAILURE = "failed to contact other task"
    WS = "websocket issue"
    TIMED_OUT = "connection attempt timed out"


class Recipient(enum.Enum):
    """Background task that could not be messaged."""

    AUX_NETWORK = "AuxNetwork"
    EVENT = "Event"
    MIXER = "Mixer"
    UDP_RX = "UdpRx"
    UDP_TX = "UdpTx"


_CAUSE_DESCRIBED = {
    ConnectionErrorKind.CRYPTO,
    ConnectionErrorKind.IO,
    ConnectionErrorKind.JSON,
}


class DriverConnectionError(Exception):
    """Raised when the driver cannot connect to a voice server."""

    def __init__(
        self,
        kind: ConnectionErrorKind,
        cause: BaseException | None = None,
        recipient: Recipient | None = None,
    ) -> None:
        if kind is ConnectionErrorKind.INTERCONNECT_FAILURE and recipient is None:
            raise ValueError("an interconnect failure needs a recipient")
        self.kind = kind
        self.cause = cause
        self.recipient = recipient
        super().__init__(f"failed to connect to Discord RTP server: {self._detail()}")
        if cause is not None:
            self.__cause__ = cause

    def _detail(self) -> str:
        if self.kind in _CAUSE_DESCRIBED and self.cause is not None:
            return str(self.cause)
        if self.kind is ConnectionErrorKind.INTERCONNECT_FAILURE:
            return f"failed to contact other task ({self.recipient.value})"
        if self.kind is ConnectionErrorKind.WS:
            return f"websocket issue ({self.cause!r})."
        return self.kind.value

    @classmethod
    def from_exception(cls, exc: BaseException) -> DriverConnectionError:
        """Classify a lower-level exception as a connection error."""
        if isinstance(exc, DriverConnectionError):
            return exc
        if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
            return cls(ConnectionErrorKind.TIMED_OUT, exc)
        if isinstance(exc, json.JSONDecodeError):
            return cls(ConnectionErrorKind.JSON, exc)
        if isinstance(exc, _NaclCryptoError):
            return cls(ConnectionErrorKind.CRYPTO, exc)
        if isinstance(exc, OSError):
            return cls(ConnectionErrorKind.IO, exc)
        raise TypeError(f"cannot classify {type(exc).__name__} as a connection error")


class TaskErrorKind(enum.Enum):
    """Classes of failure inside the driver's background tasks."""

    CRYPTO = "encryption failure"
    ILLEGAL_VOICE_PACKET = "received an illegal voice packet"
    INTERCONNECT_FAILURE = "failed to contact other task"
    IO = "I/O error"
    OPUS = "Opus coding error"
    WS = "websocket issue"


_CONNECT_RECIPIENTS = frozenset({Recipient.AUX_NETWORK, Recipient.UDP_RX, Recipient.UDP_TX})


class TaskError(Exception):
    """Raised inside a background task of the driver."""

    def __init__(
        self,
        kind: TaskErrorKind,
        cause: BaseException | None = None,
        recipient: Recipient | None = None,
    ) -> None:
        if kind is TaskErrorKind.INTERCONNECT_FAILURE and recipient is None:
            raise ValueError("an interconnect failure needs a recipient")
        self.kind = kind
        self.cause = cause
        self.recipient = recipient
        if recipient is not None:
            message = f"{kind.value} ({recipient.value})"
        elif cause is not None:
            message = f"{kind.value}: {cause}"
        else:
            message = kind.value
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def should_trigger_connect(self) -> bool:
        """True if a network task died and a full reconnect is needed."""
        return (
            self.kind is TaskErrorKind.INTERCONNECT_FAILURE
            and self.recipient in _CONNECT_RECIPIENTS
        )

    def should_trigger_interconnect_rebuild(self) -> bool:
        """True if the event task died and the interconnect must be rebuilt."""
        return (
            self.kind is TaskErrorKind.INTERCONNECT_FAILURE
            and self.recipient is Recipient.EVENT
        )