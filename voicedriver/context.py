"""Event contexts: the data handed to handlers when an event fires.

The driver builds a ``CoreContext`` from the internal records it owns.
``CoreContext.to_user_context`` turns that into the ``EventContext`` that
handlers see.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Sequence

from .errors import ConnectionErrorKind, DriverConnectionError
from .events import CoreEvent


class _ConnectionInfo(Protocol):
    channel_id: Optional[int]
    guild_id: int
    session_id: str
    endpoint: str


@dataclass(frozen=True)
class ConnectData:
    """Voice connection details gathered at setup or reconnection."""

    channel_id: Optional[int]
    guild_id: int
    session_id: str
    server: str
    ssrc: int


class DisconnectKind(enum.Enum):
    """Where a voice connection was terminated."""

    CONNECT = "connect"
    RECONNECT = "reconnect"
    RUNTIME = "runtime"


class DisconnectReasonKind(enum.Enum):
    """Why a voice connection failed."""

    ATTEMPT_DISCARDED = "attempt_discarded"
    INTERNAL = "internal"
    IO = "io"
    PROTOCOL_VIOLATION = "protocol_violation"
    TIMED_OUT = "timed_out"
    WS_CLOSED = "ws_closed"


@dataclass(frozen=True)
class DisconnectReason:
    """The cause of a connection failure.

    ``close_code`` is the voice close code sent by the server, and only
    accompanies ``DisconnectReasonKind.WS_CLOSED``.
    """

    kind: DisconnectReasonKind
    close_code: Optional[int] = None

    def __post_init__(self) -> None:
        if self.close_code is not None and self.kind is not DisconnectReasonKind.WS_CLOSED:
            raise ValueError("only a websocket closure carries a close code")


@dataclass(frozen=True)
class DisconnectData:
    """Voice connection details gathered at termination or failure.

    A ``reason`` of None means the user asked for the disconnect.
    """

    kind: DisconnectKind
    reason: Optional[DisconnectReason]
    channel_id: Optional[int]
    guild_id: int
    session_id: str


@dataclass(frozen=True)
class SpeakingUpdateData:
    """A source started or stopped transmitting."""

    speaking: bool
    ssrc: int


@dataclass(frozen=True)
class VoiceData:
    """An Opus audio packet received from another stream.

    ``audio`` is None when decoding is off, and empty for an out-of-order packet.
    """

    audio: Optional[List[int]]
    packet: bytes
    payload_offset: int
    payload_end_pad: int


@dataclass(frozen=True)
class RtcpData:
    """A telemetry packet received from another stream."""

    packet: bytes
    payload_offset: int
    payload_end_pad: int


@dataclass(frozen=True)
class InternalConnect:
    """Connection record held by the driver."""

    info: Any
    ssrc: int


@dataclass(frozen=True)
class InternalDisconnect:
    """Disconnection record held by the driver."""

    kind: DisconnectKind
    reason: Optional[DisconnectReason]
    info: Any


@dataclass(frozen=True)
class InternalSpeakingUpdate:
    """Speaking transition detected by the receive task."""

    ssrc: int
    speaking: bool


@dataclass(frozen=True)
class InternalVoicePacket:
    """Voice packet record held by the receive task."""

    audio: Optional[List[int]]
    packet: bytes
    payload_offset: int
    payload_end_pad: int


@dataclass(frozen=True)
class InternalRtcpPacket:
    """RTCP packet record held by the receive task."""

    packet: bytes
    payload_offset: int
    payload_end_pad: int


@dataclass(frozen=True)
class EventContext:
    """Information about what fired an event.

    ``event`` is None for a track context, whose ``data`` is a sequence of
    ``(state, handle)`` pairs; otherwise it names the core event and ``data``
    holds that event's payload.
    """

    event: Optional[CoreEvent]
    data: Any = None

    def __post_init__(self) -> None:
        if self.event is None:
            object.__setattr__(self, "data", tuple(self.data or ()))

    def to_core_event(self) -> Optional[CoreEvent]:
        """Return the core event class of this context, or None for a track context."""
        return self.event


def _connect_data(record: InternalConnect) -> ConnectData:
    info = record.info
    return ConnectData(
        channel_id=info.channel_id,
        guild_id=info.guild_id,
        session_id=info.session_id,
        server=info.endpoint,
        ssrc=record.ssrc,
    )


def _disconnect_data(record: InternalDisconnect) -> DisconnectData:
    info = record.info
    return DisconnectData(
        kind=record.kind,
        reason=record.reason,
        channel_id=info.channel_id,
        guild_id=info.guild_id,
        session_id=info.session_id,
    )


def _speaking_data(record: InternalSpeakingUpdate) -> SpeakingUpdateData:
    return SpeakingUpdateData(speaking=record.speaking, ssrc=record.ssrc)


def _voice_data(record: InternalVoicePacket) -> VoiceData:
    return VoiceData(
        audio=record.audio,
        packet=record.packet,
        payload_offset=record.payload_offset,
        payload_end_pad=record.payload_end_pad,
    )


def _rtcp_data(record: InternalRtcpPacket) -> RtcpData:
    return RtcpData(
        packet=record.packet,
        payload_offset=record.payload_offset,
        payload_end_pad=record.payload_end_pad,
    )


_RECORD_TYPES: Dict[CoreEvent, type] = {
    CoreEvent.SPEAKING_UPDATE: InternalSpeakingUpdate,
    CoreEvent.VOICE_PACKET: InternalVoicePacket,
    CoreEvent.RTCP_PACKET: InternalRtcpPacket,
    CoreEvent.DRIVER_CONNECT: InternalConnect,
    CoreEvent.DRIVER_RECONNECT: InternalConnect,
    CoreEvent.DRIVER_DISCONNECT: InternalDisconnect,
    CoreEvent.SSRC_KNOWN: int,
}

_NO_DATA = frozenset({CoreEvent.DRIVER_CONNECT_FAILED, CoreEvent.DRIVER_RECONNECT_FAILED})

_CONVERTERS: Dict[CoreEvent, Callable[[Any], Any]] = {
    CoreEvent.SPEAKING_UPDATE: _speaking_data,
    CoreEvent.VOICE_PACKET: _voice_data,
    CoreEvent.RTCP_PACKET: _rtcp_data,
    CoreEvent.DRIVER_CONNECT: _connect_data,
    CoreEvent.DRIVER_RECONNECT: _connect_data,
    CoreEvent.DRIVER_DISCONNECT: _disconnect_data,
}


@dataclass(frozen=True)
class CoreContext:
    """A core event together with the driver's internal record of it."""

    event: CoreEvent
    data: Any = None

    def __post_init__(self) -> None:
        if self.event in _NO_DATA:
            if self.data is not None:
                raise TypeError(f"{self.event.name} carries no data")
            return
        expected = _RECORD_TYPES.get(self.event)
        if expected is not None and (
            not isinstance(self.data, expected) or isinstance(self.data, bool)
        ):
            raise TypeError(
                f"{self.event.name} needs {expected.__name__}, got {type(self.data).__name__}"
            )

    def to_user_context(self) -> EventContext:
        """Build the context handed to event handlers."""
        convert = _CONVERTERS.get(self.event)
        data = convert(self.data) if convert is not None else self.data
        return EventContext(self.event, data)


_PROTOCOL_VIOLATIONS = frozenset(
    {
        ConnectionErrorKind.CRYPTO_MODE_INVALID,
        ConnectionErrorKind.CRYPTO_MODE_UNAVAILABLE,
        ConnectionErrorKind.ENDPOINT_URL,
        ConnectionErrorKind.EXPECTED_HANDSHAKE,
        ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE,
        ConnectionErrorKind.ILLEGAL_IP,
        ConnectionErrorKind.JSON,
    }
)

_DIRECT_REASONS = {
    ConnectionErrorKind.ATTEMPT_DISCARDED: DisconnectReasonKind.ATTEMPT_DISCARDED,
    ConnectionErrorKind.IO: DisconnectReasonKind.IO,
    ConnectionErrorKind.CRYPTO: DisconnectReasonKind.INTERNAL,
    ConnectionErrorKind.INTERCONNECT_FAILURE: DisconnectReasonKind.INTERNAL,
    ConnectionErrorKind.TIMED_OUT: DisconnectReasonKind.TIMED_OUT,
}


def _ws_close_code(ws_error: Optional[BaseException]) -> Optional[int]:
    code = getattr(ws_error, "code", None)
    if isinstance(code, int) and not isinstance(code, bool) and 4000 <= code <= 4999:
        return code
    return None


def disconnect_reason_from_error(error: BaseException) -> DisconnectReason:
    """Classify a connection error, or a websocket error, as a disconnect reason.

    Any exception other than ``DriverConnectionError`` is taken to be a
    websocket error; a close code in the application range (4000-4999) found
    on its ``code`` attribute is kept.
    """
    if not isinstance(error, DriverConnectionError):
        return DisconnectReason(DisconnectReasonKind.WS_CLOSED, _ws_close_code(error))
    if error.kind in _PROTOCOL_VIOLATIONS:
        return DisconnectReason(DisconnectReasonKind.PROTOCOL_VIOLATION)
    if error.kind is ConnectionErrorKind.WS:
        return DisconnectReason(DisconnectReasonKind.WS_CLOSED, _ws_close_code(error.cause))
    return DisconnectReason(_DIRECT_REASONS[error.kind])