"""Data handed to event handlers, describing which tracks or packets fired an event."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from voicedriver.errors import ConnectionErrorKind, DriverConnectionError
from voicedriver.events import CoreEvent

_LIBRARY_CLOSE_CODES = range(4000, 5000)


@dataclass(frozen=True)
class ConnectData:
    """Voice connection details gathered at setup or reconnection."""

    channel_id: Optional[int]
    """ID of the voice channel joined, if known."""
    guild_id: int
    """ID of the voice channel's parent guild."""
    session_id: str
    """Session string used for validation and authentication."""
    server: str
    """Domain name of the voice server."""
    ssrc: int
    """RTP synchronisation source assigned for this call."""


class DisconnectKind(Enum):
    """Where a voice connection was terminated."""

    CONNECT = "connect"
    """The driver failed to connect to the server."""
    RECONNECT = "reconnect"
    """The driver failed to reconnect to the server."""
    RUNTIME = "runtime"
    """The connection was terminated mid-session."""


class DisconnectReasonKind(Enum):
    """Categories of connection failure."""

    ATTEMPT_DISCARDED = "attempt_discarded"
    INTERNAL = "internal"
    IO = "io"
    PROTOCOL_VIOLATION = "protocol_violation"
    TIMED_OUT = "timed_out"
    WS_CLOSED = "ws_closed"


_PROTOCOL_VIOLATIONS = frozenset(
    {
        ConnectionErrorKind.CRYPTO_MODE_INVALID,
        ConnectionErrorKind.CRYPTO_MODE_UNAVAILABLE,
        ConnectionErrorKind.ENDPOINT_URL,
        ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE,
        ConnectionErrorKind.ILLEGAL_IP,
        ConnectionErrorKind.JSON,
    }
)

_INTERNAL = frozenset({ConnectionErrorKind.CRYPTO, ConnectionErrorKind.INTERCONNECT_FAILURE})


@dataclass(frozen=True)
class DisconnectReason:
    """Why a voice connection failed.

    ``close_code`` is only set for websocket closures carrying a voice close code.
    """

    kind: DisconnectReasonKind
    close_code: Optional[int] = None

    def __post_init__(self) -> None:
        if self.close_code is not None and self.kind is not DisconnectReasonKind.WS_CLOSED:
            raise ValueError("only websocket closures carry a close code")

    @classmethod
    def from_connection_error(cls, error: DriverConnectionError) -> DisconnectReason:
        """Classify a driver connection failure."""
        kind = error.kind
        if kind is ConnectionErrorKind.ATTEMPT_DISCARDED:
            return cls(DisconnectReasonKind.ATTEMPT_DISCARDED)
        if kind in _PROTOCOL_VIOLATIONS:
            return cls(DisconnectReasonKind.PROTOCOL_VIOLATION)
        if kind is ConnectionErrorKind.IO:
            return cls(DisconnectReasonKind.IO)
        if kind in _INTERNAL:
            return cls(DisconnectReasonKind.INTERNAL)
        if kind is ConnectionErrorKind.TIMED_OUT:
            return cls(DisconnectReasonKind.TIMED_OUT)
        return cls(DisconnectReasonKind.WS_CLOSED, _close_code(error.inner))


def _close_code(inner: BaseException | None) -> Optional[int]:
    code = getattr(inner, "code", None)
    if isinstance(code, int) and not isinstance(code, bool) and code in _LIBRARY_CLOSE_CODES:
        return code
    return None


@dataclass(frozen=True)
class DisconnectData:
    """Voice connection details gathered at termination or failure."""

    kind: DisconnectKind
    reason: Optional[DisconnectReason]
    """Cause of the failure; ``None`` if the user requested the disconnect."""
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

    ``audio`` is ``None`` when decoding is off, and empty for out-of-order packets.
    """

    audio: Optional[list[int]]
    packet: bytes
    payload_offset: int
    """Index into the packet body where the payload begins."""
    payload_end_pad: int
    """Number of bytes at the end of the packet to discard."""


@dataclass(frozen=True)
class RtcpData:
    """A telemetry packet received from another stream."""

    packet: bytes
    payload_offset: int
    payload_end_pad: int


class ContextKind(Enum):
    """Which kind of event an :class:`EventContext` describes."""

    TRACK = "track"
    SPEAKING_STATE_UPDATE = "speaking_state_update"
    SPEAKING_UPDATE = "speaking_update"
    VOICE_PACKET = "voice_packet"
    RTCP_PACKET = "rtcp_packet"
    CLIENT_DISCONNECT = "client_disconnect"
    DRIVER_CONNECT = "driver_connect"
    DRIVER_RECONNECT = "driver_reconnect"
    DRIVER_DISCONNECT = "driver_disconnect"


_CORE_EVENTS = {
    ContextKind.SPEAKING_STATE_UPDATE: CoreEvent.SPEAKING_STATE_UPDATE,
    ContextKind.SPEAKING_UPDATE: CoreEvent.SPEAKING_UPDATE,
    ContextKind.VOICE_PACKET: CoreEvent.VOICE_PACKET,
    ContextKind.RTCP_PACKET: CoreEvent.RTCP_PACKET,
    ContextKind.CLIENT_DISCONNECT: CoreEvent.CLIENT_DISCONNECT,
    ContextKind.DRIVER_CONNECT: CoreEvent.DRIVER_CONNECT,
    ContextKind.DRIVER_RECONNECT: CoreEvent.DRIVER_RECONNECT,
    ContextKind.DRIVER_DISCONNECT: CoreEvent.DRIVER_DISCONNECT,
}

_PAYLOAD_TYPES: dict[ContextKind, type] = {
    ContextKind.SPEAKING_UPDATE: SpeakingUpdateData,
    ContextKind.VOICE_PACKET: VoiceData,
    ContextKind.RTCP_PACKET: RtcpData,
    ContextKind.DRIVER_CONNECT: ConnectData,
    ContextKind.DRIVER_RECONNECT: ConnectData,
    ContextKind.DRIVER_DISCONNECT: DisconnectData,
}


@dataclass(frozen=True)
class EventContext:
    """Information about which tracks or data fired an event.

    For ``TRACK`` contexts, ``data`` is a tuple of ``(state, handle)`` pairs,
    empty when fired globally without tracks.
    """

    kind: ContextKind
    data: Any = None

    def __post_init__(self) -> None:
        if self.kind is ContextKind.TRACK:
            pairs = tuple(self.data or ())
            for pair in pairs:
                if not isinstance(pair, tuple) or len(pair) != 2:
                    raise TypeError("track context data must be (state, handle) pairs")
            object.__setattr__(self, "data", pairs)
            return
        expected = _PAYLOAD_TYPES.get(self.kind)
        if expected is not None and not isinstance(self.data, expected):
            raise TypeError(
                f"{self.kind.name} context needs {expected.__name__}, "
                f"not {type(self.data).__name__}"
            )

    def to_core_event(self) -> Optional[CoreEvent]:
        """The core event class this context matches, or ``None`` for track contexts."""
        return _CORE_EVENTS.get(self.kind)