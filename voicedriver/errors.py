"""Errors raised while joining calls, connecting the driver and running its tasks."""

from __future__ import annotations

import asyncio
import json
from enum import Enum

from voicedriver.crypto import CryptoError


class Recipient(Enum):
    """Background task that could not be messaged."""

    AUX_NETWORK = "AuxNetwork"
    EVENT = "Event"
    MIXER = "Mixer"
    UDP_RX = "UdpRx"
    UDP_TX = "UdpTx"


class ConnectionErrorKind(Enum):
    """Ways in which connecting to a voice server can fail."""

    ATTEMPT_DISCARDED = "attempt_discarded"
    CRYPTO = "crypto"
    CRYPTO_MODE_INVALID = "crypto_mode_invalid"
    CRYPTO_MODE_UNAVAILABLE = "crypto_mode_unavailable"
    ENDPOINT_URL = "endpoint_url"
    ILLEGAL_DISCOVERY_RESPONSE = "illegal_discovery_response"
    ILLEGAL_IP = "illegal_ip"
    IO = "io"
    JSON = "json"
    INTERCONNECT_FAILURE = "interconnect_failure"
    WS = "ws"
    TIMED_OUT = "timed_out"


_CONNECTION_MESSAGES = {
    ConnectionErrorKind.ATTEMPT_DISCARDED: "connection attempt was aborted/discarded",
    ConnectionErrorKind.CRYPTO_MODE_INVALID: "server changed negotiated encryption mode",
    ConnectionErrorKind.CRYPTO_MODE_UNAVAILABLE: "server did not offer chosen encryption mode",
    ConnectionErrorKind.ENDPOINT_URL: "endpoint URL received from gateway was invalid",
    ConnectionErrorKind.ILLEGAL_DISCOVERY_RESPONSE: "IP discovery/NAT punching response was invalid",
    ConnectionErrorKind.ILLEGAL_IP: "IP discovery/NAT punching response had bad IP value",
    ConnectionErrorKind.TIMED_OUT: "connection attempt timed out",
}

_WRAPPING_KINDS = frozenset(
    {
        ConnectionErrorKind.CRYPTO,
        ConnectionErrorKind.IO,
        ConnectionErrorKind.JSON,
        ConnectionErrorKind.WS,
    }
)


class DriverConnectionError(Exception):
    """Error encountered while connecting to a voice server over the driver.

    Kinds that wrap another failure (crypto, I/O, JSON, websocket) take it as
    ``inner``; an interconnect failure takes the unreachable ``recipient``.
    """

    def __init__(
        self,
        kind: ConnectionErrorKind,
        inner: BaseException | None = None,
        recipient: Recipient | None = None,
    ) -> None:
        if kind is ConnectionErrorKind.INTERCONNECT_FAILURE and recipient is None:
            raise ValueError("an interconnect failure needs a recipient")
        if kind in _WRAPPING_KINDS and inner is None:
            raise ValueError(f"{kind.name} errors need an inner exception")
        self.kind = kind
        self.inner = inner
        self.recipient = recipient
        super().__init__(self._describe())
        if kind in _WRAPPING_KINDS and kind is not ConnectionErrorKind.WS:
            self.__cause__ = inner

    def _describe(self) -> str:
        prefix = "failed to connect to Discord RTP server: "
        kind = self.kind
        if kind is ConnectionErrorKind.INTERCONNECT_FAILURE:
            assert self.recipient is not None
            return f"{prefix}failed to contact other task ({self.recipient.value})"
        if kind is ConnectionErrorKind.WS:
            return f"{prefix}websocket issue ({self.inner!r})."
        if kind in _WRAPPING_KINDS:
            return f"{prefix}{self.inner}"
        return prefix + _CONNECTION_MESSAGES[kind]

    @classmethod
    def from_exception(cls, exc: BaseException) -> DriverConnectionError:
        """Classify a lower-level failure raised while connecting."""
        if isinstance(exc, DriverConnectionError):
            return exc
        if isinstance(exc, CryptoError):
            return cls(ConnectionErrorKind.CRYPTO, exc)
        if isinstance(exc, (TimeoutError, asyncio.TimeoutError)):
            return cls(ConnectionErrorKind.TIMED_OUT)
        if isinstance(exc, json.JSONDecodeError):
            return cls(ConnectionErrorKind.JSON, exc)
        if isinstance(exc, OSError):
            return cls(ConnectionErrorKind.IO, exc)
        raise TypeError(f"cannot classify {type(exc).__name__} as a connection error")


class JoinErrorKind(Enum):
    """Reasons a request to join a voice channel can fail."""

    DROPPED = "request was cancelled/dropped"
    NO_SENDER = "no gateway destination"
    NO_CALL = "tried to leave a non-existent call"
    TIMED_OUT = "gateway response from Discord timed out"
    ILLEGAL_GUILD = "target guild ID was zero"
    ILLEGAL_CHANNEL = "target channel ID was zero"
    DRIVER = "establishing connection failed"


class JoinError(Exception):
    """Raised when a call cannot send or complete a join over the gateway."""

    def __init__(
        self, kind: JoinErrorKind, driver_error: DriverConnectionError | None = None
    ) -> None:
        if kind is JoinErrorKind.DRIVER and driver_error is None:
            raise ValueError("a driver join error needs the connection error")
        if kind is not JoinErrorKind.DRIVER and driver_error is not None:
            raise ValueError("only driver join errors carry a connection error")
        self.kind = kind
        self.driver_error = driver_error
        super().__init__(f"failed to join voice channel: {kind.value}")
        self.__cause__ = driver_error

    @classmethod
    def from_driver(cls, error: DriverConnectionError) -> JoinError:
        """Wrap a failed driver connection."""
        return cls(JoinErrorKind.DRIVER, error)

    def should_leave_server(self) -> bool:
        """Whether gateway state may be inconsistent, so the bot should leave first."""
        return self.kind is JoinErrorKind.TIMED_OUT

    def should_reconnect_driver(self) -> bool:
        """Whether the driver connection can be reattempted with the received info."""
        return self.kind is JoinErrorKind.DRIVER


class TaskErrorKind(Enum):
    """Failures raised inside the driver's background tasks."""

    CRYPTO = "crypto"
    ILLEGAL_VOICE_PACKET = "illegal_voice_packet"
    INTERCONNECT_FAILURE = "interconnect_failure"
    IO = "io"
    OPUS = "opus"
    WS = "ws"


_CONNECT_RECIPIENTS = frozenset({Recipient.AUX_NETWORK, Recipient.UDP_RX, Recipient.UDP_TX})


class TaskError(Exception):
    """Error raised by one of the driver's background tasks."""

    def __init__(
        self,
        kind: TaskErrorKind,
        inner: BaseException | None = None,
        recipient: Recipient | None = None,
    ) -> None:
        if kind is TaskErrorKind.INTERCONNECT_FAILURE and recipient is None:
            raise ValueError("an interconnect failure needs a recipient")
        self.kind = kind
        self.inner = inner
        self.recipient = recipient
        if kind is TaskErrorKind.INTERCONNECT_FAILURE:
            assert recipient is not None
            message = f"failed to contact other task ({recipient.value})"
        elif kind is TaskErrorKind.ILLEGAL_VOICE_PACKET:
            message = "illegal voice packet received"
        elif inner is not None:
            message = f"{kind.value} error: {inner}"
        else:
            message = f"{kind.value} error"
        super().__init__(message)
        self.__cause__ = inner

    @classmethod
    def from_exception(cls, exc: BaseException) -> TaskError:
        """Classify a lower-level failure raised inside a task."""
        if isinstance(exc, TaskError):
            return exc
        if isinstance(exc, CryptoError):
            return cls(TaskErrorKind.CRYPTO, exc)
        if isinstance(exc, OSError):
            return cls(TaskErrorKind.IO, exc)
        raise TypeError(f"cannot classify {type(exc).__name__} as a task error")

    def should_trigger_connect(self) -> bool:
        """Whether a network task is unreachable, requiring a full reconnect."""
        return (
            self.kind is TaskErrorKind.INTERCONNECT_FAILURE
            and self.recipient in _CONNECT_RECIPIENTS
        )

    def should_trigger_interconnect_rebuild(self) -> bool:
        """Whether the event task is unreachable, requiring an interconnect rebuild."""
        return (
            self.kind is TaskErrorKind.INTERCONNECT_FAILURE
            and self.recipient is Recipient.EVENT
        )