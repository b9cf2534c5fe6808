"""Encryption schemes used for secure RTP voice packets, and receive decode modes."""

from __future__ import annotations

import os
import secrets
import struct
from dataclasses import dataclass
from enum import Enum, auto

import nacl.bindings
import nacl.exceptions

RTP_HEADER_SIZE = 12
"""Minimum size of an RTP header, in bytes."""

NONCE_SIZE = nacl.bindings.crypto_secretbox_NONCEBYTES
TAG_SIZE = nacl.bindings.crypto_secretbox_MACBYTES
KEY_SIZE = nacl.bindings.crypto_secretbox_KEYBYTES

_LITE_NONCE = struct.Struct(">I")


class CryptoError(Exception):
    """Raised when a packet cannot be encrypted or decrypted."""


class CryptoMode(Enum):
    """Variants of the XSalsa20Poly1305 encryption scheme."""

    NORMAL = "xsalsa20_poly1305"
    """The RTP header is the source of nonce bytes."""
    SUFFIX = "xsalsa20_poly1305_suffix"
    """A random 24-byte suffix, regenerated per packet, is the nonce."""
    LITE = "xsalsa20_poly1305_lite"
    """A 4-byte suffix, incremented per packet, is the nonce."""

    def to_request_str(self) -> str:
        """Name of the mode as it appears during negotiation."""
        return self.value

    def nonce_size(self) -> int:
        """Number of bytes each nonce is stored as within a packet."""
        if self is CryptoMode.NORMAL:
            return RTP_HEADER_SIZE
        if self is CryptoMode.SUFFIX:
            return NONCE_SIZE
        return 4

    def payload_prefix_len(self) -> int:
        """Bytes used by the scheme before the payload."""
        return TAG_SIZE

    def payload_suffix_len(self) -> int:
        """Bytes used by the scheme after the payload."""
        if self is CryptoMode.NORMAL:
            return 0
        return self.nonce_size()

    def payload_overhead(self) -> int:
        """Extra bytes needed compared with an unencrypted payload."""
        return self.payload_prefix_len() + self.payload_suffix_len()

    def _split_nonce(self, packet: bytearray, header_len: int, body_end: int) -> tuple[bytes, int]:
        """Return the full 24-byte nonce and the end offset of the remaining body."""
        if self is CryptoMode.NORMAL:
            raw = bytes(packet[:header_len])
            remaining_end = body_end
        else:
            body_len = body_end - header_len
            suffix = self.payload_suffix_len()
            if body_len < suffix:
                raise CryptoError("packet too small to hold nonce")
            remaining_end = body_end - suffix
            raw = bytes(packet[remaining_end:remaining_end + self.nonce_size()])

        if len(raw) == NONCE_SIZE:
            return raw, remaining_end
        return raw[: self.nonce_size()].ljust(NONCE_SIZE, b"\0"), remaining_end

    def decrypt_in_place(self, packet: bytearray, header_len: int, key: bytes) -> tuple[int, int]:
        """Decrypt an RT(C)P packet whose payload starts at ``header_len``.

        Returns the number of bytes to ignore at the start and end of the payload.
        """
        _check_key(key)
        nonce, remaining_end = self._split_nonce(packet, header_len, len(packet))

        body_start = self.payload_prefix_len()
        body_tail = self.payload_suffix_len()
        if body_start > remaining_end - header_len:
            raise CryptoError("packet too small to hold tag")

        boxed = bytes(packet[header_len:remaining_end])
        try:
            plain = nacl.bindings.crypto_secretbox_open(boxed, nonce, key)
        except nacl.exceptions.CryptoError as exc:
            raise CryptoError("decryption failed") from exc

        data_start = header_len + body_start
        packet[data_start:data_start + len(plain)] = plain
        return body_start, body_tail

    def encrypt_in_place(
        self, packet: bytearray, header_len: int, key: bytes, payload_len: int
    ) -> None:
        """Encrypt an RT(C)P packet in place.

        The nonce must already be written in its place, and ``payload_len``
        counts the bytes after the header, nonce included.
        """
        _check_key(key)
        body_end = header_len + payload_len
        if body_end > len(packet):
            raise CryptoError("payload length exceeds packet size")
        nonce, remaining_end = self._split_nonce(packet, header_len, body_end)

        if remaining_end - header_len < TAG_SIZE:
            raise CryptoError("packet too small to hold tag")

        data_start = header_len + TAG_SIZE
        plain = bytes(packet[data_start:remaining_end])
        boxed = nacl.bindings.crypto_secretbox(plain, nonce, key)
        packet[header_len:remaining_end] = boxed


def _check_key(key: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise CryptoError(f"key must be {KEY_SIZE} bytes")


@dataclass
class CryptoState:
    """Per-connection state of an active crypto mode."""

    mode: CryptoMode
    lite_nonce: int | None = None

    @classmethod
    def from_mode(cls, mode: CryptoMode) -> CryptoState:
        """Create fresh state for a mode; Lite starts from a random counter."""
        if mode is CryptoMode.LITE:
            return cls(mode, secrets.randbits(32))
        return cls(mode)

    def kind(self) -> CryptoMode:
        """The stateless mode underlying this state."""
        return self.mode

    def write_packet_nonce(self, packet: bytearray, header_len: int, payload_end: int) -> int:
        """Write the packet nonce after the payload, if required, returning the new payload length."""
        endpoint = payload_end + self.mode.payload_suffix_len()
        start = header_len + payload_end
        stop = header_len + endpoint
        if stop > len(packet):
            raise ValueError("packet too small to hold nonce")

        if self.mode is CryptoMode.SUFFIX:
            packet[start:stop] = os.urandom(stop - start)
        elif self.mode is CryptoMode.LITE:
            counter = self.lite_nonce or 0
            packet[start:stop] = _LITE_NONCE.pack(counter)
            self.lite_nonce = (counter + 1) & 0xFFFFFFFF

        return endpoint


class DecodeMode(Enum):
    """Decode behaviour for received RTP packets."""

    PASS = auto()
    """Packets are handed over unchanged."""
    DECRYPT = auto()
    """Packet bodies are decrypted."""
    DECODE = auto()
    """Packets are decrypted and decoded."""

    def should_decrypt(self) -> bool:
        """Whether received packets are decrypted in this mode."""
        return self is not DecodeMode.PASS