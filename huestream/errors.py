"""Error taxonomy for Hue Entertainment streaming.

Every error raised by this package derives from `StreamError`, which carries a
machine-readable `errcode`, a human-readable `errmesg` and, for control-plane
failures, the HTTP `status_code` returned by the bridge.

    StreamError
    ├── ControlPlaneError   start/stop action rejected or unreachable
    ├── HandshakeError      secure transport setup failed
    ├── EncodingError       update cannot be put on the wire
    │   ├── TooManyChannels
    │   └── InvalidChannel
    ├── WriteError          a single datagram write failed (reported async)
    ├── StreamClosedError   update submitted to a stream that is not active
    └── ConfigError         settings missing or malformed
"""

from __future__ import annotations

from enum import Enum


class StreamErrorCode(str, Enum):
    E_CONTROL_PLANE = "E_CONTROL_PLANE"
    E_HANDSHAKE = "E_HANDSHAKE"
    E_ENCODING = "E_ENCODING"
    E_TOO_MANY_CHANNELS = "E_TOO_MANY_CHANNELS"
    E_INVALID_CHANNEL = "E_INVALID_CHANNEL"
    E_WRITE = "E_WRITE"
    E_STREAM_CLOSED = "E_STREAM_CLOSED"
    E_CONFIG = "E_CONFIG"

    def __str__(self) -> str:
        return self.value


class StreamError(Exception):
    default_errcode = StreamErrorCode.E_ENCODING

    def __init__(
        self,
        errmesg: str,
        *,
        errcode: StreamErrorCode | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(errmesg)
        self.errcode = errcode or self.default_errcode
        self.errmesg = errmesg
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.errcode}: {self.errmesg} (status_code={self.status_code})"
        return f"{self.errcode}: {self.errmesg}"


class ControlPlaneError(StreamError):
    """The bridge refused, or never answered, a start/stop action.

    `status_code` is None when the request did not produce an HTTP response.
    """

    default_errcode = StreamErrorCode.E_CONTROL_PLANE


class HandshakeError(StreamError):
    default_errcode = StreamErrorCode.E_HANDSHAKE


class EncodingError(StreamError):
    default_errcode = StreamErrorCode.E_ENCODING


class TooManyChannels(EncodingError):
    default_errcode = StreamErrorCode.E_TOO_MANY_CHANNELS

    def __init__(self, count: int, limit: int) -> None:
        super().__init__(f"maximum number of channels is {limit}, got {count}")
        self.count = count
        self.limit = limit


class InvalidChannel(EncodingError):
    default_errcode = StreamErrorCode.E_INVALID_CHANNEL


class WriteError(StreamError):
    default_errcode = StreamErrorCode.E_WRITE


class StreamClosedError(StreamError):
    default_errcode = StreamErrorCode.E_STREAM_CLOSED


class ConfigError(StreamError):
    default_errcode = StreamErrorCode.E_CONFIG


__all__ = [
    "StreamErrorCode",
    "StreamError",
    "ControlPlaneError",
    "HandshakeError",
    "EncodingError",
    "TooManyChannels",
    "InvalidChannel",
    "WriteError",
    "StreamClosedError",
    "ConfigError",
]
