"""Stream real-time colors to a Hue Entertainment area."""

from .config import StreamSettings, get_stream_settings
from .domain.stream import HueStreamClient, Stream, start
from .errors import (
    ConfigError,
    ControlPlaneError,
    EncodingError,
    HandshakeError,
    InvalidChannel,
    StreamClosedError,
    StreamError,
    StreamErrorCode,
    TooManyChannels,
    WriteError,
)
from .schemas import RGBA, RGBA64, ChannelUpdate, StreamState, rgb
from .services.codec import encode_message

__version__ = "0.1.0"

__all__ = [
    "StreamSettings",
    "get_stream_settings",
    "HueStreamClient",
    "Stream",
    "start",
    "encode_message",
    "ChannelUpdate",
    "RGBA",
    "RGBA64",
    "StreamState",
    "rgb",
    "ConfigError",
    "ControlPlaneError",
    "EncodingError",
    "HandshakeError",
    "InvalidChannel",
    "StreamClosedError",
    "StreamError",
    "StreamErrorCode",
    "TooManyChannels",
    "WriteError",
]
