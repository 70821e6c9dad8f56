"""HueStream v2 message codec.

Layout of one datagram:

    offset  size  field
    0       9     "HueStream" protocol name
    9       2     version 2.0
    11      1     sequence id (ignored by the bridge, always 0)
    12      2     reserved
    14      1     color space, 0 = RGB
    15      1     reserved
    16      n     entertainment configuration id, raw bytes, no length prefix
    16+n    7*k   per channel: channel id (u8) + R, G, B (u16, big-endian)
"""

import struct
from collections.abc import Mapping

from ..errors import EncodingError, TooManyChannels
from ..schemas.channel_update import MAX_CHANNELS, ChannelUpdate, UpdateLike
from ..schemas.color import to_rgba64

PROTOCOL_NAME = b"HueStream"
VERSION = (0x02, 0x00)
COLOR_SPACE_RGB = 0x00

HEADER = struct.pack(
    ">9sBBBHBB",
    PROTOCOL_NAME,
    VERSION[0],
    VERSION[1],
    0x00,  # sequence id
    0x0000,  # reserved
    COLOR_SPACE_RGB,
    0x00,  # reserved
)
HEADER_SIZE = len(HEADER)

CHANNEL_RECORD = struct.Struct(">BHHH")
CHANNEL_RECORD_SIZE = CHANNEL_RECORD.size

# Documented upper bound for one datagram; the channel cap keeps typical
# 36-character area ids inside it.
MAX_PACKET_SIZE = 192


def _entries(channels: UpdateLike) -> list:
    if isinstance(channels, ChannelUpdate):
        return list(channels.channels.items())
    if isinstance(channels, Mapping):
        return list(channels.items())
    return list(enumerate(channels))


def encode_message(area_id: str, channels: UpdateLike) -> bytes:
    """Encode one frame for the entertainment area `area_id`.

    Channel ids are written as given and in iteration order; range checks
    happen in `ChannelUpdate.parse`. Alpha is discarded.

    Raises:
        TooManyChannels: More than 20 entries
        EncodingError: A color or channel id cannot be packed
    """
    entries = _entries(channels)
    if len(entries) > MAX_CHANNELS:
        raise TooManyChannels(len(entries), MAX_CHANNELS)

    buf = bytearray(HEADER)
    buf += area_id.encode("utf-8")

    for channel_id, color in entries:
        r, g, b, _ = to_rgba64(color).rgba()
        try:
            buf += CHANNEL_RECORD.pack(channel_id, r, g, b)
        except struct.error as exc:
            raise EncodingError(f"Cannot encode channel {channel_id!r}: {exc}") from exc

    return bytes(buf)


__all__ = [
    "CHANNEL_RECORD_SIZE",
    "HEADER_SIZE",
    "MAX_PACKET_SIZE",
    "PROTOCOL_NAME",
    "encode_message",
]
