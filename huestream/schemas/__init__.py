from .channel_update import MAX_CHANNEL_ID, MAX_CHANNELS, ChannelUpdate, UpdateLike
from .color import RGBA, RGBA64, ColorLike, SupportsRGBA, rgb, to_rgba64
from .stream_state import StreamState

__all__ = [
    "MAX_CHANNELS",
    "MAX_CHANNEL_ID",
    "ChannelUpdate",
    "UpdateLike",
    "RGBA",
    "RGBA64",
    "ColorLike",
    "SupportsRGBA",
    "rgb",
    "to_rgba64",
    "StreamState",
]
