from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Union

from pydantic import BaseModel, ConfigDict, Field

from ..errors import EncodingError, InvalidChannel, TooManyChannels
from .color import RGBA64, ColorLike, to_rgba64

# Protocol limits of the Hue Entertainment API v2
MAX_CHANNELS = 20
MAX_CHANNEL_ID = MAX_CHANNELS - 1


class ChannelUpdate(BaseModel):
    """One frame of colors keyed by channel id (0..19)."""

    model_config = ConfigDict(frozen=True)

    channels: dict[int, RGBA64] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.channels)

    def is_empty(self) -> bool:
        return not self.channels

    @classmethod
    def parse(cls, update: "UpdateLike | None") -> "ChannelUpdate":
        """Validate caller input before it is queued for sending.

        Accepts a `{channel_id: color}` mapping or a sequence of colors whose
        index is the channel id. None yields an empty update.

        Raises:
            TooManyChannels: More than 20 entries
            InvalidChannel: A channel id outside 0..19
            EncodingError: An entry is not a color
        """
        if update is None:
            return cls()
        if isinstance(update, ChannelUpdate):
            return update

        if isinstance(update, Mapping):
            items = list(update.items())
        elif isinstance(update, Sequence) and not isinstance(update, (str, bytes)):
            items = list(enumerate(update))
        else:
            raise EncodingError(f"Unsupported update type {type(update).__name__}")

        if len(items) > MAX_CHANNELS:
            raise TooManyChannels(len(items), MAX_CHANNELS)

        channels: dict[int, RGBA64] = {}
        for channel_id, color in items:
            if isinstance(channel_id, bool) or not isinstance(channel_id, int):
                raise InvalidChannel(f"Channel id must be an integer, got {channel_id!r}")
            if not 0 <= channel_id <= MAX_CHANNEL_ID:
                raise InvalidChannel(f"Channel id must be in 0..{MAX_CHANNEL_ID}, got {channel_id}")
            channels[channel_id] = to_rgba64(color)

        return cls(channels=channels)


UpdateLike = Union[ChannelUpdate, Mapping[int, ColorLike], Sequence[ColorLike]]


__all__ = ["MAX_CHANNELS", "MAX_CHANNEL_ID", "ChannelUpdate", "UpdateLike"]
