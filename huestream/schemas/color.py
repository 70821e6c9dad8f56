"""Color values accepted by a stream update.

The wire format carries three 16-bit components per channel. `RGBA` is the
everyday 8-bit color, `RGBA64` the full-precision one; both follow the
alpha-premultiplied convention, so the alpha component is simply dropped when
encoding and never used to rescale red, green or blue.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

from ..errors import EncodingError


@runtime_checkable
class SupportsRGBA(Protocol):
    def rgba(self) -> tuple[int, int, int, int]:
        """Return alpha-premultiplied 16-bit components (0..0xFFFF)."""
        ...


class RGBA(BaseModel):
    model_config = ConfigDict(frozen=True)

    r: int = Field(..., ge=0, le=0xFF)
    g: int = Field(..., ge=0, le=0xFF)
    b: int = Field(..., ge=0, le=0xFF)
    a: int = Field(default=0xFF, ge=0, le=0xFF)

    def rgba(self) -> tuple[int, int, int, int]:
        # 8 -> 16 bit expansion: 0xFF -> 0xFFFF, 0x80 -> 0x8080
        return self.r * 0x101, self.g * 0x101, self.b * 0x101, self.a * 0x101


class RGBA64(BaseModel):
    model_config = ConfigDict(frozen=True)

    r: int = Field(..., ge=0, le=0xFFFF)
    g: int = Field(..., ge=0, le=0xFFFF)
    b: int = Field(..., ge=0, le=0xFFFF)
    a: int = Field(default=0xFFFF, ge=0, le=0xFFFF)

    def rgba(self) -> tuple[int, int, int, int]:
        return self.r, self.g, self.b, self.a


ColorLike = SupportsRGBA | Sequence[int]


def rgb(r: int, g: int, b: int) -> RGBA:
    """Shorthand for an opaque 8-bit color."""
    return RGBA(r=r, g=g, b=b)


def to_rgba64(color: ColorLike) -> RGBA64:
    """Normalize any accepted color value to 16-bit components.

    Plain 3- or 4-tuples are read as 8-bit `(r, g, b[, a])`.

    Raises:
        EncodingError: If the value is not a color or a component is out of range
    """
    if isinstance(color, RGBA64):
        return color

    try:
        if isinstance(color, Sequence) and not isinstance(color, (str, bytes)) and len(color) in (3, 4):
            color = RGBA(**dict(zip("rgba", color)))

        if isinstance(color, SupportsRGBA):
            r, g, b, a = color.rgba()
            return RGBA64(r=r, g=g, b=b, a=a)
    except ValueError as exc:
        raise EncodingError(f"Invalid color {color!r}: {exc}") from exc

    raise EncodingError(f"Unsupported color value {color!r}")


__all__ = ["ColorLike", "RGBA", "RGBA64", "SupportsRGBA", "rgb", "to_rgba64"]
