"""Raw pixel buffer handed to the fill engine by the image decoder."""
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

from transparent_fill.channels import Channel, ChannelLayout


@dataclass
class PixelBuffer:
    """
    Row-major pixel samples plus the role of each channel.

    ``pixels`` has shape (height, width, channel_count) and an unsigned
    integer dtype; the dtype fixes the sample domain (0..255 for uint8,
    0..65535 for uint16). The engine mutates ``pixels`` in place.
    """
    pixels: np.ndarray
    channels: Tuple[Channel, ...]

    def __post_init__(self) -> None:
        self.channels = tuple(Channel(c) for c in self.channels)
        if self.pixels.ndim != 3:
            raise ValueError(
                f"Pixel buffer must have shape (height, width, channels), got {self.pixels.shape}"
            )
        if self.pixels.dtype.kind != "u":
            raise ValueError(f"Pixel samples must be unsigned integers, got {self.pixels.dtype}")
        if self.pixels.shape[2] != len(self.channels):
            raise ValueError(
                f"Buffer has {self.pixels.shape[2]} samples per pixel "
                f"but {len(self.channels)} channel roles"
            )
        if not self.pixels.flags.c_contiguous:
            self.pixels = np.ascontiguousarray(self.pixels)

    @classmethod
    def from_array(cls, pixels: np.ndarray, channels: Sequence[str]) -> "PixelBuffer":
        return cls(pixels=pixels, channels=tuple(Channel(c) for c in channels))

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def channel_count(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def max_value(self) -> int:
        """Largest value a sample can hold."""
        return int(np.iinfo(self.pixels.dtype).max)

    def layout(self) -> ChannelLayout:
        return ChannelLayout.from_roles(self.channels)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(pixels=self.pixels.copy(), channels=self.channels)
