"""Channel roles and the alpha/color layout derived from them."""
import enum
from dataclasses import dataclass
from typing import Iterable, Tuple

from transparent_fill.errors import (
    InvalidColorChannelCount,
    MissingAlphaChannel,
    UnsupportedChannelLayout,
)

# The per-pixel accumulator carries at most this many color lanes.
MAX_COLOR_CHANNELS = 3


class Channel(str, enum.Enum):
    """Role of a single channel in the source image."""
    red = "R"
    green = "G"
    blue = "B"
    gray = "L"
    alpha = "A"
    index = "P"
    premultiplied_alpha = "a"
    composite = "composite"

    @property
    def is_color(self) -> bool:
        return self in (Channel.red, Channel.green, Channel.blue, Channel.gray)

    @property
    def is_supported(self) -> bool:
        return self.is_color or self is Channel.alpha


def channel_from_band(band: str) -> Channel:
    """
    Map a PIL band name to a channel role.

    Bands the engine has no model for (``I``, ``F``, ``C``/``M``/``Y``/``K``,
    ``H``/``S``/``V`` ...) are reported as composite channels.
    """
    try:
        return Channel(band)
    except ValueError:
        return Channel.composite


@dataclass(frozen=True)
class ChannelLayout:
    """
    Which channel index is alpha and which indices are color.

    ``color_indices`` keeps the source order; accumulation and write-back
    both use that order.
    """
    channels: Tuple[Channel, ...]
    alpha_index: int
    color_indices: Tuple[int, ...]

    @classmethod
    def from_roles(cls, roles: Iterable[Channel]) -> "ChannelLayout":
        """
        Classify every channel of the source image.

        Args:
            roles: Ordered channel roles, one per sample in a pixel

        Returns:
            The derived layout

        Raises:
            UnsupportedChannelLayout: palette, composite or premultiplied
                channel present, or more than one alpha channel
            InvalidColorChannelCount: zero or more than three color channels
            MissingAlphaChannel: no alpha channel
        """
        channels = tuple(Channel(r) for r in roles)
        alpha_index = -1
        color_indices = []
        for index, channel in enumerate(channels):
            if channel is Channel.alpha:
                if alpha_index != -1:
                    raise UnsupportedChannelLayout(
                        f"Cannot process an image with more than one alpha channel "
                        f"(channels {alpha_index} and {index})"
                    )
                alpha_index = index
            elif not channel.is_supported:
                raise UnsupportedChannelLayout(
                    f"Cannot process an image that contains a {channel.name} channel "
                    f"(channel {index})"
                )
            else:
                color_indices.append(index)

        if not color_indices or len(color_indices) > MAX_COLOR_CHANNELS:
            raise InvalidColorChannelCount(
                f"Cannot process this image - it has {len(color_indices)} color channels"
            )
        if alpha_index == -1:
            raise MissingAlphaChannel("Cannot process this image - it has no alpha channel")

        return cls(channels=channels, alpha_index=alpha_index, color_indices=tuple(color_indices))

    @property
    def channel_count(self) -> int:
        return len(self.channels)

    @property
    def color_roles(self) -> Tuple[Channel, ...]:
        return tuple(self.channels[i] for i in self.color_indices)
