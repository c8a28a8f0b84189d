"""Mutable fill state for one decoded image."""
import logging
from typing import Optional, Sequence, Tuple, Union

import numpy as np
from PIL import ImageColor

from transparent_fill.buffer import PixelBuffer
from transparent_fill.channels import Channel
from transparent_fill.config import FillConfig
from transparent_fill.engine import FillReport, FrontierScratch, WavefrontFill
from transparent_fill.errors import OperationError
from transparent_fill.kernel import KernelShape, SampleKernel
from transparent_fill.occupancy import OccupancyGrid

logger = logging.getLogger(__name__)

ColorLike = Union[str, Sequence[int]]


def parse_color(color: ColorLike) -> Tuple[int, int, int]:
    """
    Parse an 8-bit RGB color.

    Accepts anything ``PIL.ImageColor`` understands ("#000", "red",
    "rgb(1,2,3)") or a 3-item sequence of 0..255 integers.
    """
    if isinstance(color, str):
        try:
            rgb = ImageColor.getrgb(color)
        except ValueError as e:
            raise OperationError(f"Unknown color {color!r}") from e
        return rgb[0], rgb[1], rgb[2]

    try:
        values = tuple(color)
    except TypeError:
        raise OperationError(f"Color must be a string or three 0..255 values, got {color!r}") from None
    if (
        len(values) != 3
        or any(isinstance(c, bool) or not isinstance(c, (int, np.integer)) for c in values)
        or any(c < 0 or c > 255 for c in values)
    ):
        raise OperationError(f"Color must be three 0..255 values, got {list(values)!r}")
    return int(values[0]), int(values[1]), int(values[2])


def _luma(rgb: Tuple[int, int, int]) -> int:
    # ITU-R 601-2, matching PIL's RGB -> L conversion
    r, g, b = rgb
    return (r * 299 + g * 587 + b * 114 + 500) // 1000


class Processor:
    """
    Owns the pixel buffer, channel layout, occupancy grid and kernel.

    Every operation mutates this state in place. The channel layout is
    validated on construction, before any pixel work.
    """

    def __init__(self, buffer: PixelBuffer, config: Optional[FillConfig] = None):
        self.config = config or FillConfig.from_env()
        self.layout = buffer.layout()
        self.buffer = buffer
        self.grid = OccupancyGrid.from_alpha(buffer, self.layout)
        self.kernel = SampleKernel.build(self.config.shape, self.config.radius)
        self._scratch = FrontierScratch()
        logger.debug(
            "Processor for %dx%d image, channels %s, %d settled pixel(s)",
            buffer.width, buffer.height,
            "".join(c.value for c in self.layout.channels), self.grid.settled_count,
        )

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height

    def _kernel_for(self, shape: Optional[Union[str, KernelShape]], radius: Optional[int]) -> SampleKernel:
        if shape is None and radius is None:
            return self.kernel
        return SampleKernel.build(
            self.kernel.shape if shape is None else shape,
            self.kernel.radius if radius is None else radius,
        )

    def propagate(
        self,
        max_rounds: Optional[int] = None,
        shape: Optional[Union[str, KernelShape]] = None,
        radius: Optional[int] = None,
    ) -> FillReport:
        """
        Grow settled color outwards into transparent pixels.

        Args:
            max_rounds: Round budget, None for unbounded
            shape: Kernel shape override for this run
            radius: Kernel radius override for this run

        Returns:
            Report of the run
        """
        engine = WavefrontFill(
            self.buffer, self.layout, self.grid, self._kernel_for(shape, radius), self.config
        )
        return engine.run(max_rounds, self._scratch)

    def fill_values(self, color: ColorLike) -> np.ndarray:
        """Per-channel sample values for a solid fill, alpha forced to 0."""
        rgb = parse_color(color)
        max_value = self.buffer.max_value
        values = np.zeros(self.buffer.channel_count, dtype=self.buffer.pixels.dtype)
        for index, channel in enumerate(self.layout.channels):
            if channel is Channel.red:
                v = rgb[0]
            elif channel is Channel.green:
                v = rgb[1]
            elif channel is Channel.blue:
                v = rgb[2]
            elif channel is Channel.gray:
                v = _luma(rgb)
            else:
                v = 0
            values[index] = v * max_value // 255
        return values

    def set_color(self, color: ColorLike = (0, 0, 0)) -> int:
        """
        Fill every still-unsettled pixel with one color and settle it.

        Filled pixels get alpha 0 so they stay distinguishable from
        originally opaque ones. Calling again once everything is settled
        changes nothing.

        Returns:
            Number of pixels filled
        """
        rgb = parse_color(color)
        values = self.fill_values(rgb)
        unsettled = self.grid.unsettled_mask()
        count = int(np.count_nonzero(unsettled))
        if count:
            self.buffer.pixels[unsettled] = values
            self.grid.mask[unsettled] = True
        logger.info("Solid fill %s applied to %d pixel(s)", rgb, count)
        return count

    def get_output(self) -> PixelBuffer:
        return self.buffer.copy()

    def get_preview(self) -> PixelBuffer:
        """Copy of the current buffer with alpha forced fully opaque."""
        preview = self.buffer.copy()
        preview.pixels[..., self.layout.alpha_index] = preview.max_value
        return preview
