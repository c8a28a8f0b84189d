"""Grid of pixels whose color channels hold settled data."""
import numpy as np

from transparent_fill.buffer import PixelBuffer
from transparent_fill.channels import ChannelLayout


class OccupancyGrid:
    """
    Boolean width x height grid; True means the pixel's color is settled.

    Entries only ever go from False to True. Positions outside the grid
    read as unsettled, which is what every neighbour check relies on.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        # indexed [y, x]
        self.mask = np.zeros((height, width), dtype=bool)

    @classmethod
    def from_alpha(cls, buffer: PixelBuffer, layout: ChannelLayout) -> "OccupancyGrid":
        """Settle every pixel whose alpha is above zero."""
        grid = cls(buffer.width, buffer.height)
        grid.mask[...] = buffer.pixels[..., layout.alpha_index] > 0
        return grid

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def is_settled(self, x: int, y: int) -> bool:
        return self.in_bounds(x, y) and bool(self.mask[y, x])

    def mark_settled(self, x: int, y: int) -> None:
        if not self.in_bounds(x, y):
            raise IndexError(f"Position ({x}, {y}) is outside a {self.width}x{self.height} grid")
        self.mask[y, x] = True

    def mark_many(self, ys: np.ndarray, xs: np.ndarray) -> None:
        """Settle a batch of in-bounds positions (one committed round)."""
        self.mask[ys, xs] = True

    def unsettled_mask(self) -> np.ndarray:
        return ~self.mask

    @property
    def settled_count(self) -> int:
        return int(np.count_nonzero(self.mask))

    @property
    def unsettled_count(self) -> int:
        return self.width * self.height - self.settled_count
