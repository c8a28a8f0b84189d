"""Neighbour sample kernel used for weighted color estimation."""
import enum
import math
from dataclasses import dataclass
from typing import Iterator, Tuple, Union

import numpy as np

DEFAULT_RADIUS = 2


class KernelShape(str, enum.Enum):
    """Footprint of the sample kernel around the pixel being estimated."""
    square = "square"
    circle = "circle"
    diamond = "diamond"


def _inside(shape: KernelShape, dx: int, dy: int, radius: int) -> bool:
    if shape == KernelShape.square:
        return True
    if shape == KernelShape.circle:
        return dx * dx + dy * dy <= radius * radius
    return abs(dx) + abs(dy) <= radius


@dataclass(frozen=True)
class SampleKernel:
    """
    Fixed list of (dx, dy, weight) entries, weight = 1 / distance.

    The centre offset is never included. Every shape contains the four
    edge-adjacent offsets for radius >= 1, so a pixel with a settled
    4-neighbour always gets a non-zero total weight.
    """
    shape: KernelShape
    radius: int
    entries: Tuple[Tuple[int, int, float], ...]

    @classmethod
    def build(
        cls,
        shape: Union[str, KernelShape] = KernelShape.square,
        radius: int = DEFAULT_RADIUS,
    ) -> "SampleKernel":
        """
        Precompute the kernel entries.

        Args:
            shape: Kernel footprint ("square", "circle" or "diamond")
            radius: Half-width of the footprint, at least 1

        Returns:
            Immutable kernel
        """
        shape = KernelShape(shape)
        if radius < 1:
            raise ValueError(f"Kernel radius must be at least 1, got {radius}")

        entries = []
        for dx in range(-radius, radius + 1):
            for dy in range(-radius, radius + 1):
                if dx == 0 and dy == 0:
                    continue
                if not _inside(shape, dx, dy, radius):
                    continue
                entries.append((dx, dy, 1.0 / math.sqrt(dx * dx + dy * dy)))
        return cls(shape=shape, radius=radius, entries=tuple(entries))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[Tuple[int, int, float]]:
        return iter(self.entries)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Offsets and weights as parallel numpy arrays (dx, dy, weight)."""
        arr = np.array(self.entries, dtype=np.float64).reshape(-1, 3)
        return arr[:, 0].astype(np.intp), arr[:, 1].astype(np.intp), arr[:, 2]
