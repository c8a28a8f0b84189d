"""
Wavefront fill engine.

Transparent pixels next to settled ones form the frontier. Each round
estimates a color for every frontier pixel from its settled neighbourhood,
commits all estimates at once, settles those pixels, and moves the frontier
one step outwards. Reads in a round never see values written in that round.
"""
import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, Set, Tuple

import cv2
import numpy as np

from transparent_fill.buffer import PixelBuffer
from transparent_fill.channels import ChannelLayout
from transparent_fill.config import FillConfig
from transparent_fill.errors import FrontierInvariantError, OperationError
from transparent_fill.kernel import SampleKernel
from transparent_fill.occupancy import OccupancyGrid

logger = logging.getLogger(__name__)

_CROSS = cv2.getStructuringElement(cv2.MORPH_CROSS, (3, 3))
_NEIGHBOURS_4 = ((1, 0), (-1, 0), (0, 1), (0, -1))


class FillState(str, enum.Enum):
    """Lifecycle of one propagation run."""
    idle = "idle"
    running = "running"
    converged = "converged"
    round_budget_exhausted = "round_budget_exhausted"


@dataclass
class FillReport:
    """Outcome of one propagation run."""
    state: FillState
    rounds: int
    filled: int
    remaining_frontier: int


class FrontierScratch:
    """
    Reusable de-duplication set for next-frontier discovery.

    Owned by the caller and cleared at the start of every round, so a
    pixel discovered by several settled neighbours appears only once.
    """

    def __init__(self) -> None:
        self._seen: Set[int] = set()

    def clear(self) -> None:
        self._seen.clear()

    def add_many(self, linear: np.ndarray) -> None:
        self._seen.update(linear.tolist())

    def __len__(self) -> int:
        return len(self._seen)

    def positions(self, width: int) -> Tuple[np.ndarray, np.ndarray]:
        """Collected positions as (ys, xs) in row-major order."""
        linear = np.fromiter(sorted(self._seen), dtype=np.intp, count=len(self._seen))
        ys, xs = np.divmod(linear, width)
        return ys, xs


def find_initial_frontier(grid: OccupancyGrid) -> Tuple[np.ndarray, np.ndarray]:
    """
    Unsettled pixels with at least one settled 4-neighbour.

    This is the only full-grid scan; later frontiers are derived from the
    pixels settled in the previous round.
    """
    if grid.mask.size == 0:
        empty = np.empty(0, dtype=np.intp)
        return empty, empty
    settled = grid.mask.astype(np.uint8)
    grown = cv2.dilate(settled, _CROSS, borderType=cv2.BORDER_CONSTANT, borderValue=0)
    frontier = (grown > 0) & ~grid.mask
    ys, xs = np.nonzero(frontier)
    return ys.astype(np.intp), xs.astype(np.intp)


class WavefrontFill:
    """Runs frontier rounds over one processor's buffer and occupancy grid."""

    def __init__(
        self,
        buffer: PixelBuffer,
        layout: ChannelLayout,
        grid: OccupancyGrid,
        kernel: SampleKernel,
        config: Optional[FillConfig] = None,
    ):
        self.buffer = buffer
        self.layout = layout
        self.grid = grid
        self.kernel = kernel
        self.config = config or FillConfig()
        self.state = FillState.idle
        self._dxs, self._dys, self._weights = kernel.as_arrays()
        self._color_indices = list(layout.color_indices)

    def _average_chunk(
        self,
        ys: np.ndarray,
        xs: np.ndarray,
        acc: np.ndarray,
        totals: np.ndarray,
        start: int,
        end: int,
    ) -> None:
        # Writes only acc[start:end] and totals[start:end].
        pixels = self.buffer.pixels
        settled = self.grid.mask
        height, width = settled.shape
        cy = ys[start:end]
        cx = xs[start:end]
        chunk_acc = np.zeros((len(cy), len(self._color_indices)), dtype=np.float64)
        chunk_total = np.zeros(len(cy), dtype=np.float64)

        for dx, dy, weight in zip(self._dxs, self._dys, self._weights):
            sx = cx + dx
            sy = cy + dy
            hit = np.nonzero((sx >= 0) & (sx < width) & (sy >= 0) & (sy < height))[0]
            if hit.size == 0:
                continue
            hit = hit[settled[sy[hit], sx[hit]]]
            if hit.size == 0:
                continue
            samples = pixels[sy[hit], sx[hit]][:, self._color_indices]
            chunk_acc[hit] += weight * samples
            chunk_total[hit] += weight

        acc[start:end] = chunk_acc
        totals[start:end] = chunk_total

    def estimate(
        self,
        ys: np.ndarray,
        xs: np.ndarray,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> np.ndarray:
        """
        Weighted-average color of each given position over its settled samples.

        Args:
            ys: Row of each frontier pixel
            xs: Column of each frontier pixel
            executor: Pool used when the frontier is large enough to split

        Returns:
            Float array of shape (n, color channel count), not yet rounded

        Raises:
            FrontierInvariantError: a position had no settled sample at all
        """
        n = len(ys)
        acc = np.zeros((n, len(self._color_indices)), dtype=np.float64)
        totals = np.zeros(n, dtype=np.float64)

        chunks = self.config.chunk_count(n)
        if executor is None or chunks < 2:
            self._average_chunk(ys, xs, acc, totals, 0, n)
        else:
            futures = [
                executor.submit(
                    self._average_chunk, ys, xs, acc, totals,
                    n * i // chunks, n * (i + 1) // chunks,
                )
                for i in range(chunks)
            ]
            for future in futures:
                future.result()

        zero = np.nonzero(totals == 0)[0]
        if zero.size:
            i = int(zero[0])
            raise FrontierInvariantError(
                f"Total weight was zero for frontier pixel ({int(xs[i])}, {int(ys[i])}); "
                f"{zero.size} frontier pixel(s) have no settled samples"
            )
        return acc / totals[:, None]

    def commit(self, ys: np.ndarray, xs: np.ndarray, values: np.ndarray) -> None:
        """Round, clamp and write estimated colors, then settle the pixels."""
        pixels = self.buffer.pixels
        max_value = self.buffer.max_value
        rounded = np.floor(values + 0.5)

        bad = (rounded < 0) | (rounded > max_value)
        if bad.any():
            logger.warning(
                "Possible logic error - %d computed sample(s) outside 0..%d (min %s, max %s), clamping",
                int(np.count_nonzero(bad)), max_value, rounded.min(), rounded.max(),
            )
        rounded = np.clip(rounded, 0, max_value).astype(pixels.dtype)

        for lane, channel in enumerate(self._color_indices):
            pixels[ys, xs, channel] = rounded[:, lane]
        self.grid.mark_many(ys, xs)

    def next_frontier(
        self, ys: np.ndarray, xs: np.ndarray, scratch: FrontierScratch
    ) -> Tuple[np.ndarray, np.ndarray]:
        """Unsettled 4-neighbours of the pixels settled this round."""
        scratch.clear()
        settled = self.grid.mask
        height, width = settled.shape
        for dx, dy in _NEIGHBOURS_4:
            nx = xs + dx
            ny = ys + dy
            ok = (nx >= 0) & (nx < width) & (ny >= 0) & (ny < height)
            nx = nx[ok]
            ny = ny[ok]
            free = ~settled[ny, nx]
            scratch.add_many(ny[free] * width + nx[free])
        return scratch.positions(width)

    def run(self, max_rounds: Optional[int] = None, scratch: Optional[FrontierScratch] = None) -> FillReport:
        """
        Propagate colors outwards from settled pixels.

        Args:
            max_rounds: Round budget; None runs until the frontier is empty
            scratch: De-duplication buffer reused across rounds

        Returns:
            Report with final state, rounds performed and pixels filled
        """
        if max_rounds is not None and max_rounds < 0:
            raise OperationError(f"max_rounds must be non-negative, got {max_rounds}")
        scratch = scratch if scratch is not None else FrontierScratch()

        self.state = FillState.running
        ys, xs = find_initial_frontier(self.grid)
        logger.debug("Initial frontier: %d pixels", len(ys))

        rounds = 0
        filled = 0
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            while len(ys) and (max_rounds is None or rounds < max_rounds):
                values = self.estimate(ys, xs, executor)
                self.commit(ys, xs, values)
                filled += len(ys)
                rounds += 1
                ys, xs = self.next_frontier(ys, xs, scratch)
                logger.debug("Round %d: next frontier %d pixels", rounds, len(ys))

        self.state = FillState.converged if len(ys) == 0 else FillState.round_budget_exhausted
        logger.info(
            "Propagation %s after %d round(s), %d pixel(s) filled",
            self.state.value, rounds, filled,
        )
        return FillReport(state=self.state, rounds=rounds, filled=filled, remaining_frontier=len(ys))
