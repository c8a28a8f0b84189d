"""
Tuning parameters for the wavefront fill engine.

Values can be overridden from the environment:

    TRANSPARENT_FILL_SHAPE       kernel shape (square, circle, diamond)
    TRANSPARENT_FILL_RADIUS      kernel radius
    TRANSPARENT_FILL_CHUNK_SIZE  frontier pixels per parallel chunk
    TRANSPARENT_FILL_MIN_CHUNKS  lower bound on chunk count when parallel
    TRANSPARENT_FILL_WORKERS     thread pool size (default: CPU count)
"""
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

from transparent_fill.kernel import DEFAULT_RADIUS, KernelShape

ENV_PREFIX = "TRANSPARENT_FILL_"


@dataclass(frozen=True)
class FillConfig:
    """
    Attributes:
        shape: Sample kernel footprint
        radius: Sample kernel radius
        chunk_size: Frontier pixels per chunk; frontiers smaller than two
            chunks are averaged inline
        min_chunks: Minimum number of chunks once work is parallelised
        max_workers: Thread pool size, None for the executor default
    """
    shape: KernelShape = KernelShape.square
    radius: int = DEFAULT_RADIUS
    chunk_size: int = 100
    min_chunks: int = 8
    max_workers: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "shape", KernelShape(self.shape))
        if self.radius < 1:
            raise ValueError(f"radius must be at least 1, got {self.radius}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {self.chunk_size}")
        if self.min_chunks < 1:
            raise ValueError(f"min_chunks must be at least 1, got {self.min_chunks}")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")

    @property
    def parallel_threshold(self) -> int:
        return 2 * self.chunk_size

    def chunk_count(self, workload: int) -> int:
        """Number of balanced chunks for a frontier of ``workload`` pixels."""
        if workload < self.parallel_threshold:
            return 1
        return min(workload, max(self.min_chunks, workload // self.chunk_size))

    def with_kernel(self, shape: Optional[str] = None, radius: Optional[int] = None) -> "FillConfig":
        changes = {}
        if shape is not None:
            changes["shape"] = KernelShape(shape)
        if radius is not None:
            changes["radius"] = radius
        return replace(self, **changes) if changes else self

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "FillConfig":
        env = os.environ if environ is None else environ
        kwargs = {}
        if env.get(ENV_PREFIX + "SHAPE"):
            kwargs["shape"] = KernelShape(env[ENV_PREFIX + "SHAPE"].lower())
        for key, field in (
            ("RADIUS", "radius"),
            ("CHUNK_SIZE", "chunk_size"),
            ("MIN_CHUNKS", "min_chunks"),
            ("WORKERS", "max_workers"),
        ):
            value = env.get(ENV_PREFIX + key)
            if value:
                try:
                    kwargs[field] = int(value)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX + key} must be an integer, got {value!r}") from None
        return cls(**kwargs)
