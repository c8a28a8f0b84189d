"""Transparent Fill - synthesise colors for fully transparent pixels."""
from transparent_fill.buffer import PixelBuffer
from transparent_fill.channels import Channel, ChannelLayout
from transparent_fill.config import FillConfig
from transparent_fill.engine import FillReport, FillState
from transparent_fill.kernel import KernelShape, SampleKernel
from transparent_fill.operations import Operation, OperationKind
from transparent_fill.pipeline import process_one
from transparent_fill.processor import Processor

__version__ = "0.1.0"
__all__ = [
    "PixelBuffer",
    "Channel",
    "ChannelLayout",
    "FillConfig",
    "FillReport",
    "FillState",
    "KernelShape",
    "SampleKernel",
    "Operation",
    "OperationKind",
    "process_one",
    "Processor",
]
