"""Operation requests and their dispatch onto a processor."""
import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from transparent_fill.errors import OperationError
from transparent_fill.kernel import KernelShape
from transparent_fill.processor import Processor, parse_color


class OperationKind(str, enum.Enum):
    """The closed set of things a pipeline can do to a processor."""
    propagate = "propagate"
    solid_fill = "solid_fill"
    write_output = "write_output"
    write_preview = "write_preview"


FILL_KINDS = (OperationKind.propagate, OperationKind.solid_fill)
WRITE_KINDS = (OperationKind.write_output, OperationKind.write_preview)


@dataclass(frozen=True)
class Operation:
    """
    One requested operation; which fields matter depends on ``kind``.

    propagate: max_rounds (None = unbounded), shape, radius
    solid_fill: color (8-bit RGB)
    write_output / write_preview: path
    """
    kind: OperationKind
    max_rounds: Optional[int] = None
    shape: Optional[KernelShape] = None
    radius: Optional[int] = None
    color: Tuple[int, int, int] = (0, 0, 0)
    path: Optional[Path] = None

    @classmethod
    def propagate(
        cls,
        max_rounds: Optional[int] = None,
        shape: Optional[Union[str, KernelShape]] = None,
        radius: Optional[int] = None,
    ) -> "Operation":
        if max_rounds is not None and max_rounds < 0:
            raise OperationError(f"max_rounds must be a non-negative integer, got {max_rounds}")
        if radius is not None and radius < 1:
            raise OperationError(f"radius must be at least 1, got {radius}")
        try:
            shape = KernelShape(shape) if shape is not None else None
        except ValueError as e:
            raise OperationError(f"Unknown kernel shape {shape!r}") from e
        return cls(OperationKind.propagate, max_rounds=max_rounds, shape=shape, radius=radius)

    @classmethod
    def solid_fill(cls, color: Union[str, Iterable[int]] = (0, 0, 0)) -> "Operation":
        return cls(OperationKind.solid_fill, color=parse_color(color))

    @classmethod
    def write_output(cls, path: Union[str, Path]) -> "Operation":
        return cls(OperationKind.write_output, path=_require_path(path))

    @classmethod
    def write_preview(cls, path: Union[str, Path]) -> "Operation":
        return cls(OperationKind.write_preview, path=_require_path(path))


def _require_path(path: Union[str, Path, None]) -> Path:
    if path is None or str(path) == "":
        raise OperationError("Write operations need a path")
    if not isinstance(path, (str, Path)):
        raise OperationError(f"Path must be a string, got {path!r}")
    return Path(path)


def parse_operation(request: Mapping[str, Any]) -> Operation:
    """
    Build an operation from a ``{"kind": ..., "parameters": {...}}`` mapping.

    Parameters may also be given inline next to ``kind``.
    """
    if "kind" not in request:
        raise OperationError(f"Operation request has no kind: {dict(request)!r}")
    try:
        kind = OperationKind(str(request["kind"]).lower())
    except ValueError:
        raise OperationError(f"Unknown operation kind {request['kind']!r}") from None

    params: Dict[str, Any] = {k: v for k, v in request.items() if k not in ("kind", "parameters")}
    parameters = request.get("parameters") or {}
    if not isinstance(parameters, Mapping):
        raise OperationError(f"Operation parameters must be a mapping, got {parameters!r}")
    params.update(parameters)

    if kind == OperationKind.propagate:
        for name in ("max_rounds", "radius"):
            value = params.get(name)
            if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
                raise OperationError(f"{name} must be an integer, got {value!r}")
        return Operation.propagate(params.get("max_rounds"), params.get("shape"), params.get("radius"))
    if kind == OperationKind.solid_fill:
        return Operation.solid_fill(params.get("color", (0, 0, 0)))
    if kind == OperationKind.write_output:
        return Operation.write_output(params.get("path"))
    return Operation.write_preview(params.get("path"))


def parse_operations(requests: Iterable[Mapping[str, Any]]) -> List[Operation]:
    return [parse_operation(r) for r in requests]


def with_default_fill(operations: Iterable[Operation]) -> List[Operation]:
    """Prepend an unbounded propagate when no fill operation was requested."""
    ops = list(operations)
    if not any(op.kind in FILL_KINDS for op in ops):
        ops.insert(0, Operation.propagate())
    return ops


def apply_operation(op: Operation, processor: Processor) -> Dict[str, Any]:
    """
    Apply one operation to the processor in place.

    Write operations do not touch disk here; they return the buffer
    snapshot to be saved once the whole pipeline has succeeded.

    Returns:
        Metadata describing what the operation did
    """
    if op.kind == OperationKind.propagate:
        report = processor.propagate(op.max_rounds, op.shape, op.radius)
        return {
            "kind": op.kind.value,
            "max_rounds": op.max_rounds,
            "state": report.state.value,
            "rounds": report.rounds,
            "filled": report.filled,
        }
    elif op.kind == OperationKind.solid_fill:
        filled = processor.set_color(op.color)
        return {"kind": op.kind.value, "color": list(op.color), "filled": filled}
    elif op.kind == OperationKind.write_output:
        return {"kind": op.kind.value, "path": str(op.path), "snapshot": processor.get_output()}
    elif op.kind == OperationKind.write_preview:
        return {"kind": op.kind.value, "path": str(op.path), "snapshot": processor.get_preview()}
    raise OperationError(f"Unhandled operation kind {op.kind!r}")
