"""Main image processing pipeline."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from transparent_fill.buffer import PixelBuffer
from transparent_fill.config import FillConfig
from transparent_fill.io import (
    buffer_to_image,
    encode_image_with_icc,
    get_icc_profile,
    image_to_buffer,
    load_image,
    write_encoded,
)
from transparent_fill.operations import (
    Operation,
    OperationKind,
    WRITE_KINDS,
    apply_operation,
    with_default_fill,
)
from transparent_fill.processor import Processor

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_SUFFIX = ".ImprovedTransparent.png"


def default_output_path(src: Path) -> Path:
    """``image.png`` -> ``image.ImprovedTransparent.png`` next to the input."""
    return src.with_name(src.stem + DEFAULT_OUTPUT_SUFFIX)


def run_operations(
    processor: Processor,
    operations: Iterable[Operation],
) -> Tuple[List[Dict[str, Any]], List[Tuple[Path, PixelBuffer]]]:
    """
    Apply operations strictly in order against one processor.

    Any exception aborts the remaining operations; nothing is rolled back.

    Returns:
        Per-operation metadata, and the (path, buffer) snapshots taken by
        write operations, in request order
    """
    steps: List[Dict[str, Any]] = []
    pending: List[Tuple[Path, PixelBuffer]] = []
    for index, op in enumerate(operations):
        logger.debug("Operation %d: %s", index, op.kind.value)
        step = apply_operation(op, processor)
        if op.kind in WRITE_KINDS:
            pending.append((Path(step.pop("path")), step.pop("snapshot")))
            step["path"] = str(pending[-1][0])
        steps.append(step)
    return steps, pending


def process_one(
    src: Path,
    operations: Optional[Iterable[Operation]] = None,
    dst: Optional[Path] = None,
    config: Optional[FillConfig] = None,
    log_jsonl: Optional[Path] = None,
) -> Dict[str, Any]:
    """
    Repair the transparent pixels of a single image.

    Pipeline steps:
    1. Load image and extract its ICC profile
    2. Build the processor (rejects unsupported channel layouts)
    3. Apply operations in order; an unbounded propagate is used when no
       fill operation was requested
    4. Save every requested output, plus ``dst`` (or the default output
       path) when no write_output was requested

    Outputs are only written once every operation has succeeded, so a
    failed run leaves no output file behind.

    Args:
        src: Source image path
        operations: Ordered operations (default: unbounded propagate)
        dst: Output path used when no write_output operation is given
        config: Engine configuration (default: from environment)
        log_jsonl: Optional path to log JSONL file

    Returns:
        Dictionary with processing metadata
    """
    try:
        pil = load_image(src)
        icc = get_icc_profile(pil)
        meta: Dict[str, Any] = {
            "src": str(src),
            "w": pil.width,
            "h": pil.height,
            "mode": pil.mode,
        }

        ops = with_default_fill(operations or [])
        if not any(op.kind == OperationKind.write_output for op in ops):
            ops.append(Operation.write_output(dst or default_output_path(src)))

        processor = Processor(image_to_buffer(pil), config)
        steps, pending = run_operations(processor, ops)

        # Every output is encoded before the first file is written.
        encoded = [
            (path, encode_image_with_icc(buffer_to_image(snapshot), path, icc))
            for path, snapshot in pending
        ]
        outputs = []
        for path, data in encoded:
            write_encoded(data, path)
            outputs.append(str(path))
            logger.info("Wrote %s", path)

        meta.update({
            "operations": steps,
            "outputs": outputs,
            "unsettled": processor.grid.unsettled_count,
            "ok": True,
        })

        if log_jsonl:
            log_jsonl.parent.mkdir(parents=True, exist_ok=True)
            with open(log_jsonl, "a", encoding="utf-8") as f:
                f.write(json.dumps(meta, ensure_ascii=False) + "\n")

        return meta

    except Exception as e:
        error_msg = f"{src}: {e}"
        error_meta = {
            "src": str(src),
            "error": str(e),
            "ok": False
        }

        if log_jsonl:
            try:
                log_jsonl.parent.mkdir(parents=True, exist_ok=True)
                with open(log_jsonl, "a", encoding="utf-8") as f:
                    f.write(json.dumps(error_meta, ensure_ascii=False) + "\n")
            except OSError:
                logger.exception("Could not write error log %s", log_jsonl)

        raise RuntimeError(error_msg) from e
