"""FastAPI application for Transparent Fill."""
import json
import os
from pathlib import Path
from fastapi import FastAPI, UploadFile, File, Form, HTTPException
from fastapi.responses import JSONResponse, FileResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from transparent_fill.errors import TransparentFillError
from transparent_fill.operations import OperationKind, parse_operations
from transparent_fill.pipeline import process_one
from transparent_fill.utils.log import setup_logging

setup_logging(os.environ.get("LOG_LEVEL", "INFO"))

app = FastAPI(
    title="Transparent Fill",
    description="Give fully transparent pixels plausible colors from nearby opaque pixels.",
    version="0.1.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

# Directory setup
OUTPUT_DIR = Path(os.environ.get("TRANSPARENT_FILL_OUTPUT_DIR", "output"))
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

INPUT_DIR = Path(os.environ.get("TRANSPARENT_FILL_INPUT_DIR", "inputs"))
INPUT_DIR.mkdir(parents=True, exist_ok=True)


def _confine_writes(requests: list) -> list:
    """Rewrite every write path to a bare file name inside OUTPUT_DIR."""
    confined = []
    for request in requests:
        request = dict(request)
        if str(request.get("kind", "")).lower() in (OperationKind.write_output.value, OperationKind.write_preview.value):
            params = request.pop("parameters", None) or {}
            if not isinstance(params, dict):
                confined.append({**request, "parameters": params})
                continue
            params = dict(params)
            path = params.get("path", request.pop("path", None))
            if path:
                params["path"] = str(OUTPUT_DIR / Path(str(path)).name)
            request["parameters"] = params
        confined.append(request)
    return confined


@app.post("/process")
async def process(
    file: UploadFile = File(...),
    operations: str = Form("[]"),
) -> JSONResponse:
    """
    Run an uploaded image through the fill pipeline.

    Args:
        file: Uploaded image file (must have an alpha channel)
        operations: JSON list of {"kind": ..., "parameters": {...}} requests,
            applied in order. Kinds: "propagate" (max_rounds, shape, radius),
            "solid_fill" (color), "write_output" (path), "write_preview" (path).
            Write paths are reduced to file names inside the output directory.
            Default: a single unbounded propagate.

    Returns:
        JSON response with processing metadata
    """
    try:
        try:
            requests = json.loads(operations)
        except json.JSONDecodeError as e:
            raise HTTPException(status_code=400, detail=f"operations is not valid JSON: {e}")
        if not isinstance(requests, list) or not all(isinstance(r, dict) for r in requests):
            raise HTTPException(status_code=400, detail="operations must be a JSON list of objects")

        try:
            ops = parse_operations(_confine_writes(requests))
        except TransparentFillError as e:
            raise HTTPException(status_code=400, detail=str(e))

        if not file.filename:
            raise HTTPException(status_code=400, detail="Filename is required")
        src_path = INPUT_DIR / Path(file.filename).name
        content = await file.read()
        if len(content) == 0:
            raise HTTPException(status_code=400, detail="Empty file")
        with src_path.open("wb") as f:
            f.write(content)

        output_path = OUTPUT_DIR / (src_path.stem + "_filled.png")
        meta = process_one(src=src_path, operations=ops, dst=output_path)

        return JSONResponse({"ok": True, "meta": meta})

    except HTTPException:
        raise
    except Exception as e:
        status = 400 if isinstance(e.__cause__, ValueError) else 500
        return JSONResponse(
            {"ok": False, "error": str(e)},
            status_code=status
        )


@app.get("/download", response_model=None)
async def download(path: str) -> Response:
    """
    Download a processed image file.

    Args:
        path: Name (or path) of a file in the output directory

    Returns:
        File response or error JSON
    """
    p = OUTPUT_DIR / Path(path).name

    if not p.exists() or not p.is_file():
        return JSONResponse(
            {"ok": False, "error": "File not found"},
            status_code=404
        )

    return FileResponse(p)
