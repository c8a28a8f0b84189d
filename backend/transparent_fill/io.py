"""Image I/O: PIL images to pixel buffers and back, with ICC profile preservation."""
from io import BytesIO
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image

from transparent_fill.buffer import PixelBuffer
from transparent_fill.channels import channel_from_band


def load_image(path: Path) -> Image.Image:
    """
    Open an image without changing its mode.

    The band layout is kept as decoded so unsupported layouts (palette,
    no alpha, premultiplied) are rejected by the channel model rather
    than silently converted.

    Args:
        path: Path to the image file

    Returns:
        Loaded PIL Image
    """
    img = Image.open(path)
    img.load()
    return img


def image_to_buffer(img: Image.Image) -> PixelBuffer:
    """
    Convert a PIL Image to a pixel buffer.

    Args:
        img: PIL Image

    Returns:
        Buffer of shape (height, width, bands) with one channel role per band
    """
    arr = np.array(img)
    if arr.ndim == 2:
        arr = arr[..., np.newaxis]
    if arr.dtype.kind != "u":
        # 32-bit integer / float modes; let the channel model name the problem
        arr = arr.astype(np.uint16)
    channels = tuple(channel_from_band(b) for b in img.getbands())
    return PixelBuffer(pixels=np.ascontiguousarray(arr), channels=channels)


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    """
    Convert a pixel buffer back to a PIL Image.

    The mode follows from the band count (LA or RGBA).

    Args:
        buffer: Pixel buffer

    Returns:
        PIL Image
    """
    arr = buffer.pixels
    if arr.shape[2] == 1:
        arr = arr[..., 0]
    return Image.fromarray(arr)


def encode_image_with_icc(
    img: Image.Image,
    output_path: Path,
    icc_profile: Optional[bytes] = None
) -> bytes:
    """
    Encode an image in the format implied by the destination extension.

    Nothing touches the filesystem, so every output of a run can be
    encoded (and fail) before any file is written.

    Args:
        img: PIL Image to encode
        output_path: Destination path; its suffix selects the format
        icc_profile: Optional ICC profile bytes to embed

    Returns:
        Encoded file contents

    Raises:
        ValueError: the extension is not a format PIL can write
        OSError: the format cannot hold the image mode (e.g. RGBA as JPEG)
    """
    fmt = Image.registered_extensions().get(output_path.suffix.lower())
    if fmt is None or fmt not in Image.SAVE:
        raise ValueError(f"Cannot write {output_path}: unknown image format {output_path.suffix!r}")
    params = {}
    if icc_profile:
        params["icc_profile"] = icc_profile
    buf = BytesIO()
    img.save(buf, format=fmt, **params)
    return buf.getvalue()


def write_encoded(data: bytes, output_path: Path) -> None:
    """Write already encoded image bytes, creating parent directories."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)


def get_icc_profile(pil_img: Image.Image) -> Optional[bytes]:
    """Extract the ICC profile from a PIL Image, if any."""
    return pil_img.info.get("icc_profile", None)
