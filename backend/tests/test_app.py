"""Tests for the FastAPI front end."""

import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import numpy as np
from PIL import Image

_WORKDIR = tempfile.mkdtemp()
os.environ.setdefault("TRANSPARENT_FILL_OUTPUT_DIR", os.path.join(_WORKDIR, "output"))
os.environ.setdefault("TRANSPARENT_FILL_INPUT_DIR", os.path.join(_WORKDIR, "inputs"))

from fastapi.testclient import TestClient  # noqa: E402

import app as app_module  # noqa: E402


def png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def sprite() -> Image.Image:
    arr = np.zeros((4, 4, 4), dtype=np.uint8)
    arr[0, 0] = (200, 100, 50, 255)
    return Image.fromarray(arr)


class TestProcessEndpoint(unittest.TestCase):
    """Test POST /process and GET /download."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        root = Path(self.tmp.name)
        (root / "output").mkdir()
        (root / "inputs").mkdir()
        self.output_dir = root / "output"
        patches = [
            mock.patch.object(app_module, "OUTPUT_DIR", root / "output"),
            mock.patch.object(app_module, "INPUT_DIR", root / "inputs"),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)
        self.client = TestClient(app_module.app)

    def tearDown(self):
        self.tmp.cleanup()

    def post(self, img_bytes, operations=None, filename="sprite.png"):
        data = {} if operations is None else {"operations": json.dumps(operations)}
        return self.client.post(
            "/process",
            files={"file": (filename, img_bytes, "image/png")},
            data=data,
        )

    def test_default_operations(self):
        response = self.post(png_bytes(sprite()))

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["ok"])
        out = self.output_dir / "sprite_filled.png"
        self.assertEqual(body["meta"]["outputs"], [str(out)])
        with Image.open(out) as img:
            arr = np.array(img)
        self.assertTrue(np.all(arr[..., :3] == (200, 100, 50)))

    def test_write_paths_stay_in_output_dir(self):
        ops = [
            {"kind": "propagate", "parameters": {"max_rounds": 1}},
            {"kind": "write_output", "parameters": {"path": "../../escape.png"}},
        ]
        response = self.post(png_bytes(sprite()), ops)

        self.assertEqual(response.status_code, 200)
        self.assertTrue((self.output_dir / "escape.png").exists())
        self.assertEqual(response.json()["meta"]["operations"][0]["rounds"], 1)

        download = self.client.get("/download", params={"path": "escape.png"})
        self.assertEqual(download.status_code, 200)
        with Image.open(io.BytesIO(download.content)) as img:
            self.assertEqual(img.size, (4, 4))

    def test_invalid_json(self):
        response = self.client.post(
            "/process",
            files={"file": ("sprite.png", png_bytes(sprite()), "image/png")},
            data={"operations": "not json"},
        )
        self.assertEqual(response.status_code, 400)

    def test_invalid_operation(self):
        response = self.post(png_bytes(sprite()), [{"kind": "rotate"}])
        self.assertEqual(response.status_code, 400)

    def test_wrong_parameter_types(self):
        bad = [
            [{"kind": "solid_fill", "parameters": {"color": 5}}],
            [{"kind": "solid_fill", "parameters": {"color": ["a", "b", "c"]}}],
            [{"kind": "propagate", "parameters": {"radius": "2"}}],
            [{"kind": "propagate", "parameters": {"radius": 1.5}}],
            [{"kind": "write_output", "parameters": [1]}],
        ]
        for operations in bad:
            with self.subTest(operations=operations):
                response = self.post(png_bytes(sprite()), operations)
                self.assertEqual(response.status_code, 400)
        self.assertFalse((self.output_dir / "sprite_filled.png").exists())

    def test_image_without_alpha(self):
        response = self.post(png_bytes(Image.new("RGB", (3, 3))), filename="flat.png")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()["ok"])
        self.assertFalse((self.output_dir / "flat_filled.png").exists())

    def test_empty_file(self):
        response = self.post(b"")
        self.assertEqual(response.status_code, 400)

    def test_download_missing(self):
        response = self.client.get("/download", params={"path": "missing.png"})
        self.assertEqual(response.status_code, 404)


if __name__ == "__main__":
    unittest.main()
