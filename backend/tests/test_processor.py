"""Unit tests for the processor: solid fill, previews and construction."""

import unittest

import numpy as np

from transparent_fill.buffer import PixelBuffer
from transparent_fill.config import FillConfig
from transparent_fill.errors import MissingAlphaChannel, OperationError, UnsupportedChannelLayout
from transparent_fill.processor import Processor, parse_color


def rgba(width, height, dtype=np.uint8):
    return PixelBuffer(np.zeros((height, width, 4), dtype=dtype), tuple("RGBA"))


class TestSolidFill(unittest.TestCase):
    """Test filling the remaining pixels with one color."""

    def test_fully_transparent_becomes_black(self):
        buffer = rgba(3, 2)
        buffer.pixels[...] = 123
        buffer.pixels[..., 3] = 0
        processor = Processor(buffer, FillConfig())

        filled = processor.set_color((0, 0, 0))

        self.assertEqual(filled, 6)
        self.assertTrue(np.all(buffer.pixels == 0))
        self.assertTrue(processor.grid.mask.all())

    def test_only_unsettled_pixels_are_touched(self):
        buffer = rgba(2, 2)
        buffer.pixels[0, 0] = (10, 20, 30, 40)
        buffer.pixels[1, 1] = (1, 1, 1, 0)
        processor = Processor(buffer, FillConfig())

        processor.set_color("#ff0000")

        self.assertEqual(tuple(buffer.pixels[0, 0]), (10, 20, 30, 40))
        self.assertEqual(tuple(buffer.pixels[1, 1]), (255, 0, 0, 0))

    def test_logs_parsed_color(self):
        buffer = rgba(2, 1)
        processor = Processor(buffer, FillConfig())
        with self.assertLogs("transparent_fill.processor", level="INFO") as logs:
            processor.set_color("#ff0000")
        self.assertIn("(255, 0, 0)", logs.output[0])

    def test_idempotent(self):
        buffer = rgba(2, 2)
        buffer.pixels[0, 0, 3] = 255
        processor = Processor(buffer, FillConfig())
        processor.set_color((5, 6, 7))
        after_first = buffer.pixels.copy()

        self.assertEqual(processor.set_color((200, 200, 200)), 0)
        np.testing.assert_array_equal(buffer.pixels, after_first)

    def test_after_bounded_propagation(self):
        buffer = rgba(5, 1)
        buffer.pixels[0, 0] = (100, 100, 100, 255)
        processor = Processor(buffer, FillConfig())
        processor.propagate(2)

        processor.set_color((0, 0, 255))

        np.testing.assert_array_equal(
            buffer.pixels[0, :, :3],
            [[100, 100, 100], [100, 100, 100], [100, 100, 100], [0, 0, 255], [0, 0, 255]],
        )

    def test_sixteen_bit_scaling(self):
        buffer = rgba(1, 1, dtype=np.uint16)
        processor = Processor(buffer, FillConfig())
        processor.set_color("#ff8000")
        self.assertEqual(tuple(buffer.pixels[0, 0]), (65535, 32896, 0, 0))

    def test_gray_uses_luma(self):
        buffer = PixelBuffer(np.zeros((1, 2, 2), dtype=np.uint8), ("L", "A"))
        processor = Processor(buffer, FillConfig())
        processor.set_color((255, 255, 255))
        np.testing.assert_array_equal(buffer.pixels[0], [[255, 0], [255, 0]])

        buffer = PixelBuffer(np.zeros((1, 1, 2), dtype=np.uint8), ("L", "A"))
        Processor(buffer, FillConfig()).set_color((255, 0, 0))
        self.assertEqual(buffer.pixels[0, 0, 0], 76)


class TestProcessor(unittest.TestCase):
    """Construction and output copies."""

    def test_rejects_missing_alpha(self):
        buffer = PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8), tuple("RGB"))
        with self.assertRaises(MissingAlphaChannel):
            Processor(buffer, FillConfig())

    def test_rejects_palette(self):
        buffer = PixelBuffer(np.zeros((2, 2, 2), dtype=np.uint8), ("P", "A"))
        with self.assertRaises(UnsupportedChannelLayout):
            Processor(buffer, FillConfig())

    def test_preview_forces_alpha_on_a_copy(self):
        buffer = rgba(2, 2)
        buffer.pixels[0, 0] = (1, 2, 3, 4)
        processor = Processor(buffer, FillConfig())

        preview = processor.get_preview()

        self.assertTrue(np.all(preview.pixels[..., 3] == 255))
        self.assertEqual(tuple(preview.pixels[0, 0, :3]), (1, 2, 3))
        self.assertEqual(buffer.pixels[0, 0, 3], 4)
        self.assertEqual(buffer.pixels[1, 1, 3], 0)

    def test_output_is_a_copy(self):
        buffer = rgba(1, 1)
        output = Processor(buffer, FillConfig()).get_output()
        output.pixels[...] = 9
        self.assertEqual(buffer.pixels[0, 0, 0], 0)

    def test_buffer_validation(self):
        with self.assertRaises(ValueError):
            PixelBuffer(np.zeros((2, 2, 4), dtype=np.float32), tuple("RGBA"))
        with self.assertRaises(ValueError):
            PixelBuffer(np.zeros((2, 2, 3), dtype=np.uint8), tuple("RGBA"))
        with self.assertRaises(ValueError):
            PixelBuffer(np.zeros((2, 2), dtype=np.uint8), ("L",))


class TestParseColor(unittest.TestCase):
    """Test color parsing."""

    def test_strings(self):
        self.assertEqual(parse_color("#000"), (0, 0, 0))
        self.assertEqual(parse_color("white"), (255, 255, 255))
        self.assertEqual(parse_color("#102030"), (16, 32, 48))

    def test_sequences(self):
        self.assertEqual(parse_color([1, 2, 3]), (1, 2, 3))

    def test_invalid(self):
        with self.assertRaises(OperationError):
            parse_color("not-a-color")
        with self.assertRaises(OperationError):
            parse_color((1, 2))
        with self.assertRaises(OperationError):
            parse_color((0, 0, 256))

    def test_wrong_types(self):
        for color in (5, None, ["a", "b", "c"], (1.5, 0, 0), (True, 0, 0)):
            with self.subTest(color=color):
                with self.assertRaises(OperationError):
                    parse_color(color)


if __name__ == "__main__":
    unittest.main()
