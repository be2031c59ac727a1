import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest import mock

import numpy as np

from note_fixtures import TEST_PAGE_SIZES, NoteBuilder, rle

from supernote import composite_over, iter_rendered_pages, parse_note, render_all_pages, render_page, to_grayscale
from supernote.compositor import blank_canvas


def _document(builder):
    return parse_note(builder.build(), page_sizes=TEST_PAGE_SIZES)


def _flat(pixels):
    return pixels.reshape(-1, 4)


class TestBlending(unittest.TestCase):
    def test_half_alpha_black_over_white_is_mid_gray(self):
        canvas = blank_canvas(2, 1)
        layer = np.zeros((1, 2, 4), dtype=np.uint8)
        layer[0, 0] = (0, 0, 0, 128)
        composite_over(canvas, layer)
        r, g, b, a = canvas[0, 0]
        for channel in (r, g, b):
            self.assertLessEqual(abs(int(channel) - 128), 1)
        self.assertEqual(a, 255)
        self.assertEqual(tuple(canvas[0, 1]), (255, 255, 255, 255))

    def test_opaque_pixels_overwrite_and_transparent_pixels_are_ignored(self):
        canvas = blank_canvas(3, 1)
        layer = np.array([[(10, 20, 30, 255), (0, 0, 0, 0), (255, 255, 255, 0)]], dtype=np.uint8)
        composite_over(canvas, layer)
        self.assertEqual(tuple(canvas[0, 0]), (10, 20, 30, 255))
        self.assertEqual(tuple(canvas[0, 1]), (255, 255, 255, 255))
        self.assertEqual(tuple(canvas[0, 2]), (255, 255, 255, 255))

    def test_partial_alpha_over_transparent_destination(self):
        canvas = np.zeros((1, 1, 4), dtype=np.uint8)
        layer = np.array([[(100, 100, 100, 64)]], dtype=np.uint8)
        composite_over(canvas, layer)
        self.assertEqual(tuple(canvas[0, 0]), (100, 100, 100, 64))

    def test_grayscale_keeps_alpha(self):
        canvas = np.array([[(255, 0, 0, 255), (0, 255, 0, 17), (0, 0, 255, 0)]], dtype=np.uint8)
        to_grayscale(canvas)
        self.assertEqual(tuple(canvas[0, 0]), (76, 76, 76, 255))
        self.assertEqual(tuple(canvas[0, 1]), (150, 150, 150, 17))
        self.assertEqual(tuple(canvas[0, 2]), (29, 29, 29, 0))


class TestRenderPage(unittest.TestCase):
    def test_non_overlapping_opaque_layers(self):
        builder = NoteBuilder()
        builder.add_page(
            {
                "MAINLAYER": rle((0x61, 0x03), (0x62, 0x1B)),
                "LAYER1": rle((0x62, 0x07), (0x64, 0x03), (0x62, 0x13)),
            },
            sequence="MAINLAYER,LAYER1",
        )
        rendered = render_page(_document(builder), 0)
        pixels = _flat(rendered.pixels)
        self.assertEqual(rendered.pixels.shape, (4, 8, 4))
        self.assertTrue((pixels[0:4] == (0, 0, 0, 255)).all())
        self.assertTrue((pixels[4:8] == (255, 255, 255, 255)).all())
        self.assertTrue((pixels[8:12] == (128, 128, 128, 255)).all())
        self.assertTrue((pixels[12:] == (255, 255, 255, 255)).all())
        self.assertEqual(rendered.warnings, ())

    def test_first_layer_in_sequence_is_on_top(self):
        layers = {"MAINLAYER": rle((0x61, 0x1F)), "BGLAYER": rle((0x65, 0x1F))}

        builder = NoteBuilder()
        builder.add_page(layers, sequence="MAINLAYER,BGLAYER")
        builder.add_page(layers, sequence="BGLAYER,MAINLAYER")
        document = _document(builder)

        self.assertTrue((render_page(document, 0).pixels[..., :3] == 0).all())
        self.assertTrue((render_page(document, 1).pixels[..., :3] == 255).all())

    def test_layers_missing_from_sequence_are_not_painted(self):
        builder = NoteBuilder()
        builder.add_page({"MAINLAYER": rle((0x61, 0x1F))}, sequence="LAYER4,BGLAYER")
        pixels = render_page(_document(builder), 0).pixels
        self.assertTrue((pixels == 255).all())

    def test_failed_layer_is_skipped_and_reported(self):
        builder = NoteBuilder()
        builder.add_page(
            {"MAINLAYER": rle((0x61, 0x03), (0x62, 0x1B)), "BGLAYER": rle((0x00, 0x01))},
            protocols={"BGLAYER": "SN_ASA_COMPRESS"},
            sequence="MAINLAYER,BGLAYER",
        )
        with self.assertLogs("supernote.compositor", level="WARNING"):
            rendered = render_page(_document(builder), 0)
        pixels = _flat(rendered.pixels)
        self.assertTrue((pixels[:4] == (0, 0, 0, 255)).all())
        self.assertTrue((pixels[4:] == 255).all())
        self.assertEqual(len(rendered.warnings), 1)
        warning = rendered.warnings[0]
        self.assertEqual((warning.page, warning.layer, warning.protocol), (0, "BGLAYER", "SN_ASA_COMPRESS"))

    def test_out_of_range_index(self):
        builder = NoteBuilder()
        builder.add_page({})
        document = _document(builder)
        self.assertIsNone(render_page(document, 1))
        self.assertIsNone(render_page(document, -1))
        self.assertTrue((render_page(document, 0).pixels == 255).all())

    def test_underflow_leaves_background(self):
        builder = NoteBuilder()
        builder.add_page({"MAINLAYER": rle((0x61, 0x01))})
        pixels = _flat(render_page(_document(builder), 0).pixels)
        self.assertTrue((pixels[:2] == (0, 0, 0, 255)).all())
        self.assertTrue((pixels[2:] == 255).all())


class TestRenderAllPages(unittest.TestCase):
    def setUp(self):
        builder = NoteBuilder()
        for index, code in (("3", 0x64), ("1", 0x61), ("2", 0x65)):
            builder.add_page({"MAINLAYER": rle((code, 0x1F))}, index=index)
        self.document = _document(builder)

    def test_returns_one_raster_per_page_in_order(self):
        pages = render_all_pages(self.document)
        self.assertEqual(len(pages), 3)
        self.assertEqual([page.index for page in pages], [0, 1, 2])
        self.assertEqual([int(page.pixels[0, 0, 0]) for page in pages], [0, 255, 128])
        for page in pages:
            self.assertEqual((page.width, page.height), (8, 4))

    def test_iteration_can_stop_between_pages(self):
        with mock.patch("supernote.compositor.render_page", wraps=render_page) as spy:
            first = next(iter_rendered_pages(self.document))
        self.assertEqual(first.index, 0)
        self.assertEqual(spy.call_count, 1)

    def test_iteration_from_start_page(self):
        self.assertEqual([page.index for page in iter_rendered_pages(self.document, start=2)], [2])

    def test_concurrent_rendering_matches_sequential(self):
        expected = [page.pixels for page in render_all_pages(self.document)]
        with ThreadPoolExecutor(max_workers=3) as pool:
            results = list(pool.map(lambda idx: render_page(self.document, idx), [2, 0, 1, 2, 0, 1]))
        for result in results:
            self.assertTrue(np.array_equal(result.pixels, expected[result.index]))
        self.assertIsNot(results[1].pixels, results[4].pixels)

    def test_png_output(self):
        page = render_all_pages(self.document)[0]
        self.assertTrue(page.to_png().startswith(b"\x89PNG\r\n\x1a\n"))
        self.assertTrue(page.to_data_url().startswith("data:image/png;base64,"))
        image = page.to_image()
        self.assertEqual(image.size, (8, 4))
        self.assertEqual(image.mode, "RGBA")


if __name__ == "__main__":
    unittest.main()
