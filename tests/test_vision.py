"""
Tests for the Azure AI Vision adapter, using SDK-shaped stand-ins.
"""

from __future__ import annotations

from types import SimpleNamespace as NS
import unittest

from azure.core.exceptions import AzureError

import helpers  # noqa: F401  (puts src/ on sys.path)
from read_journal.vision import VISUAL_FEATURES, ImageAnalyzer, convert_result
from read_journal.utils import FatalPrecondition, ServiceFailure


def _points(*pairs):
    return [NS(x=x, y=y) for x, y in pairs]


def _sdk_result():
    word_a = NS(text="Dear", confidence=0.9, bounding_polygon=_points((1, 2), (9, 2), (9, 8), (1, 8)))
    word_b = NS(text="diary", confidence=0.7, bounding_polygon=_points((11, 2), (30, 2), (30, 8), (11, 8)))
    line = NS(
        text="Dear diary",
        bounding_polygon=_points((1, 2), (30, 2), (30, 8), (1, 8)),
        words=[word_a, word_b],
    )
    return NS(
        caption=NS(text="a notebook page", confidence=0.88),
        dense_captions=NS(list=[NS(text="handwriting", confidence=0.6), NS(text="", confidence=0.1)]),
        read=NS(blocks=[NS(lines=[line])]),
    )


class _FakeClient:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def analyze(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class ConvertResultTests(unittest.TestCase):
    def test_full_result(self) -> None:
        result = convert_result(_sdk_result())
        self.assertEqual(result.caption.text, "a notebook page")
        self.assertAlmostEqual(result.caption.confidence, 0.88)
        self.assertEqual([c.text for c in result.dense_captions], ["handwriting", ""])
        self.assertAlmostEqual(result.dense_captions[1].confidence, 0.1)

        lines = list(result.read.lines())
        self.assertEqual(len(lines), 1)
        self.assertEqual(lines[0].text, "Dear diary")
        self.assertAlmostEqual(lines[0].confidence, 0.8)
        self.assertEqual(lines[0].polygon, ((1.0, 2.0), (30.0, 2.0), (30.0, 8.0), (1.0, 8.0)))
        self.assertEqual([w.text for w in result.read.words()], ["Dear", "diary"])

    def test_empty_result(self) -> None:
        result = convert_result(NS(caption=None, dense_captions=None, read=None))
        self.assertIsNone(result.caption)
        self.assertEqual(result.dense_captions, ())
        self.assertIsNone(result.read)

    def test_blank_caption_is_dropped(self) -> None:
        result = convert_result(NS(caption=NS(text="", confidence=0.5), dense_captions=None, read=None))
        self.assertIsNone(result.caption)

    def test_line_without_words_scores_zero(self) -> None:
        raw = NS(
            caption=None,
            dense_captions=None,
            read=NS(blocks=[NS(lines=[NS(text="", bounding_polygon=[], words=[])])]),
        )
        line = next(convert_result(raw).read.lines())
        self.assertEqual(line.confidence, 0.0)


class ImageAnalyzerTests(unittest.TestCase):
    def test_analyze_requests_all_features(self) -> None:
        client = _FakeClient(response=_sdk_result())
        result = ImageAnalyzer(client).analyze(b"jpeg-bytes")
        self.assertEqual(result.caption.text, "a notebook page")
        self.assertEqual(
            client.calls,
            [{"image_data": b"jpeg-bytes", "visual_features": VISUAL_FEATURES}],
        )

    def test_sdk_errors_become_service_failures(self) -> None:
        client = _FakeClient(error=AzureError("quota exceeded"))
        with self.assertRaises(ServiceFailure) as ctx:
            ImageAnalyzer(client).analyze(b"x")
        self.assertIn("quota exceeded", str(ctx.exception))

    def test_missing_credentials_are_fatal(self) -> None:
        for endpoint, key in [(None, "k"), ("https://example", None), ("  ", "k"), ("", "")]:
            with self.subTest(endpoint=endpoint, key=key):
                with self.assertRaises(FatalPrecondition):
                    ImageAnalyzer.from_credentials(endpoint, key)


if __name__ == "__main__":
    unittest.main()
