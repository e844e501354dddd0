"""
Azure AI Vision image-analysis adapter.

The pipeline only needs `analyze(image_bytes) -> AnalysisResult`; this module
owns the SDK client, the feature selection, and the conversion from SDK
objects into our own dataclasses so nothing else imports the SDK.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Protocol

from azure.ai.vision.imageanalysis import ImageAnalysisClient
from azure.ai.vision.imageanalysis.models import VisualFeatures
from azure.core.credentials import AzureKeyCredential
from azure.core.exceptions import AzureError

from .models import AnalysisResult, Caption, OcrBlock, OcrLine, OcrWord, Polygon, ReadResult
from .utils import FatalPrecondition, ServiceFailure


VISUAL_FEATURES = [
    VisualFeatures.READ,
    VisualFeatures.CAPTION,
    VisualFeatures.DENSE_CAPTIONS,
]


class Analyzer(Protocol):
    def analyze(self, image_data: bytes) -> AnalysisResult: ...


def _polygon(points: Optional[Iterable[Any]]) -> Polygon:
    return tuple((float(point.x), float(point.y)) for point in (points or ()))


def _caption(raw: Any) -> Optional[Caption]:
    if raw is None or not getattr(raw, "text", None):
        return None
    return Caption(text=str(raw.text), confidence=float(raw.confidence))


def _word(raw: Any) -> OcrWord:
    return OcrWord(
        text=str(raw.text),
        confidence=float(raw.confidence),
        polygon=_polygon(raw.bounding_polygon),
    )


def _line(raw: Any) -> OcrLine:
    words = tuple(_word(word) for word in (getattr(raw, "words", None) or ()))
    # SDK lines carry no score of their own; use their words' mean.
    confidence = getattr(raw, "confidence", None)
    if confidence is None:
        confidence = sum(word.confidence for word in words) / len(words) if words else 0.0
    return OcrLine(
        text=str(raw.text),
        confidence=float(confidence),
        polygon=_polygon(raw.bounding_polygon),
        words=words,
    )


def convert_result(raw: Any) -> AnalysisResult:
    """Convert an SDK ImageAnalysisResult (or anything shaped like one)."""

    dense = getattr(raw, "dense_captions", None)
    dense_items = getattr(dense, "list", None) or ()
    # Every dense record is kept; only the main caption needs text.
    dense_captions = tuple(
        Caption(text=str(item.text or ""), confidence=float(item.confidence)) for item in dense_items
    )

    read = None
    raw_read = getattr(raw, "read", None)
    if raw_read is not None:
        read = ReadResult(
            blocks=tuple(
                OcrBlock(lines=tuple(_line(line) for line in (block.lines or ())))
                for block in (raw_read.blocks or ())
            )
        )

    return AnalysisResult(
        caption=_caption(getattr(raw, "caption", None)),
        dense_captions=dense_captions,
        read=read,
    )


class ImageAnalyzer:
    """Synchronous, single-attempt calls to the image-analysis service."""

    def __init__(self, client: ImageAnalysisClient) -> None:
        self._client = client

    @classmethod
    def from_credentials(cls, endpoint: Optional[str], key: Optional[str]) -> "ImageAnalyzer":
        if not endpoint or not endpoint.strip() or not key or not key.strip():
            raise FatalPrecondition(
                "Missing ai_services_endpoint or ai_services_key in configuration."
            )
        client = ImageAnalysisClient(endpoint=endpoint.strip(), credential=AzureKeyCredential(key.strip()))
        return cls(client)

    def analyze(self, image_data: bytes) -> AnalysisResult:
        try:
            raw = self._client.analyze(image_data=image_data, visual_features=VISUAL_FEATURES)
        except AzureError as exc:
            raise ServiceFailure(f"Image analysis failed: {exc}") from exc
        return convert_result(raw)
