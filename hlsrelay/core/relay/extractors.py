from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterator, Mapping, Optional

from loguru import logger

from .types import FormatDescriptor

Extractor = Callable[[Mapping[str, Any], str], Optional[str]]


@dataclass(frozen=True)
class ExtractionStrategy:
    """
    Named extractor tried against a decoded provider response.
    """

    name: str
    extract: Extractor


def _iter_descriptors(items: Any) -> Iterator[FormatDescriptor]:
    """
    Yield FormatDescriptors from a raw format list, skipping entries without a string url.
    """
    if not isinstance(items, list):
        return
    for item in items:
        if not isinstance(item, dict):
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url.strip():
            continue
        container = item.get("container")
        label = item.get("qualityLabel")
        yield FormatDescriptor(
            url=url.strip(),
            container=container if isinstance(container, str) else None,
            quality_label=label if isinstance(label, str) else None,
        )


def descriptor_list(field: str) -> Extractor:
    """
    Build an extractor that scans the format list stored under `field`.

    Parameters:
        field (str): Top-level key holding a list of format objects (e.g. "formatStreams").

    Returns:
        Extractor: Callable returning the url of the first matching descriptor, or None.
    """

    def _extract(payload: Mapping[str, Any], format_name: str) -> Optional[str]:
        for descriptor in _iter_descriptors(payload.get(field)):
            if descriptor.matches(format_name):
                logger.trace("Matched {} descriptor: {}", field, descriptor)
                return descriptor.url
        return None

    return _extract


def direct_field(field: str) -> Extractor:
    """
    Build an extractor that reads a top-level direct stream URL.
    """

    def _extract(payload: Mapping[str, Any], format_name: str) -> Optional[str]:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    return _extract


DEFAULT_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    ExtractionStrategy("formatStreams", descriptor_list("formatStreams")),
    ExtractionStrategy("adaptiveFormats", descriptor_list("adaptiveFormats")),
    ExtractionStrategy("hlsUrl", direct_field("hlsUrl")),
)


def extract_stream_url(
    payload: Mapping[str, Any],
    format_name: str,
    strategies: tuple[ExtractionStrategy, ...] = DEFAULT_STRATEGIES,
) -> tuple[str, str] | None:
    """
    Apply strategies in order and return the first hit.

    Returns:
        tuple[str, str] | None: (url, strategy name) for the first strategy yielding a URL, or None.
    """
    for strategy in strategies:
        url = strategy.extract(payload, format_name)
        if url:
            return url, strategy.name
    return None
