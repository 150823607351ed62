from .types import FormatDescriptor, ProviderAttempt, RelaySettings, ResolvedStream
from .errors import (
    ManifestFetchFailed,
    ProviderError,
    ProviderMalformed,
    ProviderNoFormat,
    ProviderUnreachable,
    RelayError,
    StreamNotFound,
)
from .extractors import DEFAULT_STRATEGIES, ExtractionStrategy, extract_stream_url
from .address import substitute_host
from .hls import rewrite_manifest
from .http import build_async_client
from .resolver import ProviderResolver
from .fetcher import ManifestFetcher
from .service import RelayedManifest, StreamRelay

__all__ = [
    "FormatDescriptor",
    "ProviderAttempt",
    "RelaySettings",
    "ResolvedStream",
    "RelayError",
    "ProviderError",
    "ProviderUnreachable",
    "ProviderMalformed",
    "ProviderNoFormat",
    "StreamNotFound",
    "ManifestFetchFailed",
    "ExtractionStrategy",
    "DEFAULT_STRATEGIES",
    "extract_stream_url",
    "substitute_host",
    "rewrite_manifest",
    "build_async_client",
    "ProviderResolver",
    "ManifestFetcher",
    "StreamRelay",
    "RelayedManifest",
]
