from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from .address import substitute_host
from .fetcher import ManifestFetcher
from .hls import rewrite_manifest
from .http import ClientFactory
from .resolver import ProviderResolver
from .types import RelaySettings, ResolvedStream


@dataclass(frozen=True)
class RelayedManifest:
    """Client-ready manifest plus the URL it was fetched from."""

    text: str
    source_url: str
    stream: ResolvedStream


class StreamRelay:
    """
    Resolver -> host substitution -> fetch -> rewrite, for one identifier at a time.
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings
        self.resolver = ProviderResolver(settings, client_factory=client_factory)
        self.fetcher = ManifestFetcher(settings, client_factory=client_factory)

    async def resolve_url(self, identifier: str) -> tuple[str, ResolvedStream]:
        """
        Resolve `identifier` and apply the configured target host.

        Returns:
            tuple[str, ResolvedStream]: (final URL, resolution provenance).

        Raises:
            StreamNotFound: When every provider failed.
        """
        stream = await self.resolver.resolve(identifier)
        final_url = substitute_host(stream.url, self.settings.target_host)
        logger.debug("Final stream url for {}: {}", identifier, final_url)
        return final_url, stream

    async def manifest(self, identifier: str) -> RelayedManifest:
        """
        Resolve, fetch and rewrite the manifest for `identifier`.

        Relative references are resolved against the post-substitution URL,
        the one the manifest was actually fetched from.

        Raises:
            StreamNotFound: When every provider failed.
            ManifestFetchFailed: When the manifest could not be downloaded.
        """
        final_url, stream = await self.resolve_url(identifier)
        raw = await self.fetcher.fetch(final_url)
        return RelayedManifest(
            text=rewrite_manifest(raw, final_url),
            source_url=final_url,
            stream=stream,
        )
