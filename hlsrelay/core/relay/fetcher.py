from __future__ import annotations

from typing import Optional

import anyio
import httpx
from loguru import logger

from .errors import ManifestFetchFailed
from .http import ClientFactory, build_async_client
from .types import RelaySettings

_CHUNK_SIZE = 64 * 1024


class ManifestFetcher:
    """
    Download a manifest body in full, or fail without returning partial data.
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings
        self.client_factory = client_factory or build_async_client

    async def _read_body(self, client: httpx.AsyncClient, url: str) -> str:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                logger.error(
                    "Manifest upstream returned HTTP {} for {}", response.status_code, url
                )
                raise ManifestFetchFailed(url, f"HTTP {response.status_code}")
            body = bytearray()
            async for chunk in response.aiter_bytes(chunk_size=_CHUNK_SIZE):
                body.extend(chunk)
            charset = response.charset_encoding or "utf-8"
        try:
            return body.decode(charset, errors="replace")
        except LookupError:
            return body.decode("utf-8", errors="replace")

    async def fetch(self, url: str) -> str:
        """
        GET `url`, following redirects, and return the decoded body.

        The whole exchange (redirects and body streaming included) is bounded by
        the manifest timeout.

        Raises:
            ManifestFetchFailed: On network error, timeout, redirect-limit exhaustion or non-2xx status.
        """
        timeout = self.settings.manifest_timeout
        logger.debug("Fetching manifest {}", url)
        async with self.client_factory(self.settings, timeout) as client:
            try:
                with anyio.fail_after(timeout):
                    text = await self._read_body(client, url)
            except TimeoutError as exc:
                logger.error("Manifest fetch timed out after {}s: {}", timeout, url)
                raise ManifestFetchFailed(
                    url, f"timeout after {int(timeout * 1000)} ms"
                ) from exc
            except httpx.TooManyRedirects as exc:
                logger.error("Manifest fetch exceeded redirect limit: {}", url)
                raise ManifestFetchFailed(
                    url, f"more than {self.settings.max_redirects} redirects"
                ) from exc
            except httpx.HTTPError as exc:
                logger.error("Manifest fetch error for {}: {}", url, exc)
                raise ManifestFetchFailed(url, f"{type(exc).__name__}: {exc}") from exc
        logger.info("Fetched manifest ({} chars) from {}", len(text), url)
        return text
