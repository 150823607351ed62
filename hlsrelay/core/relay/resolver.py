from __future__ import annotations

import time
from typing import Any, Optional
from urllib.parse import quote, urljoin, urlsplit

import anyio
import httpx
from loguru import logger

from .errors import (
    ProviderError,
    ProviderMalformed,
    ProviderNoFormat,
    ProviderUnreachable,
    StreamNotFound,
)
from .extractors import DEFAULT_STRATEGIES, ExtractionStrategy, extract_stream_url
from .http import ClientFactory, build_async_client
from .types import ProviderAttempt, RelaySettings, ResolvedStream


def _is_http_url(url: str) -> bool:
    try:
        return urlsplit(url).scheme in ("http", "https")
    except ValueError:
        return False


class ProviderResolver:
    """
    Resolve a stream identifier by querying providers in configured order.

    Attempts are sequential and stateless across calls: each provider gets one
    bounded attempt per resolve, and the first usable URL wins.
    """

    def __init__(
        self,
        settings: RelaySettings,
        *,
        client_factory: Optional[ClientFactory] = None,
        strategies: tuple[ExtractionStrategy, ...] = DEFAULT_STRATEGIES,
    ) -> None:
        self.settings = settings
        self.client_factory = client_factory or build_async_client
        self.strategies = strategies

    def query_url(self, provider: str, identifier: str) -> str:
        """
        Build the metadata query URL for one provider, e.g. `https://inv.example/api/v1/videos/<id>`.
        """
        base = provider.rstrip("/")
        path = "/" + self.settings.query_path.strip("/")
        return f"{base}{path}/{quote(identifier, safe='')}"

    async def _fetch_payload(self, provider: str, url: str) -> dict[str, Any]:
        """
        GET the provider's metadata document within the per-attempt timeout.

        Raises:
            ProviderUnreachable: On network error, timeout or non-2xx status.
            ProviderMalformed: When the body is not a JSON object.
        """
        timeout = self.settings.provider_timeout
        async with self.client_factory(self.settings, timeout) as client:
            try:
                with anyio.fail_after(timeout):
                    response = await client.get(url)
            except TimeoutError as exc:
                raise ProviderUnreachable(
                    provider, f"timeout after {int(timeout * 1000)} ms"
                ) from exc
            except httpx.HTTPError as exc:
                raise ProviderUnreachable(
                    provider, f"{type(exc).__name__}: {exc}"
                ) from exc

        if not response.is_success:
            raise ProviderUnreachable(provider, f"HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise ProviderMalformed(provider, f"invalid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ProviderMalformed(
                provider, f"expected JSON object, got {type(payload).__name__}"
            )
        return payload

    async def _attempt(self, provider: str, identifier: str) -> tuple[str, str]:
        url = self.query_url(provider, identifier)
        payload = await self._fetch_payload(provider, url)

        found = extract_stream_url(
            payload, self.settings.stream_format, self.strategies
        )
        if not found:
            raise ProviderNoFormat(
                provider, f"no '{self.settings.stream_format}' stream in response"
            )
        stream_url, strategy = found
        if not _is_http_url(stream_url):
            stream_url = urljoin(provider.rstrip("/") + "/", stream_url)
            if not _is_http_url(stream_url):
                raise ProviderNoFormat(provider, f"unusable stream url {stream_url!r}")
        return stream_url, strategy

    async def resolve(self, identifier: str) -> ResolvedStream:
        """
        Return the first stream any provider yields for `identifier`.

        Raises:
            ValueError: If the identifier is empty.
            StreamNotFound: After every provider has failed; carries one ProviderAttempt per provider.
        """
        if not (identifier or "").strip():
            raise ValueError("stream identifier is empty")

        attempts: list[ProviderAttempt] = []
        for provider in self.settings.providers:
            logger.info("Trying provider {} for {}", provider, identifier)
            started = time.monotonic()
            try:
                stream_url, strategy = await self._attempt(provider, identifier)
            except ProviderError as exc:
                elapsed = time.monotonic() - started
                attempts.append(
                    ProviderAttempt(provider, exc.outcome, exc.detail, elapsed)
                )
                logger.warning(
                    "Provider {} failed ({}): {} after {:.2f}s",
                    provider,
                    exc.outcome,
                    exc.detail,
                    elapsed,
                )
                continue

            elapsed = time.monotonic() - started
            attempts.append(ProviderAttempt(provider, "ok", strategy, elapsed))
            logger.success(
                "Resolved {} via {} ({}) in {:.2f}s", identifier, provider, strategy, elapsed
            )
            return ResolvedStream(
                url=stream_url,
                provider=provider,
                strategy=strategy,
                attempts=len(attempts),
            )

        logger.error(
            "No stream for {}. Tried providers: {}",
            identifier,
            ", ".join(a.provider for a in attempts) or "none",
        )
        raise StreamNotFound(identifier, attempts)
