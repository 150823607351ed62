from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RelaySettings:
    """
    Immutable configuration handed to the resolver and the manifest fetcher.

    Timeouts are in seconds. An empty `target_host` disables host substitution.
    """

    providers: tuple[str, ...]
    query_path: str = "/api/v1/videos"
    stream_format: str = "hls"
    provider_timeout: float = 5.0
    manifest_timeout: float = 10.0
    max_redirects: int = 5
    target_host: str = "manifest.googlevideo.com"
    user_agent: str = "Mozilla/5.0"
    proxy: str | None = None


@dataclass(frozen=True)
class FormatDescriptor:
    """
    One rendition as reported by a provider.
    """

    url: str
    container: str | None = None
    quality_label: str | None = None

    def matches(self, format_name: str) -> bool:
        """
        Return whether the container tag equals `format_name` or the quality label contains it (case-insensitive).
        """
        name = format_name.lower()
        if self.container and self.container.lower() == name:
            return True
        return bool(self.quality_label and name in self.quality_label.lower())


@dataclass(frozen=True)
class ProviderAttempt:
    """
    Diagnostic record of a single provider query.
    """

    provider: str
    outcome: str
    detail: str = ""
    elapsed: float = 0.0


@dataclass(frozen=True)
class ResolvedStream:
    """
    Stream URL chosen for one request, with the provider that produced it.
    """

    url: str
    provider: str
    strategy: str
    attempts: int
