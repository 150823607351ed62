from __future__ import annotations

from typing import Sequence

from .types import ProviderAttempt


class RelayError(Exception):
    pass


class ProviderError(RelayError):
    """A single provider endpoint did not produce a stream URL."""

    outcome = "failed"

    def __init__(self, provider: str, detail: str) -> None:
        self.provider = provider
        self.detail = detail
        super().__init__(f"{provider}: {detail}")


class ProviderUnreachable(ProviderError):
    """Network failure, timeout or non-2xx status."""

    outcome = "unreachable"


class ProviderMalformed(ProviderError):
    """Body was not a JSON object."""

    outcome = "malformed"


class ProviderNoFormat(ProviderError):
    """Valid body without a matching stream."""

    outcome = "no_format"


class StreamNotFound(RelayError):
    """Every configured provider failed for an identifier."""

    def __init__(self, identifier: str, attempts: Sequence[ProviderAttempt]) -> None:
        """
        Parameters:
            identifier (str): The stream identifier that could not be resolved.
            attempts (Sequence[ProviderAttempt]): One record per provider queried, in order.
        """
        self.identifier = identifier
        self.attempts = list(attempts)
        super().__init__(
            f"No stream found for '{identifier}'. Tried providers: "
            f"{', '.join(a.provider for a in self.attempts) or 'none'}"
        )


class ManifestFetchFailed(RelayError):
    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Manifest fetch failed ({reason})")
