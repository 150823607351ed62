from __future__ import annotations

from typing import Callable

import httpx
from loguru import logger

from .types import RelaySettings

ClientFactory = Callable[[RelaySettings, float], httpx.AsyncClient]


def _mask(url: str | None) -> str:
    """Mask credentials in a proxy URL for safe logging."""
    if not url:
        return ""
    try:
        from urllib.parse import urlsplit, urlunsplit

        p = urlsplit(url)
        netloc = p.netloc
        if "@" in netloc:
            userinfo, host = netloc.split("@", 1)
            user = userinfo.split(":", 1)[0]
            netloc = f"{user}:****@{host}"
        return urlunsplit((p.scheme, netloc, p.path, p.query, p.fragment))
    except ValueError:
        return "<invalid proxy url>"


def build_async_client(settings: RelaySettings, timeout: float) -> httpx.AsyncClient:
    """
    Build an AsyncClient for upstream requests.

    Parameters:
        settings (RelaySettings): Supplies User-Agent, redirect limit and optional proxy.
        timeout (float): Seconds applied to each httpx phase (connect/read/write/pool).

    Returns:
        httpx.AsyncClient: Client that follows redirects and ignores env proxies.
    """
    logger.trace(
        "Building upstream AsyncClient (timeout={}s proxy={})",
        timeout,
        _mask(settings.proxy) or "<none>",
    )
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        follow_redirects=True,
        max_redirects=settings.max_redirects,
        headers={"User-Agent": settings.user_agent},
        proxy=settings.proxy,
        trust_env=False,
    )
