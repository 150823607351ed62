from __future__ import annotations

import re
from urllib.parse import urlsplit, urlunsplit

from loguru import logger

_SCHEME_PREFIX_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*://")


def normalize_target_host(target_host: str) -> str:
    """
    Strip an accidentally configured scheme and any path from a target host.

    `https://manifest.googlevideo.com/` becomes `manifest.googlevideo.com`.
    """
    host = _SCHEME_PREFIX_RE.sub("", (target_host or "").strip())
    return host.split("/", 1)[0].strip()


def substitute_host(url: str, target_host: str) -> str:
    """
    Point a resolved stream URL at `target_host`, forcing https.

    Path, query and fragment are preserved. The URL is returned unchanged when
    substitution is disabled (empty target), when it cannot be parsed, or when
    it has no host to replace.

    Parameters:
        url (str): Absolute stream URL as resolved from a provider.
        target_host (str): Replacement host, optionally with a port.

    Returns:
        str: The rewritten URL, or `url` unchanged.
    """
    host = normalize_target_host(target_host)
    if not host:
        return url
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        logger.debug("Host substitution skipped, unparsable url: {}", exc)
        return url
    if not parts.netloc:
        logger.debug("Host substitution skipped, url has no host: {}", url)
        return url
    rewritten = urlunsplit(("https", host, parts.path, parts.query, parts.fragment))
    logger.trace("Host substitution {} -> {}", parts.netloc, host)
    return rewritten
