from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

from loguru import logger

_ABSOLUTE_PREFIXES = ("http://", "https://", "//")


def manifest_base_url(source_url: str) -> str | None:
    """
    Return the directory URL of a manifest, e.g. `https://host/path/` for `https://host/path/master.m3u8`.

    Query and fragment are dropped before truncating after the final `/`.
    Returns None when `source_url` is not an absolute http(s) URL.
    """
    try:
        parts = urlsplit(source_url)
    except ValueError:
        return None
    if parts.scheme not in ("http", "https") or not parts.netloc:
        return None
    path = parts.path or "/"
    without_query = urlunsplit((parts.scheme, parts.netloc, path, "", ""))
    return without_query[: without_query.rfind("/") + 1]


def is_reference_line(line: str) -> bool:
    """
    Return whether a manifest line is a URI reference (not blank, not a `#` directive/comment).
    """
    stripped = line.strip()
    return bool(stripped) and not stripped.startswith("#")


def _split_carriage_return(line: str) -> tuple[str, str]:
    # lines are split on "\n" only; a trailing "\r" belongs to a CRLF terminator
    if line.endswith("\r"):
        return line[:-1], "\r"
    return line, ""


def _resolve_reference(reference: str, base_url: str) -> str | None:
    if reference.lower().startswith(_ABSOLUTE_PREFIXES):
        return None
    try:
        return urljoin(base_url, reference)
    except ValueError as exc:
        logger.debug("Keeping unresolvable manifest line {!r}: {}", reference, exc)
        return None


def rewrite_manifest(manifest_text: str, source_url: str) -> str:
    """
    Make every relative reference in an HLS manifest absolute.

    Directives, comments, blank lines and already-absolute references are
    kept byte-for-byte. Relative references are resolved against the
    directory of `source_url`. A line that cannot be resolved is kept as is,
    so the output always has the same number of lines, in the same order,
    with the same terminators.

    Parameters:
        manifest_text (str): Raw `.m3u8` text.
        source_url (str): URL the manifest was fetched from.

    Returns:
        str: The manifest with relative references replaced by absolute URLs.
    """
    if not manifest_text:
        return manifest_text
    base_url = manifest_base_url(source_url)
    if base_url is None:
        logger.warning("Manifest source url is not absolute, skipping rewrite: {}", source_url)
        return manifest_text
    logger.debug("Rewriting manifest against {}", base_url)

    out_lines: list[str] = []
    rewritten = 0
    for line in manifest_text.split("\n"):
        content, terminator = _split_carriage_return(line)
        if not is_reference_line(content):
            out_lines.append(line)
            continue
        resolved = _resolve_reference(content.strip(), base_url)
        if resolved is None:
            out_lines.append(line)
            continue
        logger.trace("Manifest reference {} -> {}", content.strip(), resolved)
        out_lines.append(resolved + terminator)
        rewritten += 1

    logger.debug("Rewrote {} of {} manifest lines", rewritten, len(out_lines))
    return "\n".join(out_lines)
