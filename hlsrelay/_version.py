from pathlib import Path

_DIST_NAME = "hls-relay"
_FALLBACK_VERSION = "0.0.0"


def get_version() -> str:
    """Version from a VERSION file next to the package, else installed metadata."""
    vfile = Path(__file__).resolve().parents[1] / "VERSION"
    if vfile.exists():
        text = vfile.read_text().strip()
        if text:
            return text
    try:
        from importlib.metadata import version as _version

        return _version(_DIST_NAME)
    except Exception:
        return _FALLBACK_VERSION


__version__ = get_version()
