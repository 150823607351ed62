import os
from dotenv import load_dotenv
from loguru import logger
from hlsrelay.utils.logger import config as configure_logger

# Load .env as early as possible so all downstream imports see the intended env
load_dotenv()

# Configure logger after env is loaded (LOG_LEVEL honored)
configure_logger()


def _as_bool(val: str | None, default: bool) -> bool:
    if val is None:
        return default
    v = val.strip().lower()
    return v in ("1", "true", "yes", "on")


def _as_int(name: str, default: int, *, floor: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name}={raw!r}; defaulting to {default}.")
        return default
    return max(floor, value)


def _split_csv(raw: str) -> list[str]:
    # split, trim, drop empties, keep first occurrence
    return list(dict.fromkeys(p.strip() for p in raw.split(",") if p.strip()))


# ---- Providers ----
# Ordered list of Invidious instances. Order = priority, first listed is tried first.
_default_instances = ",".join(
    [
        "https://invidious.f5.si",
        "https://yt.omada.cafe",
        "https://inv.perditum.com",
        "https://iv.melmac.space",
        "https://invidious.nikkosphere.com",
        "https://iv.duti.dev",
        "https://youtube.alt.tyil.nl",
        "https://inv.antopie.org",
        "https://lekker.gay",
        "https://invidious.ducks.party",
        "https://super8.absturztau.be",
        "https://inv.vern.cc",
        "https://yt.thechangebook.org",
        "https://invidious.materialio.us",
        "https://invid-api.poketube.fun",
    ]
)
_raw = os.getenv("PROVIDER_INSTANCES", _default_instances)
logger.debug(f"PROVIDER_INSTANCES raw string: {_raw}")

PROVIDER_INSTANCES = [p.rstrip("/") for p in _split_csv(_raw) if p.rstrip("/")]
if not PROVIDER_INSTANCES:
    logger.warning("PROVIDER_INSTANCES is empty; every resolution will fail.")
logger.debug(f"PROVIDER_INSTANCES normalized: {PROVIDER_INSTANCES}")

PROVIDER_QUERY_PATH = "/" + (
    os.getenv("PROVIDER_QUERY_PATH", "/api/v1/videos").strip().strip("/")
)
STREAM_FORMAT = os.getenv("STREAM_FORMAT", "hls").strip().lower() or "hls"
logger.debug(f"PROVIDER_QUERY_PATH={PROVIDER_QUERY_PATH}, STREAM_FORMAT={STREAM_FORMAT}")

# ---- Timeouts (milliseconds) ----
PROVIDER_TIMEOUT_MS = _as_int("PROVIDER_TIMEOUT_MS", 5000, floor=1)
MANIFEST_TIMEOUT_MS = _as_int("MANIFEST_TIMEOUT_MS", 10000, floor=1)
MANIFEST_MAX_REDIRECTS = _as_int("MANIFEST_MAX_REDIRECTS", 5, floor=0)
logger.debug(
    f"PROVIDER_TIMEOUT_MS={PROVIDER_TIMEOUT_MS}, MANIFEST_TIMEOUT_MS={MANIFEST_TIMEOUT_MS}, MANIFEST_MAX_REDIRECTS={MANIFEST_MAX_REDIRECTS}"
)

# ---- Host substitution ----
# CDN host that serves the same content as the per-node googlevideo hosts.
# Empty string disables substitution.
TARGET_HOST = os.getenv("TARGET_HOST", "manifest.googlevideo.com").strip()
logger.debug(f"TARGET_HOST={TARGET_HOST or '<disabled>'}")

# Upstream hosts reject default client signatures.
RELAY_USER_AGENT = (
    os.getenv(
        "RELAY_USER_AGENT",
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    ).strip()
)

# ---- Outbound proxy ----
PROXY_ENABLED = _as_bool(os.getenv("PROXY_ENABLED", None), False)
PROXY_URL = os.getenv("PROXY_URL", "").strip()
if PROXY_ENABLED and not PROXY_URL:
    logger.warning("PROXY_ENABLED=true but PROXY_URL is empty; proxy disabled.")
EFFECTIVE_PROXY = PROXY_URL if (PROXY_ENABLED and PROXY_URL) else None

# ---- CORS ----
CORS_ORIGINS = _split_csv(os.getenv("CORS_ORIGINS", "*"))
CORS_ALLOW_CREDENTIALS = _as_bool(os.getenv("CORS_ALLOW_CREDENTIALS", None), False)
logger.debug(
    f"CORS_ORIGINS={CORS_ORIGINS}, CORS_ALLOW_CREDENTIALS={CORS_ALLOW_CREDENTIALS}"
)

# ---- Server ----
HLSRELAY_RELOAD = _as_bool(os.getenv("HLSRELAY_RELOAD", None), False)
HLSRELAY_HOST = os.getenv("HLSRELAY_HOST", "0.0.0.0").strip() or "0.0.0.0"
HLSRELAY_PORT = _as_int("PORT", 3000, floor=1)


def build_settings():
    """Snapshot the module-level configuration into an immutable RelaySettings."""
    from hlsrelay.core.relay.types import RelaySettings

    return RelaySettings(
        providers=tuple(PROVIDER_INSTANCES),
        query_path=PROVIDER_QUERY_PATH,
        stream_format=STREAM_FORMAT,
        provider_timeout=PROVIDER_TIMEOUT_MS / 1000,
        manifest_timeout=MANIFEST_TIMEOUT_MS / 1000,
        max_redirects=MANIFEST_MAX_REDIRECTS,
        target_host=TARGET_HOST,
        user_agent=RELAY_USER_AGENT,
        proxy=EFFECTIVE_PROXY,
    )
