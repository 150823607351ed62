import time

import anyio
import httpx
import pytest

from hlsrelay.core.relay import ManifestFetchFailed, ManifestFetcher


def _fetch(settings, upstream, url):
    fetcher = ManifestFetcher(settings, client_factory=upstream.client_factory)
    return anyio.run(fetcher.fetch, url)


def test_fetch_returns_body_and_sends_user_agent(upstream, make_settings):
    settings = make_settings(user_agent="relay-agent/2.0")

    text = _fetch(settings, upstream, "https://cdn.test/manifest/live.m3u8")

    assert text.startswith("#EXTM3U\n")
    assert "seg0.ts" in text
    assert upstream.user_agents == ["relay-agent/2.0"]


def test_fetch_follows_redirects_within_limit(upstream, make_settings):
    settings = make_settings(max_redirects=5)

    # /hop/4 -> 3 -> 2 -> 1 -> 0 -> /manifest/live.m3u8 is five redirects
    text = _fetch(settings, upstream, "https://cdn.test/hop/4")

    assert "seg0.ts" in text


def test_fetch_fails_when_redirect_limit_exceeded(upstream, make_settings):
    settings = make_settings(max_redirects=5)

    with pytest.raises(ManifestFetchFailed) as excinfo:
        _fetch(settings, upstream, "https://cdn.test/hop/5")
    assert "redirects" in excinfo.value.reason


def test_fetch_fails_on_error_status(upstream, make_settings):
    settings = make_settings()

    with pytest.raises(ManifestFetchFailed) as excinfo:
        _fetch(settings, upstream, "https://cdn.test/manifest/missing.m3u8")
    assert excinfo.value.reason == "HTTP 404"
    assert excinfo.value.url == "https://cdn.test/manifest/missing.m3u8"


def test_fetch_times_out(upstream, make_settings):
    settings = make_settings(manifest_timeout=0.2)

    started = time.monotonic()
    with pytest.raises(ManifestFetchFailed) as excinfo:
        _fetch(settings, upstream, "https://cdn.test/manifest/slow.m3u8")

    assert excinfo.value.reason == "timeout after 200 ms"
    assert time.monotonic() - started < 2.0


def test_fetch_discards_body_when_upstream_stalls_mid_stream(upstream, make_settings):
    settings = make_settings(manifest_timeout=0.2)
    result = []

    with pytest.raises(ManifestFetchFailed) as excinfo:
        result.append(_fetch(settings, upstream, "https://cdn.test/partial/live.m3u8"))

    assert excinfo.value.reason == "timeout after 200 ms"
    assert result == []


class _DroppedStream(httpx.AsyncByteStream):
    async def __aiter__(self):
        yield b"#EXTM3U\n#EXTINF:6.0,\n"
        raise httpx.ReadError("connection reset by peer")


def test_fetch_discards_body_when_connection_drops(make_settings):
    settings = make_settings()

    def handler(request):
        return httpx.Response(
            200,
            headers={"Content-Type": "application/vnd.apple.mpegurl"},
            stream=_DroppedStream(),
        )

    def client_factory(settings, timeout):
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    fetcher = ManifestFetcher(settings, client_factory=client_factory)
    result = []

    with pytest.raises(ManifestFetchFailed) as excinfo:
        result.append(anyio.run(fetcher.fetch, "https://cdn.test/manifest/live.m3u8"))

    assert excinfo.value.reason.startswith("ReadError")
    assert result == []
