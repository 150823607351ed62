import asyncio
import sys
from pathlib import Path

import httpx
import pytest
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse, StreamingResponse

repo_root = Path(__file__).resolve().parents[1]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from hlsrelay.core.relay import RelaySettings  # noqa: E402

UPSTREAM = "http://upstream"
GOOGLEVIDEO_MANIFEST = "https://r1---sn-abc.googlevideo.com/manifest/live.m3u8"
LIVE_MANIFEST = (
    "#EXTM3U\n"
    "#EXT-X-TARGETDURATION:6\n"
    "#EXTINF:6.0,\n"
    "seg0.ts\n"
    "#EXTINF:6.0,\n"
    "https://cdn.x/seg1.ts\n"
)


class FakeUpstream:
    """
    In-memory stand-in for provider instances and the manifest CDN.

    Providers live under path prefixes (`http://upstream/<name>`); each one's
    behaviour is a dict with optional keys `status`, `json`, `raw` and `sleep`.
    Unconfigured providers answer 503.
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.requested_ids: list[str] = []
        self.user_agents: list[str] = []
        self.providers: dict[str, dict] = {}
        self.manifests: dict[str, str] = {"live.m3u8": LIVE_MANIFEST}
        self.app = self._build_app()

    def _build_app(self) -> FastAPI:
        app = FastAPI()

        @app.get("/{provider}/api/v1/videos/{video_id}")
        async def video_info(provider: str, video_id: str):
            self.calls.append(provider)
            self.requested_ids.append(video_id)
            behaviour = self.providers.get(provider, {"status": 503})
            if behaviour.get("sleep"):
                await asyncio.sleep(behaviour["sleep"])
            status = behaviour.get("status", 200)
            if "raw" in behaviour:
                return Response(
                    content=behaviour["raw"],
                    status_code=status,
                    media_type="application/json",
                )
            return JSONResponse(behaviour.get("json", {}), status_code=status)

        @app.get("/manifest/{name:path}")
        async def manifest(name: str, request: Request):
            self.user_agents.append(request.headers.get("user-agent", ""))
            if name == "slow.m3u8":
                await asyncio.sleep(5)
            text = self.manifests.get(name)
            if text is None:
                return Response(content=b"gone", status_code=404)
            return Response(
                content=text.encode("utf-8"),
                media_type="application/vnd.apple.mpegurl",
            )

        @app.get("/partial/{name:path}")
        async def partial_manifest(name: str):
            async def body():
                yield b"#EXTM3U\n#EXTINF:6.0,\n"
                await asyncio.sleep(5)
                yield b"seg0.ts\n"

            return StreamingResponse(body(), media_type="application/vnd.apple.mpegurl")

        @app.get("/hop/{remaining}")
        async def hop(remaining: int):
            if remaining <= 0:
                return RedirectResponse(url="/manifest/live.m3u8")
            return RedirectResponse(url=f"/hop/{remaining - 1}")

        return app

    def provider_url(self, name: str) -> str:
        return f"{UPSTREAM}/{name}"

    def client_factory(self, settings: RelaySettings, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app),
            timeout=httpx.Timeout(timeout),
            follow_redirects=True,
            max_redirects=settings.max_redirects,
            headers={"User-Agent": settings.user_agent},
        )


def _hls_payload(url: str = GOOGLEVIDEO_MANIFEST) -> dict:
    return {
        "title": "live",
        "formatStreams": [
            {"container": "mp4", "qualityLabel": "360p", "url": "https://x/360.mp4"},
            {"container": "hls", "qualityLabel": "live", "url": url},
        ],
    }


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_settings(upstream):
    def _make(*providers: str, **overrides) -> RelaySettings:
        values = dict(
            providers=tuple(upstream.provider_url(p) for p in providers),
            provider_timeout=1.0,
            manifest_timeout=2.0,
            max_redirects=5,
            target_host="cdn.test",
            user_agent="hls-relay-tests/1.0",
        )
        values.update(overrides)
        return RelaySettings(**values)

    return _make


@pytest.fixture
def make_client(upstream, make_settings):
    from fastapi.testclient import TestClient

    from hlsrelay.main import create_app

    clients = []

    def _make(*providers: str, **overrides):
        app = create_app(
            make_settings(*providers, **overrides),
            client_factory=upstream.client_factory,
        )
        c = TestClient(app)
        c.__enter__()
        clients.append(c)
        return c

    yield _make
    for c in clients:
        c.__exit__(None, None, None)


@pytest.fixture
def hls_payload():
    """Factory for an Invidious-style video document carrying an HLS descriptor."""
    return _hls_payload
