from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from loguru import logger

from hlsrelay.core.relay import ManifestFetchFailed, StreamNotFound, StreamRelay

router = APIRouter()

HLS_MEDIA_TYPE = "application/vnd.apple.mpegurl"

# Browser-based players on arbitrary origins consume these responses.
CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, HEAD",
    "Access-Control-Allow-Headers": "Content-Type",
}


def get_relay(request: Request) -> StreamRelay:
    """Get the StreamRelay instance from application state."""
    return request.app.state.relay


def _text(body: str, status_code: int) -> PlainTextResponse:
    return PlainTextResponse(body, status_code=status_code, headers=CORS_HEADERS)


@router.get("/get")
@router.get("/get/")
@router.get("/get/url")
@router.get("/get/url/")
async def missing_identifier():
    """Requests without a stream id go back to the index."""
    return RedirectResponse(url="/")


@router.api_route("/get/url/{video_id}", methods=["GET", "HEAD"])
async def get_stream_url(video_id: str, relay: StreamRelay = Depends(get_relay)):
    """
    Resolve `video_id` and return the final stream URL as plain text.
    """
    logger.info("Stream URL request for {}", video_id)
    try:
        final_url, stream = await relay.resolve_url(video_id)
    except ValueError:
        return _text("missing stream id", 400)
    except StreamNotFound as exc:
        logger.warning("Stream URL lookup failed: {}", exc)
        return _text("No provider returned a stream URL for this id.", 404)
    logger.success(
        "Served stream URL for {} (provider={} attempts={})",
        video_id,
        stream.provider,
        stream.attempts,
    )
    return _text(final_url, 200)


@router.api_route("/get/{video_id}", methods=["GET", "HEAD"])
async def get_manifest(video_id: str, relay: StreamRelay = Depends(get_relay)):
    """
    Resolve `video_id`, fetch its HLS manifest and return it with absolute references.
    """
    logger.info("Manifest request for {}", video_id)
    try:
        relayed = await relay.manifest(video_id)
    except ValueError:
        return _text("missing stream id", 400)
    except StreamNotFound as exc:
        logger.error("Manifest request failed, no provider: {}", exc)
        return _text("Failed to obtain a live stream URL from every provider.", 500)
    except ManifestFetchFailed as exc:
        logger.error("Manifest request failed for {}: {}", exc.url, exc.reason)
        return _text("Failed to fetch the HLS manifest content.", 500)

    body = relayed.text.encode("utf-8")
    logger.success(
        "Served manifest for {} ({} bytes, provider={})",
        video_id,
        len(body),
        relayed.stream.provider,
    )
    return Response(content=body, media_type=HLS_MEDIA_TYPE, headers=CORS_HEADERS)
