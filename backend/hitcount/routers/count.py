"""
Hit ingestion endpoint for the tracking beacon.

Always answers with the same transparent GIF, whatever happens to the hit,
so a page can never tell whether it was counted.
"""
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Request
from fastapi.responses import Response

from hitcount.core.config import settings
from hitcount.core.database import get_session_factory
from hitcount.core.logging import get_logger
from hitcount.core.redis import get_redis
from hitcount.schemas.hit import MAX_PATH_LENGTH, HitPayload
from hitcount.services.job_queue import enqueue_hit
from hitcount.services.pipeline import parse_flag, parse_int
from hitcount.services.useragent import BOT_SCORE_THRESHOLD, detect_bot

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["count"])

# 1x1 transparent GIF
TRACKING_GIF = bytes(
    [
        0x47, 0x49, 0x46, 0x38, 0x39, 0x61, 0x01, 0x00,
        0x01, 0x00, 0x80, 0x00, 0x00, 0xFF, 0xFF, 0xFF,
        0x00, 0x00, 0x00, 0x21, 0xF9, 0x04, 0x01, 0x00,
        0x00, 0x00, 0x00, 0x2C, 0x00, 0x00, 0x00, 0x00,
        0x01, 0x00, 0x01, 0x00, 0x00, 0x02, 0x02, 0x44,
        0x01, 0x00, 0x3B,
    ]
)

PIXEL_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, private",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def pixel_response() -> Response:
    return Response(content=TRACKING_GIF, media_type="image/gif", headers=PIXEL_HEADERS)


def client_ip(request: Request) -> str:
    """Edge-supplied client IP, then the first X-Forwarded-For hop, then the peer."""
    edge_ip = request.headers.get(settings.client_ip_header)
    if edge_ip:
        return edge_ip.strip()

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host
    return "0.0.0.0"


def build_payload(request: Request) -> Optional[HitPayload]:
    """
    Validate the beacon parameters and apply the bot checks.

    Returns None when the hit should be dropped.
    """
    params = request.query_params
    path = params.get("p") or ""
    if not path:
        logger.debug("hit_dropped", reason="missing_path")
        return None
    if not path.startswith("/"):
        path = "/" + path
    # Bytes, not characters: the unique index is limited in bytes
    if len(path.encode("utf-8")) > MAX_PATH_LENGTH:
        logger.debug("hit_dropped", reason="path_too_long")
        return None

    user_agent = request.headers.get("user-agent", "")

    client_bot = parse_int(params.get("b")) or 0
    if client_bot > 0:
        logger.debug("hit_dropped", reason="client_bot")
        return None

    if detect_bot(user_agent) > BOT_SCORE_THRESHOLD:
        logger.debug("hit_dropped", reason="server_bot")
        return None

    edge_score = parse_int(request.headers.get(settings.bot_score_header))
    if edge_score is not None and edge_score < settings.edge_bot_score_threshold:
        logger.debug("hit_dropped", reason="edge_bot", edge_score=edge_score)
        return None

    country = (request.headers.get(settings.country_header) or "").strip()

    return HitPayload(
        path=path,
        title=params.get("t") or "",
        referrer=params.get("r") or "",
        event=parse_flag(params.get("e")),
        width=parse_int(params.get("s")),
        ip=client_ip(request),
        user_agent=user_agent,
        location=country.upper() if len(country) == 2 else "",
        accept_language=request.headers.get("accept-language"),
        created_at=datetime.now(timezone.utc),
    )


@router.options("/count")
async def count_preflight() -> Response:
    """CORS preflight for beacons sent with ``fetch``."""
    return Response(status_code=204, headers=PIXEL_HEADERS)


@router.api_route("/count", methods=["GET", "POST"])
async def count(request: Request, background_tasks: BackgroundTasks) -> Response:
    """
    Record a pageview or event.

    Query parameters: ``p`` path (required), ``t`` title, ``r`` referrer,
    ``e`` event flag, ``s`` screen width, ``b`` client bot flag.
    Processing continues after the response has been sent.
    """
    try:
        payload = build_payload(request)
        if payload is not None:
            await enqueue_hit(
                payload,
                background_tasks,
                queue=getattr(request.app.state, "arq_pool", None),
                factory=get_session_factory(request),
                redis=get_redis(request),
            )
    except Exception as e:
        logger.error("count_request_failed", error=str(e), exc_info=True)

    return pixel_response()
