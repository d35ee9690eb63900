from __future__ import annotations

import asyncio
import json
import logging
from typing import Any
from urllib import error, request

from pydantic import ValidationError

from .config import settings
from .runtime_constants import STUN_SERVERS
from .schemas.ice import IceServer

logger = logging.getLogger(__name__)

METERED_CREDENTIALS_URL = "https://{app}.metered.live/api/v1/turn/credentials?apiKey={key}"


class IceServerFetchError(RuntimeError):
    pass


def stun_only() -> list[dict[str, Any]]:
    return [dict(server) for server in STUN_SERVERS]


def _mask(url: str, secret: str) -> str:
    return url.replace(secret, "***") if secret else url


def _parse_turn_payload(body: str) -> list[dict[str, Any]]:
    try:
        payload = json.loads(body)
    except json.JSONDecodeError as exc:
        raise IceServerFetchError("TURN provider returned invalid JSON") from exc
    if not isinstance(payload, list):
        raise IceServerFetchError("TURN provider response is not a list")
    try:
        servers = [IceServer.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise IceServerFetchError("TURN provider returned malformed servers") from exc
    return [server.model_dump(exclude_none=True) for server in servers]


def _fetch_turn_servers_sync(url: str, timeout: int) -> list[dict[str, Any]]:
    req = request.Request(url, headers={"Accept": "application/json"}, method="GET")
    try:
        with request.urlopen(req, timeout=timeout) as response:
            status = getattr(response, "status", 200)
            body = response.read().decode("utf-8", errors="replace")
    except error.HTTPError as exc:
        raise IceServerFetchError(f"TURN provider HTTP {exc.code}") from exc
    except (error.URLError, TimeoutError, OSError) as exc:
        raise IceServerFetchError(f"TURN provider unreachable: {exc}") from exc
    logger.info("TURN: API response status=%s body_length=%s", status, len(body))
    return _parse_turn_payload(body)


async def get_ice_servers(
    api_key: str | None = None,
    app_name: str | None = None,
    timeout: int | None = None,
) -> list[dict[str, Any]]:
    """STUN servers, followed by TURN credentials when a provider is configured.

    Never raises: any provider failure degrades to the STUN-only list.
    """
    key = settings.metered_api_key if api_key is None else api_key
    app = settings.metered_app_name if app_name is None else app_name
    if not key or not app:
        logger.info(
            "TURN: provider not configured (api key %s, app name %s), returning STUN only",
            "set" if key else "missing",
            app or "missing",
        )
        return stun_only()

    url = METERED_CREDENTIALS_URL.format(app=app, key=key)
    logger.info("TURN: fetching credentials from %s", _mask(url, key))
    try:
        turn_servers = await asyncio.to_thread(
            _fetch_turn_servers_sync,
            url,
            timeout or settings.turn_fetch_timeout_seconds,
        )
    except IceServerFetchError as exc:
        logger.warning("TURN: falling back to STUN only: %s", _mask(str(exc), key))
        return stun_only()

    logger.info("TURN: got %s servers from provider", len(turn_servers))
    return stun_only() + turn_servers
