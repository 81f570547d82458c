from __future__ import annotations

import asyncio
import json
import logging
import time
from collections import deque
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    def __init__(self) -> None:
        self._entries: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()

    async def allow(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
        now = time.monotonic()
        async with self._lock:
            bucket = self._entries.setdefault(key, deque())
            boundary = now - window_seconds
            while bucket and bucket[0] <= boundary:
                bucket.popleft()
            if len(bucket) >= limit:
                retry_after = max(int(window_seconds - (now - bucket[0])) + 1, 1)
                return False, retry_after
            bucket.append(now)
            return True, 0

    async def reset(self) -> None:
        async with self._lock:
            self._entries.clear()


_rate_limiter = SlidingWindowRateLimiter()


async def reset_rate_limiter_state() -> None:
    await _rate_limiter.reset()


async def _json_key_parts(request: Request, json_fields: tuple[str, ...]) -> list[str]:
    content_type = (request.headers.get("content-type") or "").lower()
    if "application/json" not in content_type:
        return []
    try:
        payload = json.loads((await request.body()) or b"{}")
    except json.JSONDecodeError:
        return []
    if not isinstance(payload, dict):
        return []
    parts = []
    for field in json_fields:
        value = payload.get(field)
        if value is not None:
            parts.append(f"{field}={str(value).strip().lower()}")
    return parts


def rate_limit_dependency(
    *,
    scope: str,
    limit: int,
    window_seconds: int,
    json_fields: tuple[str, ...] = (),
):
    """Build a dependency that throttles a route per client address.

    When ``json_fields`` is given, the listed body fields are folded into the
    key so that e.g. login attempts are counted per email as well.
    """

    async def dependency(
        request: Request,
        x_forwarded_for: Annotated[str | None, Header(alias="X-Forwarded-For")] = None,
    ) -> None:
        client_host = request.client.host if request.client else "unknown"
        forwarded = (x_forwarded_for or "").split(",")[0].strip()
        key_parts = [scope, forwarded or client_host or "unknown"]
        if json_fields:
            key_parts.extend(await _json_key_parts(request, json_fields))
        limiter_key = ":".join(key_parts)
        allowed, retry_after = await _rate_limiter.allow(
            limiter_key,
            limit=limit,
            window_seconds=window_seconds,
        )
        if not allowed:
            logger.warning("Rate limit exceeded for %s", limiter_key)
            raise HTTPException(
                status_code=429,
                detail=f"Too many requests. Retry in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)},
            )

    return Depends(dependency)
