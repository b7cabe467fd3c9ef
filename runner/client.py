from __future__ import annotations

import asyncio
import time
from typing import Any, Optional

import httpx

from runner.types import CheckError, IssuedPair, IssueError, SmokeError
from tokenauth.logging_conf import get_logger

logger = get_logger("runner.client")


async def wait_for_health(base_url: str, timeout_s: float = 20.0) -> None:
    """Ping /health until it returns ok or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/health")
                if r.status_code == 200 and r.json().get("ok") is True:
                    logger.info("health.ok", extra={"event": "health_ok"})
                    return
            except httpx.HTTPError as e:
                logger.debug("health.wait", extra={"event": "health_wait", "error": str(e)})
            await asyncio.sleep(0.25)
    raise SmokeError("Health check did not pass within timeout")


async def issue_tokens(
    client: httpx.AsyncClient, identity: dict[str, Any], *, retries: int = 3
) -> IssuedPair:
    """POST /tokens and return the issued pair, retrying transient failures."""
    last_err: Exception | None = None
    for attempt in range(retries):
        try:
            r = await client.post("/tokens", json={"identity": identity})
            r.raise_for_status()
            data = r.json()
            logger.info(
                "tokens.issued",
                extra={
                    "event": "tokens_issued",
                    "attempt": attempt + 1,
                    "has_refresh": data.get("refresh_token") is not None,
                },
            )
            return IssuedPair(
                access_token=data["access_token"],
                date_access=data["date_access"],
                refresh_token=data.get("refresh_token"),
                date_refresh=data.get("date_refresh"),
            )
        except httpx.HTTPError as e:  # pragma: no cover - network flakiness
            last_err = e
            logger.warning(
                "tokens.issue_retry",
                extra={"event": "tokens_issue_retry", "attempt": attempt + 1, "error": str(e)},
            )
    raise IssueError(str(last_err) if last_err else "issue_tokens failed")


async def verify_tokens(
    client: httpx.AsyncClient,
    identity: dict[str, Any],
    access_token: str,
    refresh_token: Optional[str] = None,
) -> dict:
    """POST /tokens/verify and return the raw response body."""
    body: dict[str, Any] = {"identity": identity, "access_token": access_token}
    if refresh_token is not None:
        body["refresh_token"] = refresh_token
    try:
        r = await client.post("/tokens/verify", json=body)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise CheckError(f"verify failed: {e}") from e
    return r.json()


async def issue_csrf(client: httpx.AsyncClient, csrf_id: str) -> dict:
    try:
        r = await client.post("/csrf", json={"id": csrf_id})
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise CheckError(f"csrf issue failed: {e}") from e
    return r.json()


async def verify_csrf(client: httpx.AsyncClient, issued: dict, csrf_token: str) -> bool:
    body = {"id": issued["id"], "created_at": issued["created_at"], "csrf_token": csrf_token}
    try:
        r = await client.post("/csrf/verify", json=body)
        r.raise_for_status()
    except httpx.HTTPError as e:
        raise CheckError(f"csrf verify failed: {e}") from e
    return bool(r.json()["valid"])


def tamper_signature(token: str) -> str:
    """Flip the first character of the signature segment, keeping the payload intact."""
    head, _, sig = token.rpartition(".")
    first = "B" if sig[:1] == "A" else "A"
    return f"{head}.{first}{sig[1:]}"
