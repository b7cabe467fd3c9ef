#!/usr/bin/env python3
"""High-level smoke runner exercising the token service end to end.

Steps:
- wait for server health
- issue an access/refresh pair for a synthetic identity
- verify the pair
- tamper with the access signature and verify again (refresh fallback)
- verify against a different identity (must be rejected)
- issue a CSRF token, verify it, and verify a forged one (must be rejected)
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import sys
from typing import Any

import httpx

from runner.cli import parse_args
from runner.client import (
    issue_csrf,
    issue_tokens,
    tamper_signature,
    verify_csrf,
    verify_tokens,
    wait_for_health,
)
from runner.types import StepResult
from tokenauth.logging_conf import get_logger, setup_logging

setup_logging()
logger = get_logger("runner")


async def _token_steps(client: httpx.AsyncClient, identity: dict[str, Any]) -> list[StepResult]:
    steps: list[StepResult] = []
    pair = await issue_tokens(client, identity)
    steps.append(StepResult("issue", True, "refresh" if pair.refresh_token else "access only"))

    out = await verify_tokens(client, identity, pair.access_token, pair.refresh_token)
    steps.append(StepResult("verify", out["verified"] and not out["via_refresh"]))

    if pair.refresh_token is not None:
        out = await verify_tokens(
            client, identity, tamper_signature(pair.access_token), pair.refresh_token
        )
        steps.append(StepResult("refresh_fallback", out["verified"] and out["via_refresh"]))

    stranger = {**identity, "userId": f"{identity['userId']}-other"}
    out = await verify_tokens(client, stranger, pair.access_token, pair.refresh_token)
    steps.append(StepResult("identity_binding", not out["verified"], str(out.get("error_code"))))
    return steps


async def _csrf_steps(client: httpx.AsyncClient, csrf_id: str) -> list[StepResult]:
    issued = await issue_csrf(client, csrf_id)
    good = await verify_csrf(client, issued, issued["csrf_token"])
    forged = await verify_csrf(client, issued, "0" * len(issued["csrf_token"]))
    return [StepResult("csrf_verify", good), StepResult("csrf_forged", not forged)]


async def run_smoke(*, base_url: str, identity: dict[str, Any], timeout_s: float = 20.0) -> int:
    await wait_for_health(base_url, timeout_s)
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0) as client:
        steps = await _token_steps(client, identity)
        steps += await _csrf_steps(client, str(identity["userId"]))

    failed = [s for s in steps if not s.ok]
    summary = {
        "component": "runner",
        "event": "summary",
        "steps": {s.name: s.ok for s in steps},
        "failures": [{"step": s.name, "detail": s.detail} for s in failed],
    }
    logger.info("runner.summary", extra=summary)
    return 0 if not failed else 1


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    identity = {"userId": args.user_id, "userKey": args.user_key, "userRkey": args.user_rkey}
    code = asyncio.run(run_smoke(base_url=args.base_url, identity=identity, timeout_s=args.timeout))
    raise SystemExit(code)


if __name__ == "__main__":
    main()
