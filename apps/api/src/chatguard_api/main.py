from __future__ import annotations

import logging
import os
import secrets
import threading
import time
from collections import deque
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from chatguard_api import db
from chatguard_api.contracts.validate_schema import validate_instance
from chatguard_api.guard import CHAT_DISCLAIMER, TERMS_TEXT, GuardBlocked, evaluate_or_block
from chatguard_api.logging_config import configure_logging
from chatguard_api.moderation import (
    EmptyMessageError,
    MessageTooLongError,
    check_outgoing,
    ensure_within_limit,
)

logger = logging.getLogger(__name__)


class MessageCheckRequest(BaseModel):
    text: str = ""


class BlockedLogRequest(BaseModel):
    reason: str = Field(default="Unknown", max_length=120)


class BannedWordCreateRequest(BaseModel):
    word: str = Field(min_length=1, max_length=64)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    if os.getenv("CHATGUARD_CONFIGURE_LOGGING", "").strip() == "1":
        configure_logging()
    db.init_db()
    yield


app = FastAPI(title="ChatGuard API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ],
    # Vite can bump the port (5173 -> 5174, etc.) if already in use.
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


_ADMIN_RATE_LOCK = threading.Lock()
_ADMIN_RATE_BUCKETS: dict[str, deque[float]] = {}


def _env_int(name: str, default: int, *, low: int, high: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return max(low, min(high, value))


def _admin_rate_window_sec() -> int:
    return _env_int("CHATGUARD_ADMIN_RATE_LIMIT_WINDOW_SEC", 60, low=1, high=3600)


def _admin_rate_max() -> int:
    return _env_int("CHATGUARD_ADMIN_RATE_LIMIT_MAX", 30, low=1, high=1000)


def _admin_api_key() -> str:
    return (os.getenv("CHATGUARD_ADMIN_API_KEY") or "").strip()


def _api_key() -> str:
    return (os.getenv("CHATGUARD_API_KEY") or "").strip()


def _client_ip(request: Request) -> str:
    if request.client and isinstance(request.client.host, str) and request.client.host.strip():
        return request.client.host.strip()
    return "unknown"


def _is_loopback_ip(client_ip: str) -> bool:
    ip = client_ip.strip().lower()
    return ip in {"127.0.0.1", "::1", "localhost", "testclient"} or ip.startswith(
        "::ffff:127.0.0.1"
    )


def _has_forward_headers(request: Request) -> bool:
    return any(
        request.headers.get(name)
        for name in ("forwarded", "x-forwarded-for", "x-forwarded-proto", "x-forwarded-host")
    )


def _consume_admin_rate_limit(endpoint: str, client_ip: str) -> bool:
    now = time.monotonic()
    window = float(_admin_rate_window_sec())
    limit = int(_admin_rate_max())
    bucket_key = f"{endpoint}|{client_ip}"
    cutoff = now - window
    with _ADMIN_RATE_LOCK:
        bucket = _ADMIN_RATE_BUCKETS.setdefault(bucket_key, deque())
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()
        if len(bucket) >= limit:
            return False
        bucket.append(now)
    return True


def _audit_admin_access(
    *,
    request: Request,
    endpoint: str,
    action: str,
    reason: str,
    meta: dict[str, Any],
) -> None:
    try:
        db.insert_admin_audit_event(
            endpoint=endpoint,
            method=request.method,
            client_ip=_client_ip(request),
            action=action,
            reason=reason,
            meta=meta,
        )
    except Exception:  # noqa: BLE001
        # Never block the API on audit-log write failures.
        logger.warning("admin audit write failed", extra={"endpoint": endpoint})


def _enforce_admin_controls(request: Request, *, endpoint: str, meta: dict[str, Any]) -> None:
    client_ip = _client_ip(request)
    if not _consume_admin_rate_limit(endpoint, client_ip):
        _audit_admin_access(
            request=request,
            endpoint=endpoint,
            action="rate_limited",
            reason="too_many_requests",
            meta=meta,
        )
        raise HTTPException(status_code=429, detail="Rate limit exceeded for admin endpoint")

    expected_key = _admin_api_key()
    if expected_key:
        provided_key = request.headers.get("x-admin-key") or ""
        if not secrets.compare_digest(provided_key, expected_key):
            _audit_admin_access(
                request=request,
                endpoint=endpoint,
                action="deny",
                reason="invalid_admin_key",
                meta=meta,
            )
            raise HTTPException(status_code=401, detail="Admin authentication required")
        _audit_admin_access(
            request=request,
            endpoint=endpoint,
            action="allow",
            reason="admin_key",
            meta=meta,
        )
        return

    if not _is_loopback_ip(client_ip):
        _audit_admin_access(
            request=request,
            endpoint=endpoint,
            action="deny",
            reason="non_loopback_without_admin_key",
            meta=meta,
        )
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints are loopback-only unless CHATGUARD_ADMIN_API_KEY is set",
        )

    if _has_forward_headers(request):
        _audit_admin_access(
            request=request,
            endpoint=endpoint,
            action="deny",
            reason="forwarded_headers_without_admin_key",
            meta=meta,
        )
        raise HTTPException(
            status_code=403,
            detail="Admin endpoints require CHATGUARD_ADMIN_API_KEY behind proxy headers",
        )

    _audit_admin_access(
        request=request,
        endpoint=endpoint,
        action="allow",
        reason="loopback_dev_mode",
        meta=meta,
    )


def reset_admin_guard_state_for_tests() -> None:
    with _ADMIN_RATE_LOCK:
        _ADMIN_RATE_BUCKETS.clear()


def _enforce_data_controls(request: Request, *, endpoint: str) -> None:
    expected = _api_key()
    if expected:
        provided = (request.headers.get("x-api-key") or "").strip()
        if not secrets.compare_digest(provided, expected):
            raise HTTPException(status_code=401, detail=f"{endpoint}: API authentication required")
        return

    if _has_forward_headers(request):
        detail = (
            f"{endpoint}: loopback-only without CHATGUARD_API_KEY "
            "when proxy headers are present"
        )
        raise HTTPException(status_code=403, detail=detail)
    if not _is_loopback_ip(_client_ip(request)):
        detail = f"{endpoint}: loopback-only without CHATGUARD_API_KEY"
        raise HTTPException(status_code=403, detail=detail)


def _too_long(e: MessageTooLongError) -> HTTPException:
    return HTTPException(
        status_code=413,
        detail={"error": "Message too long", "length": e.length, "max_chars": e.max_chars},
    )


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/")
def root() -> dict[str, str]:
    return {"status": "ok", "healthz": "/healthz", "docs": "/docs"}


@app.post("/guard/check")
def guard_check(request: Request, req: MessageCheckRequest) -> dict[str, Any]:
    """Classify a draft message (compose-box keystroke/submit path)."""
    _enforce_data_controls(request, endpoint="/guard/check")
    try:
        ensure_within_limit(req.text)
    except MessageTooLongError as e:
        raise _too_long(e) from e

    payload = evaluate_or_block(req.text).to_dict()
    validate_instance(payload, "guard_result")
    return payload


@app.post("/chat/messages/check")
def chat_message_check(request: Request, req: MessageCheckRequest) -> dict[str, Any]:
    """Server-side send gate; blocked sends are logged by reason only."""
    _enforce_data_controls(request, endpoint="/chat/messages/check")
    words = [w["word"] for w in db.list_banned_words()]
    try:
        result = check_outgoing(req.text, banned_words=words)
    except EmptyMessageError as e:
        raise HTTPException(status_code=400, detail={"error": str(e)}) from e
    except MessageTooLongError as e:
        raise _too_long(e) from e

    payload = result.to_dict()
    validate_instance(payload, "guard_result")
    if isinstance(result, GuardBlocked):
        db.log_blocked_message(reason=result.reason, source="server")
        raise HTTPException(status_code=400, detail=payload)
    return payload


@app.get("/chat/disclaimer")
def chat_disclaimer(request: Request) -> dict[str, str]:
    _enforce_data_controls(request, endpoint="/chat/disclaimer")
    return {"disclaimer": CHAT_DISCLAIMER}


@app.get("/chat/terms")
def chat_terms(request: Request) -> dict[str, str]:
    _enforce_data_controls(request, endpoint="/chat/terms")
    return {"terms": TERMS_TEXT}


@app.post("/chat/log-blocked")
def chat_log_blocked(request: Request, req: BlockedLogRequest) -> dict[str, Any]:
    """Record a client-side block. Server-side blocks are logged by the send gate."""
    _enforce_data_controls(request, endpoint="/chat/log-blocked")
    reason = req.reason.strip() or "Unknown"
    db.log_blocked_message(reason=reason, source="client")
    return {"logged": True}


@app.get("/admin/blocked-messages")
def admin_blocked_messages(
    request: Request,
    limit: int = Query(default=100, ge=1, le=1000),
) -> dict[str, Any]:
    _enforce_admin_controls(request, endpoint="/admin/blocked-messages", meta={"limit": limit})
    items = db.list_blocked_messages(limit=limit)
    for item in items:
        validate_instance(item, "blocked_message")
    return {"blocked_messages": items, "counts_by_reason": db.count_blocked_by_reason()}


@app.get("/admin/banned-words")
def admin_list_banned_words(request: Request) -> dict[str, Any]:
    _enforce_admin_controls(request, endpoint="/admin/banned-words", meta={})
    return {"banned_words": db.list_banned_words()}


@app.post("/admin/banned-words", status_code=201)
def admin_add_banned_word(request: Request, req: BannedWordCreateRequest) -> dict[str, Any]:
    word = req.word.strip().lower()
    _enforce_admin_controls(request, endpoint="/admin/banned-words", meta={"action": "add"})
    if not word:
        raise HTTPException(status_code=400, detail="word must be a non-empty string")
    created = db.add_banned_word(word)
    if created is None:
        raise HTTPException(status_code=409, detail="Banned word already exists")
    validate_instance(created, "banned_word")
    return created


@app.delete("/admin/banned-words/{word_id}")
def admin_delete_banned_word(request: Request, word_id: int) -> dict[str, Any]:
    _enforce_admin_controls(
        request, endpoint="/admin/banned-words/{word_id}", meta={"word_id": word_id}
    )
    if not db.delete_banned_word(word_id):
        raise HTTPException(status_code=404, detail="Banned word not found")
    return {"deleted": True}
