from __future__ import annotations

import secrets
import threading
import time
from typing import Dict, Tuple

from flask import current_app, request, session

from app.errors import ValidationError


CSRF_SESSION_KEY = "_csrf_token"
CSRF_FORM_FIELD = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"
_SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}
_FORM_CONTENT_TYPES = {"application/x-www-form-urlencoded", "multipart/form-data"}
_CSRF_EXEMPT_PATHS = {"/api/auth/login", "/api/auth/register"}


def csrf_token() -> str:
    token = str(session.get(CSRF_SESSION_KEY) or "").strip()
    if token:
        return token
    token = secrets.token_urlsafe(24)
    session[CSRF_SESSION_KEY] = token
    return token


def validate_csrf_token(token: str | None) -> bool:
    if not bool(current_app.config.get("CSRF_ENABLED", True)):
        return True
    expected = str(session.get(CSRF_SESSION_KEY) or "").strip()
    provided = str(token or "").strip()
    if not expected or not provided:
        return False
    return secrets.compare_digest(expected, provided)


def enforce_form_csrf() -> None:
    """Form posts must echo the session token; JSON bodies are exempt."""
    if request.method in _SAFE_METHODS:
        return
    if request.path in _CSRF_EXEMPT_PATHS:
        return
    if not bool(current_app.config.get("CSRF_ENABLED", True)):
        return
    content_type = str(request.mimetype or "").strip().lower()
    if content_type not in _FORM_CONTENT_TYPES:
        return
    provided = request.form.get(CSRF_FORM_FIELD) or request.headers.get(CSRF_HEADER)
    if validate_csrf_token(provided):
        return
    raise ValidationError(
        code="csrf_invalid",
        message_key="csrf_invalid",
        http_status=400,
        critical=False,
    )


class SimpleRateLimiter:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: Dict[str, Tuple[float, int]] = {}

    def allow(self, key: str, *, limit: int, window_seconds: int) -> tuple[bool, int]:
        now = time.monotonic()
        with self._lock:
            start, count = self._entries.get(key, (now, 0))
            if now - start >= window_seconds:
                start = now
                count = 0
            count += 1
            self._entries[key] = (start, count)
            if len(self._entries) > 10_000:
                cutoff = now - (window_seconds * 2)
                self._entries = {
                    cached_key: value
                    for cached_key, value in self._entries.items()
                    if value[0] >= cutoff
                }
            retry_after = max(0, int(window_seconds - (now - start)))
            return count <= limit, retry_after

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


_RATE_LIMITER = SimpleRateLimiter()

# Per-endpoint buckets; never looser than RATE_LIMIT_MAX_REQUESTS.
_STRICT_BUCKETS = {
    ("POST", "/api/cotacoes"): ("quote", "RATE_LIMIT_QUOTE_MAX_REQUESTS", 30),
    ("POST", "/api/quotes"): ("quote", "RATE_LIMIT_QUOTE_MAX_REQUESTS", 30),
    ("POST", "/api/auth/login"): ("login", "RATE_LIMIT_LOGIN_MAX_REQUESTS", 10),
}


def _rate_limit_bucket() -> tuple[str, str, int]:
    """Return (bucket name, limiter key suffix, max requests) for the current request."""
    config = current_app.config
    default_limit = max(1, int(config.get("RATE_LIMIT_MAX_REQUESTS", 300) or 300))
    strict = _STRICT_BUCKETS.get((request.method, request.path))
    if strict is None:
        route = request.url_rule.rule if request.url_rule else request.path
        return "api", f"{request.method}|{route}", default_limit
    bucket, config_key, fallback = strict
    return bucket, bucket, min(default_limit, max(1, int(config.get(config_key, fallback) or fallback)))


def _rate_limit_key(suffix: str) -> str:
    user = str(session.get("user_email") or "").strip().lower() or "anon"
    ip = str(request.remote_addr or "").strip() or "unknown"
    return f"{ip}|{user}|{suffix}"


def enforce_rate_limit() -> None:
    if not bool(current_app.config.get("RATE_LIMIT_ENABLED", True)):
        return
    if request.method == "OPTIONS":
        return

    window_seconds = max(1, int(current_app.config.get("RATE_LIMIT_WINDOW_SECONDS", 60) or 60))
    bucket, suffix, max_requests = _rate_limit_bucket()
    allowed, retry_after = _RATE_LIMITER.allow(
        _rate_limit_key(suffix),
        limit=max_requests,
        window_seconds=window_seconds,
    )
    if allowed:
        return

    raise ValidationError(
        code="rate_limit_exceeded",
        message_key="rate_limit_exceeded",
        http_status=429,
        critical=False,
        payload={"retry_after": retry_after, "bucket": bucket},
    )


def apply_security_headers(response):
    if not bool(current_app.config.get("SECURITY_HEADERS_ENABLED", True)):
        return response
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    response.headers.setdefault(
        "Permissions-Policy",
        "camera=(), geolocation=(), microphone=()",
    )
    response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Content-Security-Policy", "default-src 'none'; frame-ancestors 'none'")
    response.headers.setdefault("Cache-Control", "no-store")
    if request.is_secure:
        response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


def reset_rate_limiter_for_tests() -> None:
    _RATE_LIMITER.reset()
