"""Rate limiting middleware for FastAPI.

Implements per-client rate limiting with configurable limits per endpoint
pattern. Clients are keyed by the authenticated user header when present,
otherwise by IP. Mutation-heavy endpoints (saved toggles, view tracking,
lease actions) get tighter limits, which also absorbs double-submits.
"""

import logging
import re
import time
from collections import defaultdict
from dataclasses import dataclass
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

logger = logging.getLogger(__name__)

USER_HEADER = "X-User-Id"


@dataclass
class RateLimitConfig:
    """Configuration for a rate limit rule.

    Attributes:
        requests: Maximum number of requests allowed in the window.
        window_seconds: Time window in seconds.
        path_pattern: Regex pattern to match request paths (None = default).
        methods: HTTP methods the rule applies to (None = all).
    """

    requests: int
    window_seconds: int
    path_pattern: Optional[str] = None
    methods: Optional[frozenset[str]] = None

    def __post_init__(self):
        self._compiled_pattern: Optional[re.Pattern] = None
        if self.path_pattern:
            self._compiled_pattern = re.compile(self.path_pattern)

    @property
    def key(self) -> str:
        methods = ",".join(sorted(self.methods)) if self.methods else "*"
        return f"{methods} {self.path_pattern or 'default'} {self.window_seconds}"

    def matches(self, method: str, path: str) -> bool:
        if self.methods is not None and method.upper() not in self.methods:
            return False
        if self._compiled_pattern is None:
            return True
        return self._compiled_pattern.match(path) is not None


@dataclass
class RateLimitEntry:
    """Tracks rate limit state for a client-rule combination."""

    count: int = 0
    window_start: float = 0.0


class RateLimitStore:
    """In-memory storage for rate limit tracking (single process)."""

    def __init__(self, cleanup_interval: int = 60):
        self._entries: dict[tuple[str, str], RateLimitEntry] = defaultdict(RateLimitEntry)
        self._last_cleanup = time.time()
        self._cleanup_interval = cleanup_interval

    def __len__(self) -> int:
        return len(self._entries)

    def _cleanup_expired(self, current_time: float, max_window: int):
        """Remove expired entries to prevent memory growth."""
        if current_time - self._last_cleanup < self._cleanup_interval:
            return

        expired_keys = [
            key for key, entry in self._entries.items()
            if current_time - entry.window_start > max_window
        ]
        for key in expired_keys:
            del self._entries[key]

        self._last_cleanup = current_time

    def check_and_increment(
        self, client_id: str, rule_key: str, limit: int, window: int
    ) -> tuple[bool, int, int]:
        """Check rate limit and increment counter.

        Returns:
            Tuple of (allowed, remaining, reset_time)
        """
        current_time = time.time()
        self._cleanup_expired(current_time, window * 2)

        entry = self._entries[(client_id, rule_key)]

        if current_time - entry.window_start >= window:
            entry.count = 0
            entry.window_start = current_time

        reset_time = int(entry.window_start + window)

        if entry.count >= limit:
            return False, 0, reset_time

        entry.count += 1
        return True, max(0, limit - entry.count), reset_time


_MUTATIONS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

DEFAULT_RATE_LIMITS = [
    # Saved toggles, lease actions and chat - strict, these are user clicks
    RateLimitConfig(requests=30, window_seconds=60, path_pattern=r"^/saved", methods=_MUTATIONS),
    RateLimitConfig(requests=30, window_seconds=60, path_pattern=r"^/leases", methods=_MUTATIONS),
    RateLimitConfig(requests=30, window_seconds=60, path_pattern=r"^/inquiries", methods=_MUTATIONS),
    # View tracking fires on every detail page
    RateLimitConfig(requests=60, window_seconds=60, path_pattern=r"^/recently-viewed", methods=_MUTATIONS),
    # Search is typed into
    RateLimitConfig(requests=60, window_seconds=60, path_pattern=r"^/properties/search"),
    # Default for all other endpoints - lenient
    RateLimitConfig(requests=240, window_seconds=60, path_pattern=None),
]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """ASGI middleware for rate limiting requests.

    Adds standard ``X-RateLimit-*`` headers and answers 429 once a client
    exceeds the first matching rule.
    """

    def __init__(
        self,
        app,
        configs: Optional[list[RateLimitConfig]] = None,
        store: Optional[RateLimitStore] = None,
    ):
        super().__init__(app)
        self.configs = configs if configs is not None else DEFAULT_RATE_LIMITS
        self.store = store if store is not None else RateLimitStore()

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request.

        Prefers the authenticated user, then X-Forwarded-For, then the
        direct client IP.
        """
        user_id = request.headers.get(USER_HEADER)
        if user_id:
            return f"user:{user_id.strip()}"

        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        if request.client:
            return request.client.host

        return "unknown"

    def _find_matching_config(self, method: str, path: str) -> RateLimitConfig:
        """Return the first matching patterned rule, else the default rule."""
        default_config = None

        for config in self.configs:
            if config.path_pattern is None and config.methods is None:
                default_config = config
            elif config.matches(method, path):
                return config

        return default_config or RateLimitConfig(requests=240, window_seconds=60)

    def _add_rate_limit_headers(
        self, response: Response, limit: int, remaining: int, reset: int
    ) -> Response:
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        response.headers["X-RateLimit-Reset"] = str(reset)
        return response

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path.startswith("/static") or path == "/health":
            return await call_next(request)

        client_id = self._get_client_id(request)
        config = self._find_matching_config(request.method, path)

        allowed, remaining, reset_time = self.store.check_and_increment(
            client_id=client_id,
            rule_key=config.key,
            limit=config.requests,
            window=config.window_seconds,
        )

        if not allowed:
            retry_after = max(0, reset_time - int(time.time()))
            logger.info(f"Rate limit exceeded for {client_id} on {request.method} {path}")
            response = JSONResponse(
                status_code=429,
                content={
                    "detail": "Rate limit exceeded. Please try again later.",
                    "retry_after": retry_after,
                },
            )
            response.headers["Retry-After"] = str(retry_after)
            return self._add_rate_limit_headers(
                response, config.requests, remaining, reset_time
            )

        response = await call_next(request)
        return self._add_rate_limit_headers(
            response, config.requests, remaining, reset_time
        )
