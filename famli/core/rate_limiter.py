import logging
import threading
import time
from typing import Callable, Dict, Tuple
from fastapi import HTTPException, Request, status
from famli.core.config import settings

logger = logging.getLogger(__name__)


class _ClientWindow:
    __slots__ = ("window_start", "requests", "blocked_until")

    def __init__(self, now: float):
        self.window_start = now
        self.requests = 0
        self.blocked_until = 0.0


class RateLimiter:
    """
    Janela fixa por identificador (normalmente o IP).

    Ao exceder o limite o cliente fica bloqueado por block_seconds.
    Entradas ociosas são removidas periodicamente.
    """

    CLEANUP_EVERY = 1000

    def __init__(
        self,
        requests: int,
        window_seconds: float,
        block_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.requests = requests
        self.window_seconds = window_seconds
        self.block_seconds = block_seconds
        self._clock = clock
        self._clients: Dict[str, _ClientWindow] = {}
        self._lock = threading.Lock()
        self._calls = 0

    def allow(self, identifier: str) -> Tuple[bool, float]:
        """
        Returns:
            (permitido, segundos até poder tentar de novo)
        """
        now = self._clock()
        with self._lock:
            self._calls += 1
            if self._calls % self.CLEANUP_EVERY == 0:
                self._cleanup(now)

            state = self._clients.get(identifier)
            if state is None:
                state = _ClientWindow(now)
                self._clients[identifier] = state

            if now < state.blocked_until:
                return False, state.blocked_until - now

            if now - state.window_start >= self.window_seconds:
                state.window_start = now
                state.requests = 0

            if state.requests >= self.requests:
                state.blocked_until = now + self.block_seconds
                return False, self.block_seconds

            state.requests += 1
            return True, 0.0

    def reset(self, identifier: str = None) -> None:
        with self._lock:
            if identifier is None:
                self._clients.clear()
            else:
                self._clients.pop(identifier, None)

    def _cleanup(self, now: float) -> None:
        stale_after = self.window_seconds + self.block_seconds
        for key in [
            key for key, state in self._clients.items()
            if now - state.window_start > stale_after and now >= state.blocked_until
        ]:
            del self._clients[key]


def get_client_ip(request: Request) -> str:
    """Primeiro IP de X-Forwarded-For (atrás de proxy) ou o IP da conexão."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


def rate_limit(limiter: RateLimiter):
    """Cria uma dependência FastAPI que aplica o limiter por IP."""

    async def dependency(request: Request) -> None:
        client_ip = get_client_ip(request)
        allowed, retry_after = limiter.allow(client_ip)
        if not allowed:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Muitas requisições. Tente novamente em instantes.",
                headers={"Retry-After": str(max(1, int(retry_after)))},
            )

    return dependency


api_limiter = RateLimiter(
    settings.API_RATE_LIMIT_REQUESTS,
    settings.API_RATE_LIMIT_WINDOW_SECONDS,
    settings.API_RATE_LIMIT_BLOCK_SECONDS,
)
webhook_limiter = RateLimiter(
    settings.WEBHOOK_RATE_LIMIT_REQUESTS,
    settings.WEBHOOK_RATE_LIMIT_WINDOW_SECONDS,
    settings.WEBHOOK_RATE_LIMIT_BLOCK_SECONDS,
)
