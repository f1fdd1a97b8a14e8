"""Access tokens for Google APIs from the Cloud Run metadata server.

Tokens are valid for about an hour; they are cached for at most five minutes,
and never past the ``expires_in`` the metadata server reports, so a warm
instance hits the metadata server rarely.
"""

import time
from collections.abc import Awaitable, Callable

import httpx
from cachetools import TLRUCache

METADATA_TOKEN_URL = (
    "http://metadata.google.internal/computeMetadata/v1/instance/service-accounts/default/token"
)
_TOKEN_CACHE_KEY = "access_token"
# Seconds shaved off expires_in so a token is never used right at its expiry
EXPIRY_MARGIN_SECONDS = 30


class MetadataTokenProvider:
    """Fetches and caches the service account's OAuth access token."""

    def __init__(self, http: httpx.AsyncClient, ttl_seconds: int = 300) -> None:
        self._http = http
        self._ttl = ttl_seconds
        # Values are (token, lifetime_seconds); each entry expires on its own lifetime
        self._cache: TLRUCache = TLRUCache(maxsize=1, ttu=self._time_to_use, timer=time.monotonic)

    @staticmethod
    def _time_to_use(_key: str, value: tuple[str, float], now: float) -> float:
        return now + value[1]

    async def token(self) -> str:
        cached = self._cache.get(_TOKEN_CACHE_KEY)
        if cached is not None:
            return cached[0]

        response = await self._http.get(METADATA_TOKEN_URL, headers={"Metadata-Flavor": "Google"})
        response.raise_for_status()
        body = response.json()
        token = body["access_token"]

        lifetime = min(self._ttl, float(body.get("expires_in", self._ttl)) - EXPIRY_MARGIN_SECONDS)
        if lifetime > 0:
            self._cache[_TOKEN_CACHE_KEY] = (token, lifetime)
        return token

    async def auth_headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {await self.token()}"}

    def invalidate(self) -> None:
        """Drop the cached token, e.g. after a 401."""
        self._cache.clear()


async def send_authorized(
    tokens: MetadataTokenProvider,
    send: Callable[[dict[str, str]], Awaitable[httpx.Response]],
) -> httpx.Response:
    """Send a request with a bearer token, refetching the token once on a 401.

    ``send`` receives the auth headers and performs the actual call.
    """
    response = await send(await tokens.auth_headers())
    if response.status_code == 401:
        tokens.invalidate()
        response = await send(await tokens.auth_headers())
    return response
