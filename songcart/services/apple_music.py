"""
Apple Music API Client

HTTP client for the Apple Music catalog. Signs a developer token for
every request, retries transient failures and reshapes catalog songs into
the local Song model.
"""

import time
import logging
from typing import Any, Callable, Optional

import httpx
import jwt

from ..core.errors import ConfigurationError, handle_error
from ..core.retry import RetryConfig, with_retry
from ..models.catalog import Song

logger = logging.getLogger(__name__)

APPLE_MUSIC_API_BASE = "https://api.music.apple.com/v1"
TOKEN_EXPIRATION_SECONDS = 15777000  # Apple's maximum, ~6 months
TOKEN_REFRESH_BUFFER_SECONDS = 3600
ARTWORK_SIZE = "300"

GENRES = {
    "rock": "21",
    "pop": "14",
    "hiphop": "18",
    "country": "6",
    "electronic": "7",
    "rnb": "15",
    "jazz": "11",
    "classical": "5",
    "alternative": "20",
    "latin": "12",
}


class AppleMusicTokenGenerator:
    """Signs and caches ES256 developer tokens"""

    def __init__(
        self,
        team_id: Optional[str],
        key_id: Optional[str],
        private_key: Optional[str],
        ttl_seconds: int = TOKEN_EXPIRATION_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.team_id = team_id
        self.key_id = key_id
        self._private_key = private_key
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._token: Optional[str] = None
        self._refresh_at: float = 0

    @property
    def configured(self) -> bool:
        return bool(self.team_id and self.key_id and self._private_key)

    def get_token(self) -> str:
        """Return a cached token, signing a new one when close to expiry"""
        if not self.configured:
            raise ConfigurationError(
                "Apple Music API credentials not configured. "
                "Set APPLE_TEAM_ID, APPLE_KEY_ID and APPLE_PRIVATE_KEY."
            )

        now = int(self._clock())
        if self._token and now < self._refresh_at:
            return self._token

        expiry = now + self.ttl_seconds
        payload = {"iss": self.team_id, "iat": now, "exp": expiry}

        try:
            token = jwt.encode(
                payload,
                self._private_key,
                algorithm="ES256",
                headers={"kid": self.key_id},
            )
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            logger.error(f"Failed to generate Apple Music token: {e}")
            raise ConfigurationError("Failed to generate Apple Music authentication token") from e

        self._token = token
        self._refresh_at = expiry - TOKEN_REFRESH_BUFFER_SECONDS
        logger.debug(f"Generated Apple Music token for team {self.team_id}")
        return token

    def clear_token(self) -> None:
        self._token = None
        self._refresh_at = 0


def format_song(raw: dict) -> Song:
    """Convert an Apple Music song resource into a Song"""
    attributes = raw.get("attributes", {})
    release_date = attributes.get("releaseDate") or ""
    genres = attributes.get("genreNames") or []
    previews = attributes.get("previews") or []
    artwork_url = (attributes.get("artwork") or {}).get("url", "")

    return Song(
        id=str(raw["id"]),
        name=attributes.get("name", ""),
        artist=attributes.get("artistName", ""),
        album=attributes.get("albumName", ""),
        year=release_date[:4],
        genre=genres[0] if genres else "Unknown",
        preview_url=previews[0].get("url") if previews else None,
        artwork=artwork_url.replace("{w}", ARTWORK_SIZE).replace("{h}", ARTWORK_SIZE),
        duration_ms=attributes.get("durationInMillis"),
    )


class AppleMusicClient:
    """
    Client for the Apple Music catalog API.

    Usage:
        client = AppleMusicClient(token_generator=AppleMusicTokenGenerator(...))
        songs, has_more = await client.search("daft punk")
        await client.close()
    """

    def __init__(
        self,
        token_generator: AppleMusicTokenGenerator,
        base_url: str = APPLE_MUSIC_API_BASE,
        storefront: str = "us",
        retry_config: Optional[RetryConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Apple Music client.

        Args:
            token_generator: Developer token source
            base_url: Base URL of the catalog API
            storefront: Default storefront (country code)
            retry_config: Retry policy for every request
            http_client: Pre-built client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.storefront = storefront
        self.tokens = token_generator
        self.retry_config = retry_config or RetryConfig()
        self._http_client = http_client or httpx.AsyncClient(timeout=30.0)

    @property
    def configured(self) -> bool:
        return self.tokens.configured

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    async def _get(self, path: str, params: Optional[dict] = None) -> dict[str, Any]:
        """GET a catalog path with auth and retries"""
        url = f"{self.base_url}{path}"

        async def attempt() -> dict[str, Any]:
            headers = {
                "Authorization": f"Bearer {self.tokens.get_token()}",
                "Accept": "application/json",
            }
            try:
                response = await self._http_client.get(url, params=params, headers=headers)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"Request failed: {e.response.status_code} - {e.response.text}")
                if e.response.status_code == 401:
                    self.tokens.clear_token()
                raise handle_error(e) from e
            except httpx.TransportError as e:
                logger.error(f"Request to {url} failed: {e}")
                raise handle_error(e) from e
            return response.json()

        return await with_retry(attempt, self.retry_config)

    # ==================== Catalog APIs ====================

    async def search(self, term: str, limit: int = 25, offset: int = 0) -> tuple[list[Song], bool]:
        """Search songs; returns the page and whether more results exist"""
        data = await self._get(
            f"/catalog/{self.storefront}/search",
            params={"term": term, "types": "songs", "limit": limit, "offset": offset},
        )
        songs = data.get("results", {}).get("songs") or {}
        return [format_song(s) for s in songs.get("data", [])], bool(songs.get("next"))

    async def get_top_charts(
        self,
        genre: Optional[str] = None,
        limit: int = 25,
        storefront: Optional[str] = None,
    ) -> list[Song]:
        """Top song chart, optionally for one genre (name or Apple genre id)"""
        params: dict[str, Any] = {"types": "songs", "limit": limit}
        if genre:
            params["genre"] = GENRES.get(genre.lower(), genre)

        data = await self._get(f"/catalog/{storefront or self.storefront}/charts", params=params)
        charts = data.get("results", {}).get("songs") or []
        if not charts:
            return []
        return [format_song(s) for s in charts[0].get("data", [])]

    async def get_playlist_tracks(
        self,
        playlist_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Song]:
        """Tracks of a catalog playlist"""
        data = await self._get(
            f"/catalog/{self.storefront}/playlists/{playlist_id}/tracks",
            params={"limit": limit, "offset": offset},
        )
        return [
            format_song(track)
            for track in data.get("data", [])
            if track.get("type", "songs") == "songs"
        ]

    async def get_search_suggestions(self, term: str) -> list[str]:
        """Search term completions"""
        data = await self._get(
            f"/catalog/{self.storefront}/search/suggestions",
            params={"term": term, "kinds": "terms", "limit": 10},
        )
        suggestions = data.get("results", {}).get("suggestions", [])
        return [s["searchTerm"] for s in suggestions if s.get("kind") == "terms" and s.get("searchTerm")]


def build_client(settings, http_client: Optional[httpx.AsyncClient] = None) -> AppleMusicClient:
    """Create a client from application settings"""
    tokens = AppleMusicTokenGenerator(
        team_id=settings.apple_team_id,
        key_id=settings.apple_key_id,
        private_key=settings.get_private_key(),
        ttl_seconds=settings.apple_token_ttl_seconds,
    )
    retry_config = RetryConfig(
        max_attempts=settings.retry_max_attempts,
        initial_delay=settings.retry_initial_delay,
        use_backoff=settings.retry_use_backoff,
    )
    return AppleMusicClient(
        token_generator=tokens,
        base_url=settings.apple_music_base_url,
        storefront=settings.apple_music_storefront,
        retry_config=retry_config,
        http_client=http_client,
    )
