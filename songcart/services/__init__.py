# Services

from .apple_music import AppleMusicClient, AppleMusicTokenGenerator, format_song
from .tags import count_popular_tags, fetch_popular_tags

__all__ = [
    "AppleMusicClient",
    "AppleMusicTokenGenerator",
    "format_song",
    "count_popular_tags",
    "fetch_popular_tags",
]
