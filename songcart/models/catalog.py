"""Catalog models"""

from pydantic import BaseModel
from typing import Optional

from .cart import CartSong


class Song(BaseModel):
    """Song as returned by the catalog routes"""
    id: str
    name: str
    artist: str
    album: str
    year: str
    genre: str = "Unknown"
    preview_url: Optional[str] = None
    artwork: str = ""
    duration_ms: Optional[int] = None

    def to_cart_song(self) -> CartSong:
        return CartSong(
            id=self.id,
            name=self.name,
            artist=self.artist,
            album=self.album,
            artwork=self.artwork,
            genre=self.genre,
            year=self.year,
            preview_url=self.preview_url,
            duration=self.duration_ms,
        )


class SongSearchResponse(BaseModel):
    songs: list[Song]
    has_more: bool = False


class SongListResponse(BaseModel):
    songs: list[Song]


class PlaylistTracksResponse(BaseModel):
    songs: list[Song]
    total: int


class SuggestionsResponse(BaseModel):
    suggestions: list[str]
