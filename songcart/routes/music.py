"""Music catalog routes"""

from typing import Optional
from fastapi import APIRouter, Depends, Query

from ..core.dependencies import get_music_client
from ..core.errors import ConfigurationError
from ..models.catalog import (
    SongSearchResponse,
    SongListResponse,
    PlaylistTracksResponse,
    SuggestionsResponse,
)
from ..services.apple_music import AppleMusicClient

router = APIRouter(prefix="/api/music", tags=["Music"])


def configured_client(client: AppleMusicClient = Depends(get_music_client)) -> AppleMusicClient:
    """Reject catalog calls early when credentials are missing"""
    if not client.configured:
        raise ConfigurationError("Apple Music API credentials not configured")
    return client


@router.get("/search", response_model=SongSearchResponse)
async def search_songs(
    term: str = Query(..., min_length=1),
    limit: int = Query(25, ge=1, le=25),
    offset: int = Query(0, ge=0),
    client: AppleMusicClient = Depends(configured_client),
):
    """Search the catalog for songs"""
    songs, has_more = await client.search(term, limit=limit, offset=offset)
    return SongSearchResponse(songs=songs, has_more=has_more)


@router.get("/charts", response_model=SongListResponse)
async def top_charts(
    genre: Optional[str] = None,
    storefront: Optional[str] = None,
    limit: int = Query(100, ge=1, le=200),
    client: AppleMusicClient = Depends(configured_client),
):
    """Top song chart"""
    songs = await client.get_top_charts(genre=genre, limit=limit, storefront=storefront)
    return SongListResponse(songs=songs)


@router.get("/playlists/{playlist_id}/tracks", response_model=PlaylistTracksResponse)
async def playlist_tracks(
    playlist_id: str,
    limit: int = Query(100, ge=1, le=300),
    offset: int = Query(0, ge=0),
    client: AppleMusicClient = Depends(configured_client),
):
    """Tracks of a catalog playlist"""
    songs = await client.get_playlist_tracks(playlist_id, limit=limit, offset=offset)
    return PlaylistTracksResponse(songs=songs, total=len(songs))


@router.get("/suggestions", response_model=SuggestionsResponse)
async def search_suggestions(
    term: str = Query(..., min_length=1),
    client: AppleMusicClient = Depends(configured_client),
):
    """Search term suggestions"""
    return SuggestionsResponse(suggestions=await client.get_search_suggestions(term))
