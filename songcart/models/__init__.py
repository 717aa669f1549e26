# SongCart Models

from .cart import (
    CartSong,
    CartItem,
    CartState,
    SavedCart,
    UpdateQuantityRequest,
    SaveDraftRequest,
    CartResponse,
    DraftResponse,
    DraftListResponse,
)
from .catalog import (
    Song,
    SongSearchResponse,
    SongListResponse,
    PlaylistTracksResponse,
    SuggestionsResponse,
)
from .tags import PopularTag, PopularTagsResponse

__all__ = [
    "CartSong",
    "CartItem",
    "CartState",
    "SavedCart",
    "UpdateQuantityRequest",
    "SaveDraftRequest",
    "CartResponse",
    "DraftResponse",
    "DraftListResponse",
    "Song",
    "SongSearchResponse",
    "SongListResponse",
    "PlaylistTracksResponse",
    "SuggestionsResponse",
    "PopularTag",
    "PopularTagsResponse",
]
