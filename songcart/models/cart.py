"""Cart models"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CartSong(BaseModel):
    """Song snapshot stored in a cart"""
    id: str
    name: str
    artist: str
    album: str = ""
    artwork: str = ""
    genre: str = "Unknown"
    year: str = ""
    preview_url: Optional[str] = None
    duration: Optional[int] = None  # milliseconds

    class Config:
        frozen = True


class CartItem(BaseModel):
    """Song in a cart, one per song id"""
    id: str
    song: CartSong
    added_at: datetime
    quantity: int = Field(default=1, ge=1)


class CartState(BaseModel):
    """A client's live cart"""
    items: list[CartItem] = []
    total_items: int = 0
    last_updated: datetime = Field(default_factory=utcnow)


class SavedCart(BaseModel):
    """Named snapshot of a cart's items"""
    id: str
    name: str
    items: list[CartItem] = []
    saved_at: datetime

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)


class UpdateQuantityRequest(BaseModel):
    """Request to set an item's quantity (0 or less removes it)"""
    quantity: int


class SaveDraftRequest(BaseModel):
    """Request to save the cart as a named draft"""
    name: str = Field(max_length=100)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Draft name must not be empty")
        return value


class CartResponse(BaseModel):
    """Cart API response"""
    cart: CartState
    message: Optional[str] = None


class DraftResponse(BaseModel):
    """Draft API response"""
    draft: SavedCart
    message: Optional[str] = None


class DraftListResponse(BaseModel):
    drafts: list[SavedCart]
