"""Cart and draft storage per client"""

import uuid
import logging
import threading
from typing import Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from ..models.cart import CartItem, CartSong, CartState, SavedCart, utcnow
from .storage import KeyValueStorage, InMemoryStorage

logger = logging.getLogger(__name__)

CART_STORAGE_KEY = "music-cart"
DRAFT_CARTS_STORAGE_KEY = "music-cart-drafts"

_drafts_adapter = TypeAdapter(list[SavedCart])


def merge_items(items: Iterable[CartItem]) -> list[CartItem]:
    """One item per song id, summing quantities, in first-seen order"""
    merged: dict[str, CartItem] = {}
    for item in items:
        if item.song.id in merged:
            existing = merged[item.song.id]
            merged[item.song.id] = existing.model_copy(
                update={"quantity": existing.quantity + item.quantity}
            )
        else:
            merged[item.song.id] = item.model_copy(update={"id": item.song.id})
    return list(merged.values())


class CartManager:
    """
    A single client's cart plus its saved drafts.

    Every mutation writes the complete new state to storage before it
    becomes visible, so a failed write leaves the previous state intact.
    Unreadable stored data is treated as an empty cart.
    """

    def __init__(self, storage: KeyValueStorage, client_id: str = "anonymous"):
        self.storage = storage
        self.client_id = client_id
        self.cart_key = f"{CART_STORAGE_KEY}:{client_id}"
        self.drafts_key = f"{DRAFT_CARTS_STORAGE_KEY}:{client_id}"
        self._lock = threading.RLock()
        self._state = self._load_cart()
        self._index = {item.song.id: item for item in self._state.items}

    # ==================== Cart ====================

    @property
    def cart(self) -> CartState:
        """Snapshot of the current cart"""
        with self._lock:
            return self._state.model_copy(deep=True)

    def add_to_cart(self, song: CartSong) -> CartState:
        """Add a song, or bump its quantity if already present"""
        with self._lock:
            now = utcnow()
            if song.id in self._index:
                items = [
                    item.model_copy(update={"quantity": item.quantity + 1})
                    if item.song.id == song.id else item
                    for item in self._state.items
                ]
                logger.debug(f"Increased quantity of {song.id} for {self.client_id}")
            else:
                new_item = CartItem(id=song.id, song=song, added_at=now, quantity=1)
                items = [*self._state.items, new_item]
                logger.debug(f"Added {song.id} to cart of {self.client_id}")
            return self._commit(items, now)

    def remove_from_cart(self, item_id: str) -> CartState:
        """Remove an item; unknown ids are ignored"""
        with self._lock:
            if item_id not in self._index:
                return self.cart
            items = [item for item in self._state.items if item.id != item_id]
            return self._commit(items)

    def update_quantity(self, item_id: str, quantity: int) -> CartState:
        """Set an item's quantity, removing it when quantity <= 0"""
        with self._lock:
            if quantity <= 0:
                return self.remove_from_cart(item_id)
            if item_id not in self._index:
                return self.cart
            items = [
                item.model_copy(update={"quantity": quantity}) if item.id == item_id else item
                for item in self._state.items
            ]
            return self._commit(items)

    def clear_cart(self) -> CartState:
        """Remove every item"""
        with self._lock:
            return self._commit([])

    def is_in_cart(self, song_id: str) -> bool:
        with self._lock:
            return song_id in self._index

    def get_cart_item(self, song_id: str) -> Optional[CartItem]:
        with self._lock:
            item = self._index.get(song_id)
            return item.model_copy(deep=True) if item else None

    # ==================== Drafts ====================

    def save_cart_to_draft(self, name: str) -> SavedCart:
        """
        Snapshot the current items as a named draft.

        A draft with the same name is replaced. The live cart is untouched.
        """
        with self._lock:
            draft = SavedCart(
                id=f"draft-{uuid.uuid4().hex}",
                name=name,
                items=[item.model_copy(deep=True) for item in self._state.items],
                saved_at=utcnow(),
            )
            drafts = [d for d in self.get_draft_carts() if d.name != name]
            drafts.insert(0, draft)
            self._write_drafts(drafts)
            logger.info(f"Saved draft '{name}' ({draft.id}) for {self.client_id}")
            return draft

    def load_draft_cart(self, draft_id: str) -> Optional[CartState]:
        """Replace the live cart with a copy of a draft's items"""
        with self._lock:
            draft = self.get_draft(draft_id)
            if not draft:
                return None
            items = merge_items(item.model_copy(deep=True) for item in draft.items)
            logger.info(f"Loaded draft '{draft.name}' for {self.client_id}")
            return self._commit(items)

    def get_draft(self, draft_id: str) -> Optional[SavedCart]:
        return next((d for d in self.get_draft_carts() if d.id == draft_id), None)

    def get_draft_carts(self) -> list[SavedCart]:
        """All drafts, most recent first"""
        try:
            raw = self.storage.get(self.drafts_key)
            if not raw:
                return []
            drafts = _drafts_adapter.validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding unreadable drafts for {self.client_id}: {e}")
            return []
        return sorted(drafts, key=lambda d: d.saved_at, reverse=True)

    def delete_draft(self, draft_id: str) -> bool:
        """Delete a draft"""
        with self._lock:
            drafts = self.get_draft_carts()
            remaining = [d for d in drafts if d.id != draft_id]
            if len(remaining) == len(drafts):
                return False
            self._write_drafts(remaining)
            return True

    # ==================== Persistence ====================

    def _commit(self, items: list[CartItem], now=None) -> CartState:
        """Persist a new item list, then make it the live state"""
        state = CartState(
            items=items,
            total_items=sum(item.quantity for item in items),
            last_updated=now or utcnow(),
        )
        self.storage.set(self.cart_key, state.model_dump_json())
        self._state = state
        self._index = {item.song.id: item for item in items}
        return self.cart

    def _write_drafts(self, drafts: list[SavedCart]) -> None:
        self.storage.set(self.drafts_key, _drafts_adapter.dump_json(drafts).decode())

    def _load_cart(self) -> CartState:
        try:
            raw = self.storage.get(self.cart_key)
            if not raw:
                return CartState()
            state = CartState.model_validate_json(raw)
        except (ValidationError, UnicodeDecodeError) as e:
            logger.warning(f"Discarding unreadable cart for {self.client_id}: {e}")
            return CartState()

        items = merge_items(state.items)
        return CartState(
            items=items,
            total_items=sum(item.quantity for item in items),
            last_updated=state.last_updated,
        )


class CartRegistry:
    """Hands out one CartManager per client over shared storage"""

    def __init__(self, storage: Optional[KeyValueStorage] = None):
        self.storage = storage if storage is not None else InMemoryStorage()
        self.managers: dict[str, CartManager] = {}
        self._lock = threading.Lock()

    def get(self, client_id: str) -> CartManager:
        """Get or create the manager for a client"""
        with self._lock:
            manager = self.managers.get(client_id)
            if manager is None:
                manager = CartManager(self.storage, client_id)
                self.managers[client_id] = manager
            return manager

    def forget(self, client_id: str) -> bool:
        """Drop the cached manager; stored state is kept"""
        with self._lock:
            return self.managers.pop(client_id, None) is not None
