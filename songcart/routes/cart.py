"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..models.cart import (
    CartItem,
    CartSong,
    UpdateQuantityRequest,
    SaveDraftRequest,
    CartResponse,
    DraftResponse,
    DraftListResponse,
)
from ..database.carts import CartManager
from ..core.dependencies import get_cart_manager
from ..security.rate_limit import cart_write_limit

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
def get_cart(manager: CartManager = Depends(get_cart_manager)):
    """Get the client's cart"""
    return CartResponse(cart=manager.cart)


@router.delete("", response_model=CartResponse, dependencies=[Depends(cart_write_limit)])
def clear_cart(manager: CartManager = Depends(get_cart_manager)):
    """Clear all items from cart"""
    removed = manager.cart.total_items
    cart = manager.clear_cart()
    return CartResponse(cart=cart, message=f"{removed} items removed")


@router.post("/items", response_model=CartResponse, dependencies=[Depends(cart_write_limit)])
def add_to_cart(song: CartSong, manager: CartManager = Depends(get_cart_manager)):
    """Add a song to the cart"""
    cart = manager.add_to_cart(song)
    item = manager.get_cart_item(song.id)
    if item.quantity > 1:
        message = f"{song.name} quantity increased to {item.quantity}"
    else:
        message = f"Added {song.name} by {song.artist}"
    return CartResponse(cart=cart, message=message)


@router.get("/items/{song_id}", response_model=CartItem)
def get_cart_item(song_id: str, manager: CartManager = Depends(get_cart_manager)):
    """Get a cart item by song ID"""
    item = manager.get_cart_item(song_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not in cart")
    return item


@router.put("/items/{item_id}", response_model=CartResponse, dependencies=[Depends(cart_write_limit)])
def update_cart_item(
    item_id: str,
    request: UpdateQuantityRequest,
    manager: CartManager = Depends(get_cart_manager),
):
    """Update item quantity; zero or less removes the item"""
    if not manager.is_in_cart(item_id):
        raise HTTPException(status_code=404, detail="Item not in cart")

    cart = manager.update_quantity(item_id, request.quantity)
    message = "Cart updated" if request.quantity > 0 else "Item removed"
    return CartResponse(cart=cart, message=message)


@router.delete("/items/{item_id}", response_model=CartResponse, dependencies=[Depends(cart_write_limit)])
def remove_from_cart(item_id: str, manager: CartManager = Depends(get_cart_manager)):
    """Remove an item from the cart"""
    cart = manager.remove_from_cart(item_id)
    return CartResponse(cart=cart, message="Item removed")


# ==================== Drafts ====================

@router.get("/drafts", response_model=DraftListResponse)
def list_drafts(manager: CartManager = Depends(get_cart_manager)):
    """List saved drafts, most recent first"""
    return DraftListResponse(drafts=manager.get_draft_carts())


@router.post("/drafts", response_model=DraftResponse, dependencies=[Depends(cart_write_limit)])
def save_draft(request: SaveDraftRequest, manager: CartManager = Depends(get_cart_manager)):
    """Save the current cart as a named draft"""
    draft = manager.save_cart_to_draft(request.name)
    return DraftResponse(draft=draft, message=f'Saved as "{draft.name}"')


@router.post("/drafts/{draft_id}/load", response_model=CartResponse, dependencies=[Depends(cart_write_limit)])
def load_draft(draft_id: str, manager: CartManager = Depends(get_cart_manager)):
    """Replace the cart with a saved draft"""
    cart = manager.load_draft_cart(draft_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Draft not found")
    return CartResponse(cart=cart, message="Cart loaded")


@router.delete("/drafts/{draft_id}", dependencies=[Depends(cart_write_limit)])
def delete_draft(draft_id: str, manager: CartManager = Depends(get_cart_manager)):
    """Delete a saved draft"""
    if manager.delete_draft(draft_id):
        return {"message": "Draft deleted"}
    raise HTTPException(status_code=404, detail="Draft not found")
