import json

import pytest

from songcart.database.carts import CartManager, CartRegistry
from songcart.database.storage import InMemoryStorage

from conftest import make_song


def assert_consistent(cart):
    assert cart.total_items == sum(item.quantity for item in cart.items)
    ids = [item.song.id for item in cart.items]
    assert len(ids) == len(set(ids))


def test_add_same_song_twice_merges(manager):
    song = make_song("s1")
    manager.add_to_cart(song)
    cart = manager.add_to_cart(song)

    assert len(cart.items) == 1
    assert cart.items[0].quantity == 2
    assert cart.total_items == 2


def test_distinct_songs_keep_insertion_order(manager):
    for song_id in ["a", "b", "a", "c", "b", "a"]:
        manager.add_to_cart(make_song(song_id))

    cart = manager.cart
    assert [item.id for item in cart.items] == ["a", "b", "c"]
    assert [item.quantity for item in cart.items] == [3, 2, 1]
    assert cart.total_items == 6
    assert_consistent(cart)


def test_add_updates_last_updated(manager):
    before = manager.cart.last_updated
    cart = manager.add_to_cart(make_song("s1"))
    assert cart.last_updated >= before


def test_remove_from_cart(manager):
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s2"))

    cart = manager.remove_from_cart("s1")

    assert [item.id for item in cart.items] == ["s2"]
    assert cart.total_items == 1
    assert not manager.is_in_cart("s1")


def test_remove_unknown_item_is_noop(manager):
    manager.add_to_cart(make_song("s1"))
    cart = manager.remove_from_cart("missing")
    assert cart.total_items == 1


def test_update_quantity(manager):
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s2"))

    cart = manager.update_quantity("s1", 5)

    assert manager.get_cart_item("s1").quantity == 5
    assert cart.total_items == 6
    assert_consistent(cart)


def test_update_quantity_zero_removes(manager):
    manager.add_to_cart(make_song("s1"))

    cart = manager.update_quantity("s1", 0)

    assert cart.items == []
    assert cart.total_items == 0
    assert manager.get_cart_item("s1") is None


def test_update_quantity_negative_removes(manager):
    manager.add_to_cart(make_song("s1"))
    manager.update_quantity("s1", -3)
    assert not manager.is_in_cart("s1")


def test_update_quantity_unknown_item_is_noop(manager):
    cart = manager.update_quantity("missing", 4)
    assert cart.items == []


def test_clear_cart(manager):
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s2"))

    cart = manager.clear_cart()

    assert cart.items == []
    assert cart.total_items == 0


def test_lookups_reflect_current_state(manager):
    assert not manager.is_in_cart("s1")
    assert manager.get_cart_item("s1") is None

    manager.add_to_cart(make_song("s1", name="First"))

    assert manager.is_in_cart("s1")
    item = manager.get_cart_item("s1")
    assert item.song.name == "First"
    assert item.quantity == 1


def test_returned_item_cannot_mutate_cart(manager):
    manager.add_to_cart(make_song("s1"))
    item = manager.get_cart_item("s1")
    item.quantity = 99
    assert manager.get_cart_item("s1").quantity == 1


def test_draft_round_trip(manager):
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s2"))
    saved_items = manager.cart.items

    draft = manager.save_cart_to_draft("Friday quiz")
    manager.clear_cart()
    cart = manager.load_draft_cart(draft.id)

    assert cart.items == saved_items
    assert cart.total_items == 3


def test_save_draft_keeps_live_cart(manager):
    manager.add_to_cart(make_song("s1"))
    manager.save_cart_to_draft("Keep")
    assert manager.cart.total_items == 1


def test_draft_is_not_affected_by_later_changes(manager):
    manager.add_to_cart(make_song("s1"))
    draft = manager.save_cart_to_draft("Snapshot")

    manager.update_quantity("s1", 7)
    manager.add_to_cart(make_song("s2"))

    stored = manager.get_draft(draft.id)
    assert [(item.id, item.quantity) for item in stored.items] == [("s1", 1)]


def test_drafts_most_recent_first(manager):
    first = manager.save_cart_to_draft("one")
    second = manager.save_cart_to_draft("two")

    drafts = manager.get_draft_carts()
    assert [d.id for d in drafts] == [second.id, first.id]


def test_save_draft_with_same_name_replaces(manager):
    manager.add_to_cart(make_song("s1"))
    old = manager.save_cart_to_draft("Weekly")
    manager.add_to_cart(make_song("s2"))
    new = manager.save_cart_to_draft("Weekly")

    drafts = manager.get_draft_carts()
    assert [d.id for d in drafts] == [new.id]
    assert new.id != old.id
    assert new.total_items == 2


def test_load_unknown_draft_returns_none(manager):
    manager.add_to_cart(make_song("s1"))
    assert manager.load_draft_cart("draft-missing") is None
    assert manager.cart.total_items == 1


def test_delete_draft(manager):
    draft = manager.save_cart_to_draft("Gone")
    assert manager.delete_draft(draft.id)
    assert manager.get_draft_carts() == []
    assert not manager.delete_draft(draft.id)


def test_state_survives_reload(storage):
    manager = CartManager(storage, "client-1")
    manager.add_to_cart(make_song("s1"))
    manager.add_to_cart(make_song("s1"))
    draft = manager.save_cart_to_draft("Saved")

    reloaded = CartManager(storage, "client-1")

    assert reloaded.cart.items == manager.cart.items
    assert reloaded.cart.total_items == 2
    assert [d.id for d in reloaded.get_draft_carts()] == [draft.id]


def test_clients_are_isolated(storage):
    registry = CartRegistry(storage)
    registry.get("alice").add_to_cart(make_song("s1"))

    assert registry.get("bob").cart.items == []
    assert registry.get("alice") is registry.get("alice")


def test_corrupt_cart_loads_as_empty(storage):
    storage.set("music-cart:client-1", "{not json")
    manager = CartManager(storage, "client-1")

    assert manager.cart.items == []
    assert manager.cart.total_items == 0

    manager.add_to_cart(make_song("s1"))
    assert manager.cart.total_items == 1


def test_invalid_cart_shape_loads_as_empty(storage):
    storage.set("music-cart:client-1", json.dumps({"items": [{"id": "x", "quantity": 0}]}))
    manager = CartManager(storage, "client-1")
    assert manager.cart.items == []


def test_corrupt_drafts_read_as_empty(storage):
    storage.set("music-cart-drafts:client-1", "[{]")
    manager = CartManager(storage, "client-1")

    assert manager.get_draft_carts() == []
    draft = manager.save_cart_to_draft("Fresh")
    assert [d.id for d in manager.get_draft_carts()] == [draft.id]


def test_stored_totals_are_recomputed(storage):
    song = make_song("s1").model_dump()
    stored = {
        "items": [
            {"id": "s1", "song": song, "added_at": "2024-01-01T00:00:00Z", "quantity": 2},
            {"id": "s1", "song": song, "added_at": "2024-01-01T00:00:00Z", "quantity": 1},
        ],
        "total_items": 42,
        "last_updated": "2024-01-01T00:00:00Z",
    }
    storage.set("music-cart:client-1", json.dumps(stored))

    cart = CartManager(storage, "client-1").cart

    assert len(cart.items) == 1
    assert cart.total_items == 3


def test_failed_write_keeps_previous_state():
    class FailingStorage(InMemoryStorage):
        fail = False

        def set(self, key, value):
            if self.fail:
                raise OSError("disk full")
            super().set(key, value)

    storage = FailingStorage()
    manager = CartManager(storage, "client-1")
    manager.add_to_cart(make_song("s1"))

    storage.fail = True
    with pytest.raises(OSError):
        manager.add_to_cart(make_song("s2"))

    assert [item.id for item in manager.cart.items] == ["s1"]


def test_draft_with_repeated_song_loads_merged(storage):
    manager = CartManager(storage, "client-1")
    manager.add_to_cart(make_song("s1"))
    draft = manager.save_cart_to_draft("Doubled")

    drafts = json.loads(storage.get("music-cart-drafts:client-1"))
    drafts[0]["items"].append(dict(drafts[0]["items"][0], id="stale-id", quantity=2))
    storage.set("music-cart-drafts:client-1", json.dumps(drafts))

    cart = manager.load_draft_cart(draft.id)

    assert_consistent(cart)
    assert [item.id for item in cart.items] == ["s1"]
    assert cart.total_items == 3

    cart = manager.remove_from_cart("s1")
    assert cart.items == []
    assert not manager.is_in_cart("s1")
