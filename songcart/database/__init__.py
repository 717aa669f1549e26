# Storage modules

from .storage import KeyValueStorage, InMemoryStorage, JSONFileStorage
from .carts import CartManager, CartRegistry

__all__ = [
    "KeyValueStorage",
    "InMemoryStorage",
    "JSONFileStorage",
    "CartManager",
    "CartRegistry",
]
