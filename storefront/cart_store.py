"""Cart and wishlist state for one shopper.

A ``CartStore`` is owned by whoever created it and handed by reference to the
code that needs it (checkout, payment verification, product pages). State is
only changed through the methods below; each mutation is followed by a full
write of the affected collection to the local storage.
"""
from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator, Optional

from pydantic import TypeAdapter, ValidationError

from .logger import get_logger
from .schemas import CartItem, WishlistItem, subtotal
from .storage import CART_KEY, WISHLIST_KEY, LocalStorage

logger = get_logger(__name__)

_items_adapter = TypeAdapter(list[CartItem])


def dump_items(items: list[CartItem]) -> str:
    return _items_adapter.dump_json(items, by_alias=True).decode("utf-8")


def load_items(raw: str) -> list[CartItem]:
    return _items_adapter.validate_json(raw)


class CartStore:
    def __init__(self, storage: LocalStorage):
        self._storage = storage
        self._cart: dict[str, CartItem] = self._rehydrate(CART_KEY)
        self._wishlist: dict[str, WishlistItem] = self._rehydrate(WISHLIST_KEY)

    # -- persistence ---------------------------------------------------

    def _rehydrate(self, key: str) -> dict[str, CartItem]:
        try:
            raw = self._storage.get_item(key)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s from storage: %s", key, e)
            return {}
        if not raw:
            return {}
        try:
            items = load_items(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("Discarding unreadable %s: %s", key, e)
            return {}
        out: dict[str, CartItem] = {}
        for item in items:
            out[item.id] = item
        return out

    def _save(self, key: str) -> None:
        items = self._cart if key == CART_KEY else self._wishlist
        try:
            self._storage.set_item(key, dump_items(list(items.values())))
        except Exception:
            logger.exception("Error saving %s to storage", key)

    @contextmanager
    def _saving(self, key: str) -> Iterator[None]:
        try:
            yield
        finally:
            self._save(key)

    # -- queries -------------------------------------------------------

    @property
    def cart_items(self) -> list[CartItem]:
        return [item.model_copy() for item in self._cart.values()]

    @property
    def wishlist(self) -> list[WishlistItem]:
        return [item.model_copy() for item in self._wishlist.values()]

    @property
    def cart_count(self) -> int:
        return sum(item.quantity for item in self._cart.values())

    @property
    def subtotal(self) -> float:
        return subtotal(self._cart.values())

    def get_cart_item(self, item_id: str) -> Optional[CartItem]:
        item = self._cart.get(item_id)
        return item.model_copy() if item else None

    def is_in_wishlist(self, item_id: str) -> bool:
        return item_id in self._wishlist

    # -- cart mutations ------------------------------------------------

    def add_to_cart(self, item: CartItem) -> bool:
        """Add one unit of ``item``. Returns False when nothing changed."""
        if not item.in_stock or item.stock <= 0:
            logger.info("Cannot add out-of-stock product %s to cart.", item.id)
            return False

        with self._saving(CART_KEY):
            existing = self._cart.get(item.id)
            if existing is not None:
                # Limit comes from the item being added, not the stored copy
                if existing.quantity < item.stock:
                    self._cart[item.id] = existing.model_copy(update={"quantity": existing.quantity + 1})
                    return True
                logger.info("Product %s already at stock limit (%d)", item.id, item.stock)
                return False
            self._cart[item.id] = item.model_copy(update={"quantity": 1})
            return True

    def remove_from_cart(self, item_id: str) -> None:
        with self._saving(CART_KEY):
            self._cart.pop(item_id, None)

    def decrease_quantity(self, item_id: str) -> None:
        with self._saving(CART_KEY):
            existing = self._cart.get(item_id)
            if existing is None:
                return
            if existing.quantity - 1 <= 0:
                del self._cart[item_id]
            else:
                self._cart[item_id] = existing.model_copy(update={"quantity": existing.quantity - 1})

    def clear_cart(self) -> None:
        with self._saving(CART_KEY):
            self._cart.clear()

    # -- wishlist mutations --------------------------------------------

    def add_to_wishlist(self, item: WishlistItem) -> bool:
        with self._saving(WISHLIST_KEY):
            if item.id in self._wishlist:
                return False
            self._wishlist[item.id] = item.model_copy(update={"quantity": 1})
            return True

    def remove_from_wishlist(self, item_id: str) -> None:
        with self._saving(WISHLIST_KEY):
            self._wishlist.pop(item_id, None)

    def clear_wishlist(self) -> None:
        with self._saving(WISHLIST_KEY):
            self._wishlist.clear()
