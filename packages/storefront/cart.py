from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from packages.storefront.catalogue import FEATURED_PRODUCTS, Catalogue
from packages.storefront.errors import StoredStateParseError
from packages.storefront.storage import CART_KEY, SELECTED_COLORS_KEY, KeyValueStorage

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CartEntry:
    quantity: int
    color: str

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValueError(f"Cart entry quantity must be positive, got {self.quantity}")


CartState = dict[str, CartEntry]


def _coerce_quantity(value: object) -> int | None:
    # bool is an int subclass but never a stored quantity.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float) and value.is_integer() and value > 0:
        return int(value)
    return None


def _load_object(payload: str | None) -> dict:
    if not payload:
        return {}
    try:
        parsed = json.loads(payload)
    except (ValueError, RecursionError) as e:
        raise StoredStateParseError(f"Stored payload is not JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise StoredStateParseError(f"Stored payload is not an object: {type(parsed).__name__}")
    return parsed


def parse_stored_cart(payload: str | None, catalogue: Catalogue = FEATURED_PRODUCTS) -> CartState:
    """Normalize a persisted cart into strict entries.

    Accepts the legacy shape (item id -> bare quantity) and the current one
    (item id -> {"quantity", "color"}). Anything unreadable is treated as absent.
    """

    try:
        parsed = _load_object(payload)
    except StoredStateParseError as e:
        logger.debug("Ignoring stored cart: %s", e)
        return {}

    cart: CartState = {}
    for item_id, value in parsed.items():
        color: object = None
        if isinstance(value, dict):
            quantity = _coerce_quantity(value.get("quantity"))
            color = value.get("color")
        else:
            quantity = _coerce_quantity(value)

        if quantity is None:
            continue
        if not isinstance(color, str) or not color:
            color = catalogue.default_color(item_id)
        cart[item_id] = CartEntry(quantity=quantity, color=color)
    return cart


def parse_stored_colors(payload: str | None) -> dict[str, str]:
    try:
        parsed = _load_object(payload)
    except StoredStateParseError as e:
        logger.debug("Ignoring stored color selections: %s", e)
        return {}

    return {item_id: color for item_id, color in parsed.items() if isinstance(color, str)}


def serialize_cart(cart: CartState) -> str:
    return json.dumps(
        {
            item_id: {"quantity": entry.quantity, "color": entry.color}
            for item_id, entry in cart.items()
        }
    )


def serialize_colors(colors: dict[str, str]) -> str:
    return json.dumps(colors)


class CartStore:
    """Session cart plus per-item color selections, mirrored into key-value storage.

    Writes are held back until `rehydrate` has run so that an early mutation never
    overwrites what the previous session stored. Mutations made before rehydration win
    over stored values for the same item.
    """

    def __init__(self, storage: KeyValueStorage, catalogue: Catalogue = FEATURED_PRODUCTS) -> None:
        self._storage = storage
        self._catalogue = catalogue
        self._cart: CartState = {}
        self._selected_colors: dict[str, str] = catalogue.default_selected_colors()
        self._touched_items: set[str] = set()
        self._touched_colors: set[str] = set()
        self._hydrated = False

    @classmethod
    def open(cls, storage: KeyValueStorage, catalogue: Catalogue = FEATURED_PRODUCTS) -> CartStore:
        store = cls(storage, catalogue)
        store.rehydrate()
        return store

    @property
    def catalogue(self) -> Catalogue:
        return self._catalogue

    @property
    def hydrated(self) -> bool:
        return self._hydrated

    def rehydrate(self) -> None:
        stored_cart = parse_stored_cart(self._storage_get(CART_KEY), self._catalogue)
        stored_colors = parse_stored_colors(self._storage_get(SELECTED_COLORS_KEY))

        for item_id, color in stored_colors.items():
            if item_id not in self._touched_colors:
                self._selected_colors[item_id] = color

        for item_id, entry in stored_cart.items():
            if item_id in self._touched_items:
                continue
            self._cart[item_id] = entry
            # The color in the cart is the one the shopper actually added.
            if item_id not in self._touched_colors:
                self._selected_colors[item_id] = entry.color

        self._hydrated = True
        self._persist_cart()
        self._persist_colors()

    def increment(self, item_id: str, color: str | None = None) -> CartEntry:
        current = self._cart.get(item_id)
        if current is None:
            applied = color or self.selected_color(item_id)
            entry = CartEntry(quantity=1, color=applied)
        else:
            entry = CartEntry(quantity=current.quantity + 1, color=color or current.color)

        self._cart[item_id] = entry
        self._touched_items.add(item_id)
        self._persist_cart()
        return entry

    def decrement(self, item_id: str) -> CartEntry | None:
        current = self._cart.get(item_id)
        if current is None:
            return None

        self._touched_items.add(item_id)
        if current.quantity - 1 <= 0:
            del self._cart[item_id]
            entry = None
        else:
            entry = CartEntry(quantity=current.quantity - 1, color=current.color)
            self._cart[item_id] = entry

        self._persist_cart()
        return entry

    def select_color(self, item_id: str, color: str) -> None:
        selection_changed = self._selected_colors.get(item_id) != color
        current = self._cart.get(item_id)
        entry_changed = current is not None and current.color != color

        if not selection_changed and not entry_changed:
            return

        if selection_changed:
            self._selected_colors[item_id] = color
            self._touched_colors.add(item_id)
            self._persist_colors()

        if entry_changed:
            self._cart[item_id] = CartEntry(quantity=current.quantity, color=color)
            self._touched_items.add(item_id)
            self._persist_cart()

    def clear(self) -> None:
        """Empty the cart and drop its storage key. Color selections survive."""

        self._cart = {}
        self._touched_items.clear()
        try:
            self._storage.remove(CART_KEY)
        except Exception:
            logger.warning("Failed to remove stored cart", exc_info=True)

    def entries(self) -> CartState:
        return dict(self._cart)

    def get(self, item_id: str) -> CartEntry | None:
        return self._cart.get(item_id)

    def selected_color(self, item_id: str) -> str:
        return self._selected_colors.get(item_id) or self._catalogue.default_color(item_id)

    def selected_colors(self) -> dict[str, str]:
        return dict(self._selected_colors)

    def item_count(self) -> int:
        return sum(entry.quantity for entry in self._cart.values())

    def is_empty(self) -> bool:
        return not self._cart

    def _storage_get(self, key: str) -> str | None:
        try:
            return self._storage.get(key)
        except Exception:
            logger.warning("Failed to read %s from storage", key, exc_info=True)
            return None

    def _persist_cart(self) -> None:
        if not self._hydrated:
            return
        try:
            self._storage.set(CART_KEY, serialize_cart(self._cart))
        except Exception:
            logger.warning("Failed to persist cart", exc_info=True)

    def _persist_colors(self) -> None:
        if not self._hydrated:
            return
        try:
            self._storage.set(SELECTED_COLORS_KEY, serialize_colors(self._selected_colors))
        except Exception:
            logger.warning("Failed to persist color selections", exc_info=True)
