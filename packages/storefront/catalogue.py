from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

FALLBACK_COLOR = "#f5f5f5"


@dataclass(frozen=True, slots=True)
class CatalogueItem:
    id: str
    name: str
    list_price: str
    colors: tuple[str, ...]
    discounted_price: str | None = None
    primary_image: str = ""
    secondary_image: str = ""
    badge: str | None = None

    def __post_init__(self) -> None:
        if not self.colors:
            raise ValueError(f"Catalogue item {self.id!r} must offer at least one color")

    @property
    def default_color(self) -> str:
        return self.colors[0]

    @property
    def effective_price(self) -> str:
        return self.discounted_price if self.discounted_price is not None else self.list_price


class Catalogue:
    """Static, ordered product list. Iteration order is display order."""

    def __init__(self, items: list[CatalogueItem] | tuple[CatalogueItem, ...]) -> None:
        self._items = tuple(items)
        self._by_id = {item.id: item for item in self._items}
        if len(self._by_id) != len(self._items):
            raise ValueError("Catalogue item ids must be unique")

    def __iter__(self) -> Iterator[CatalogueItem]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._by_id

    def get(self, item_id: str) -> CatalogueItem | None:
        return self._by_id.get(item_id)

    def default_color(self, item_id: str) -> str:
        item = self._by_id.get(item_id)
        return item.default_color if item is not None else FALLBACK_COLOR

    def default_selected_colors(self) -> dict[str, str]:
        return {item.id: item.default_color for item in self._items}


def format_color_label(value: str | None) -> str:
    if not value:
        return ""
    if value.startswith("#"):
        return value.upper()
    return value[0].upper() + value[1:]


FEATURED_PRODUCTS = Catalogue(
    [
        CatalogueItem(
            id="grip",
            name="Gym Grips",
            list_price="$12.99",
            discounted_price="$6.99",
            primary_image="/grip-01.jpg",
            secondary_image="/grip-02.jpg",
            colors=("gray", "black"),
        ),
        CatalogueItem(
            id="light",
            name="Undercontrol Gym Light",
            list_price="$20.99",
            discounted_price="$14.99",
            primary_image="/light-01.jpg",
            secondary_image="/light-02.png",
            badge="new",
            colors=("black",),
        ),
    ]
)
