from __future__ import annotations

import json
import random

import pytest
from packages.storefront.cart import (
    CartEntry,
    CartStore,
    parse_stored_cart,
    parse_stored_colors,
    serialize_cart,
)
from packages.storefront.catalogue import FALLBACK_COLOR
from packages.storefront.storage import CART_KEY, SELECTED_COLORS_KEY, InMemoryStorage


class _RecordingStorage(InMemoryStorage):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        super().__init__(initial)
        self.writes: list[tuple[str, str]] = []
        self.removals: list[str] = []

    def set(self, key: str, value: str) -> None:
        self.writes.append((key, value))
        super().set(key, value)

    def remove(self, key: str) -> None:
        self.removals.append(key)
        super().remove(key)


class _BrokenStorage(InMemoryStorage):
    def set(self, key: str, value: str) -> None:
        raise OSError("quota exceeded")


def test_increment_inserts_with_default_color_then_counts_up() -> None:
    cart = CartStore.open(InMemoryStorage())

    cart.increment("grip")
    cart.increment("grip")

    assert cart.entries() == {"grip": CartEntry(quantity=2, color="gray")}
    assert cart.item_count() == 2


def test_increment_uses_selected_color_for_new_entries() -> None:
    cart = CartStore.open(InMemoryStorage())
    cart.select_color("grip", "black")

    entry = cart.increment("grip")

    assert entry == CartEntry(quantity=1, color="black")


def test_increment_keeps_color_unless_given() -> None:
    cart = CartStore.open(InMemoryStorage())
    cart.increment("grip", "black")

    assert cart.increment("grip") == CartEntry(quantity=2, color="black")
    assert cart.increment("grip", "gray") == CartEntry(quantity=3, color="gray")


def test_decrement_removes_entry_instead_of_storing_zero() -> None:
    storage = InMemoryStorage()
    cart = CartStore.open(storage)
    cart.increment("light")

    assert cart.decrement("light") is None

    assert cart.get("light") is None
    assert cart.is_empty()
    assert json.loads(storage.get(CART_KEY)) == {}


def test_decrement_absent_item_is_a_noop_without_write() -> None:
    storage = _RecordingStorage()
    cart = CartStore.open(storage)
    writes_before = len(storage.writes)

    cart.decrement("grip")

    assert cart.entries() == {}
    assert len(storage.writes) == writes_before


def test_random_sequences_never_store_non_positive_quantities() -> None:
    rng = random.Random(7)
    cart = CartStore.open(InMemoryStorage())
    expected: dict[str, int] = {}

    for _ in range(500):
        item_id = rng.choice(["grip", "light", "ghost"])
        if rng.random() < 0.5:
            cart.increment(item_id)
            expected[item_id] = expected.get(item_id, 0) + 1
        else:
            cart.decrement(item_id)
            if item_id in expected:
                expected[item_id] -= 1
                if expected[item_id] == 0:
                    del expected[item_id]

        entries = cart.entries()
        assert all(entry.quantity > 0 for entry in entries.values())
        assert {k: v.quantity for k, v in entries.items()} == expected


def test_select_color_same_value_twice_writes_once() -> None:
    storage = _RecordingStorage()
    cart = CartStore.open(storage)
    writes_before = len(storage.writes)

    cart.select_color("grip", "black")
    after_first = len(storage.writes)
    cart.select_color("grip", "black")

    assert after_first > writes_before
    assert len(storage.writes) == after_first


def test_select_color_updates_cart_entry_only_when_present() -> None:
    storage = _RecordingStorage()
    cart = CartStore.open(storage)

    cart.select_color("grip", "black")
    assert cart.get("grip") is None
    assert cart.selected_color("grip") == "black"
    assert [key for key, _ in storage.writes[-1:]] == [SELECTED_COLORS_KEY]

    cart.increment("light")
    cart.increment("grip", "gray")
    cart.select_color("grip", "black")

    assert cart.get("grip") == CartEntry(quantity=1, color="black")
    assert json.loads(storage.get(CART_KEY))["grip"] == {"quantity": 1, "color": "black"}


def test_rehydrate_legacy_bare_quantity_uses_default_color() -> None:
    cart = CartStore.open(InMemoryStorage({CART_KEY: json.dumps({"grip": 3})}))

    assert cart.entries() == {"grip": CartEntry(quantity=3, color="gray")}


def test_parse_stored_cart_drops_unreadable_entries() -> None:
    payload = json.dumps(
        {
            "grip": 0,
            "light": -2,
            "a": "3",
            "b": True,
            "c": {"quantity": "2"},
            "d": {"quantity": 2.5},
            "e": None,
            "f": {"quantity": 2, "color": 5},
            "g": 2.0,
        }
    )

    cart = parse_stored_cart(payload)

    assert cart == {
        "f": CartEntry(quantity=2, color=FALLBACK_COLOR),
        "g": CartEntry(quantity=2, color=FALLBACK_COLOR),
    }


@pytest.mark.parametrize(
    "payload", [None, "", "{not json", "[1, 2]", "42", "null", "[" * 200000]
)
def test_malformed_payloads_read_as_empty(payload: str | None) -> None:
    assert parse_stored_cart(payload) == {}
    assert parse_stored_colors(payload) == {}


def test_rehydrate_malformed_storage_yields_empty_state() -> None:
    storage = InMemoryStorage({CART_KEY: "{oops", SELECTED_COLORS_KEY: "[]"})

    cart = CartStore.open(storage)

    assert cart.entries() == {}
    assert cart.selected_color("grip") == "gray"
    assert json.loads(storage.get(CART_KEY)) == {}


def test_rehydrate_cart_color_wins_over_stored_selection() -> None:
    storage = InMemoryStorage(
        {
            CART_KEY: json.dumps({"grip": {"quantity": 1, "color": "black"}}),
            SELECTED_COLORS_KEY: json.dumps({"grip": "gray", "light": "black", "bad": 3}),
        }
    )

    cart = CartStore.open(storage)

    assert cart.selected_color("grip") == "black"
    assert cart.selected_color("light") == "black"
    assert "bad" not in cart.selected_colors()


def test_mutations_before_rehydration_are_kept_and_merged() -> None:
    storage = _RecordingStorage(
        {
            CART_KEY: json.dumps(
                {
                    "grip": {"quantity": 2, "color": "black"},
                    "light": {"quantity": 4, "color": "black"},
                }
            )
        }
    )
    cart = CartStore(storage)

    cart.increment("light")
    assert storage.writes == []

    cart.rehydrate()

    assert cart.entries() == {
        "grip": CartEntry(quantity=2, color="black"),
        "light": CartEntry(quantity=1, color="black"),
    }
    assert json.loads(storage.get(CART_KEY)) == {
        "grip": {"quantity": 2, "color": "black"},
        "light": {"quantity": 1, "color": "black"},
    }


def test_serialized_state_round_trips() -> None:
    storage = InMemoryStorage()
    cart = CartStore.open(storage)
    cart.increment("grip")
    cart.increment("grip")
    cart.select_color("grip", "black")
    cart.increment("light")
    cart.increment("light")
    cart.decrement("light")

    assert parse_stored_cart(serialize_cart(cart.entries())) == cart.entries()

    reopened = CartStore.open(storage)
    assert reopened.entries() == cart.entries()
    assert reopened.selected_colors() == cart.selected_colors()


def test_clear_removes_stored_cart_but_keeps_colors() -> None:
    storage = _RecordingStorage()
    cart = CartStore.open(storage)
    cart.select_color("grip", "black")
    cart.increment("grip")

    cart.clear()

    assert cart.is_empty()
    assert storage.get(CART_KEY) is None
    assert storage.removals == [CART_KEY]
    assert json.loads(storage.get(SELECTED_COLORS_KEY))["grip"] == "black"


def test_storage_failures_do_not_reach_the_caller() -> None:
    cart = CartStore.open(_BrokenStorage())

    cart.increment("grip")
    cart.select_color("grip", "black")

    assert cart.get("grip") == CartEntry(quantity=1, color="black")


def test_rehydrate_deeply_nested_payload_yields_empty_cart() -> None:
    storage = InMemoryStorage({CART_KEY: '{"grip":' + "[" * 200000})

    cart = CartStore.open(storage)

    assert cart.entries() == {}
    assert json.loads(storage.get(CART_KEY)) == {}
