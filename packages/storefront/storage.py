from __future__ import annotations

from typing import Protocol

from packages.storefront.db import StorageEntry, db_session, init_storage

CART_KEY = "uc-cart"
SELECTED_COLORS_KEY = "uc-selected-colors"


class KeyValueStorage(Protocol):
    """Browser-style string storage. Last writer wins."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...


class InMemoryStorage:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)


class SqlStorage:
    """File-backed storage on a SQLAlchemy database (sqlite by default)."""

    def __init__(self, url: str | None = None) -> None:
        self._url = url
        init_storage(url)

    def get(self, key: str) -> str | None:
        db = db_session(self._url)
        try:
            row = db.get(StorageEntry, key)
            return row.value if row is not None else None
        finally:
            db.close()

    def set(self, key: str, value: str) -> None:
        db = db_session(self._url)
        try:
            row = db.get(StorageEntry, key)
            if row is None:
                db.add(StorageEntry(key=key, value=value))
            else:
                row.value = value
            db.commit()
        finally:
            db.close()

    def remove(self, key: str) -> None:
        db = db_session(self._url)
        try:
            row = db.get(StorageEntry, key)
            if row is not None:
                db.delete(row)
                db.commit()
        finally:
            db.close()
