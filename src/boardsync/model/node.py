"""Observable holders for store state: a flat attribute node and an id-keyed list."""

from __future__ import annotations

from typing import Any, Callable

Callback = Callable[["Node | ListNode", str, Any, Any], None]

ANY = "*"


def _emit(source: Node | ListNode, key: str, old: Any, new: Any) -> None:
    """Fire watchers of key, then the ``*`` watchers."""
    watchers = list(source._watchers.get(key, ()))
    if key != ANY:
        watchers += source._watchers.get(ANY, ())
    for cb in watchers:
        cb(source, key, old, new)


def _watch(source: Node | ListNode, key: str, callback: Callback) -> Callable[[], None]:
    source._watchers.setdefault(key, []).append(callback)

    def unwatch() -> None:
        callbacks = source._watchers.get(key, [])
        if callback in callbacks:
            callbacks.remove(callback)

    return unwatch


class Node:
    """Attribute bag that notifies watchers when a value changes.

    Unset attributes read as None, and assigning None removes the key.
    """

    def __init__(self, **data: Any) -> None:
        object.__setattr__(self, "_values", {})
        object.__setattr__(self, "_watchers", {})
        for k, v in data.items():
            setattr(self, k, v)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._values.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        if name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        old = self._values.get(name)
        if value is None:
            self._values.pop(name, None)
        else:
            self._values[name] = value
        if old != value:
            _emit(self, name, old, value)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def watch(self, key: str, callback: Callback) -> Callable[[], None]:
        """Watch a key (or ``*`` for every key). Returns an unwatch callable."""
        return _watch(self, key, callback)

    def __repr__(self) -> str:
        return f"<Node [{', '.join(self._values)}]>"


class ListNode:
    """Ordered collection of rows keyed by string id.

    Setting an id to None deletes it. Item changes fire the id's watchers
    and ``*``; reordering fires ``*`` with the old and new key lists.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, Any] = {}
        self._watchers: dict[str, list[Callback]] = {}

    def __getitem__(self, key: str) -> Any:
        return self._by_id.get(str(key))

    def __setitem__(self, key: str, value: Any) -> None:
        key = str(key)
        old = self._by_id.get(key)
        if value is None:
            self._by_id.pop(key, None)
        else:
            self._by_id[key] = value
        if old != value:
            _emit(self, key, old, value)

    def __iter__(self):
        return iter(list(self._by_id.values()))

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, key: str) -> bool:
        return str(key) in self._by_id

    def index(self, key: str) -> int:
        """Position of a key in the current order."""
        try:
            return self.keys().index(str(key))
        except ValueError:
            raise KeyError(key) from None

    def keys(self) -> list[str]:
        return list(self._by_id)

    def watch(self, key: str, callback: Callback) -> Callable[[], None]:
        """Watch an item id (or ``*`` for every item). Returns an unwatch callable."""
        return _watch(self, str(key), callback)

    def insert(self, index: int, key: str, value: Any) -> None:
        """Add or replace an item, then move it to index."""
        self[key] = value
        keys = self.keys()
        keys.remove(str(key))
        keys.insert(min(max(index, 0), len(keys)), str(key))
        self.reorder(keys)

    def reorder(self, new_keys: list[str]) -> None:
        """Rearrange items to match new_keys, which must hold exactly the current keys."""
        old_keys = self.keys()
        if old_keys == new_keys:
            return
        if sorted(old_keys) != sorted(new_keys):
            raise ValueError("reorder keys do not match current keys")
        self._by_id = {k: self._by_id[k] for k in new_keys}
        _emit(self, ANY, old_keys, new_keys)

    def sort(self, key: Callable[[Any], Any], reverse: bool = False) -> None:
        """Stable-sort items by key(value). Ties keep their current order."""
        ordered = sorted(self._by_id.items(), key=lambda kv: key(kv[1]), reverse=reverse)
        self.reorder([k for k, _ in ordered])

    def update(self, other: ListNode) -> None:
        """Make this list match other: drop missing ids, set changed ones, adopt its order."""
        for key in set(self._by_id) - set(other._by_id):
            self[key] = None
        for key, value in other._by_id.items():
            self[key] = value
        self.reorder(other.keys())

    def __repr__(self) -> str:
        return f"<ListNode [{', '.join(self._by_id)}]>"
