"""Mixin that manages Node watches and store subscriptions with auto-cleanup."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Callable

from boardsync.model.node import Callback, ListNode, Node
from boardsync.store import EntityStore

logger = logging.getLogger(__name__)

_closing: set[asyncio.Task] = set()


def _release(store: EntityStore) -> None:
    """Close a store's feed in the background; the widget is already gone."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.debug("no running loop, %r left open", store)
        return
    task = loop.create_task(store.close())
    _closing.add(task)
    task.add_done_callback(_closing.discard)


class NodeWatcherMixin:
    """Mixin for widgets that watch Node keys and own live stores.

    Subclasses should:
    - Call ``_init_watcher()`` in ``__init__``
    - Use ``self.node_watch(node, key, callback)`` instead of ``node.watch(...)``
    - Use ``self.own_store(store)`` for stores whose feed lives as long as the widget
    - Use ``with self.suppressing():`` around model writes
    - Skip writing ``on_unmount`` -- the mixin handles cleanup
    """

    def _init_watcher(self) -> None:
        self._watches: list[Callable[[], Any]] = []
        self._stores: list[EntityStore] = []
        self._suppressing = False

    def node_watch(self, node: Node | ListNode, key: str, callback: Callback) -> None:
        """Register a watch that is auto-guarded by suppression and auto-cleaned on unmount."""

        def guarded(source_node: Any, key: str, old: Any, new: Any) -> None:
            if not self._suppressing:
                callback(source_node, key, old, new)

        unwatch = node.watch(key, guarded)
        self._watches.append(unwatch)

    def own_store(self, store: EntityStore) -> EntityStore:
        """Tie a store's subscriptions to this widget's lifetime."""
        self._stores.append(store)
        return store

    @contextmanager
    def suppressing(self):
        """Context manager that suppresses watch callbacks for model writes."""
        self._suppressing = True
        try:
            yield
        finally:
            self._suppressing = False

    def on_unmount(self) -> None:
        for unwatch in self._watches:
            unwatch()
        self._watches.clear()
        stores, self._stores = self._stores, []
        for store in stores:
            _release(store)
