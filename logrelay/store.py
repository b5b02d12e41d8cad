"""A key-value store interface with an in-memory implementation."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass(frozen=True)
class StoreNode:
    """One key with its value and time to live in seconds (0 means none)."""

    key: str
    value: bytes = b""
    ttl: int = 0


class StoreError(Exception):
    """Base class for store failures."""


class KeyExistsError(StoreError):
    def __init__(self, message: str = "the requested key already exists"):
        super().__init__(message)


class KeyNotFoundError(StoreError):
    def __init__(self, message: str = "the requested key could not be found"):
        super().__init__(message)


class KeyComparisonFailedError(StoreError):
    def __init__(self, message: str = "the compared value does not match the stored value"):
        super().__init__(message)


ErrorInjector = Optional[tuple[str, Exception]]


def _raise_if_injected(injector: ErrorInjector, key: str) -> None:
    if injector is None:
        return
    pattern, error = injector
    if re.search(pattern, key):
        raise error


class InMemoryStore:
    """A thread-safe store kept in a dictionary.

    ``connect_error`` makes ``connect`` fail. ``create_error_injector`` and
    ``set_error_injector`` are ``(pattern, error)`` pairs: writes to keys
    matching the pattern raise the error.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._nodes: dict[str, StoreNode] = {}
        self.did_connect = False
        self.connect_error: Optional[Exception] = None
        self.create_error_injector: ErrorInjector = None
        self.set_error_injector: ErrorInjector = None

    def connect(self) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.did_connect = True

    def create(self, node: StoreNode) -> None:
        """Store ``node``; raise KeyExistsError if its key is already taken."""
        _raise_if_injected(self.create_error_injector, node.key)
        with self._lock:
            if node.key in self._nodes:
                raise KeyExistsError()
            self._nodes[node.key] = node

    def get(self, key: str) -> StoreNode:
        with self._lock:
            try:
                return self._nodes[key]
            except KeyError:
                raise KeyNotFoundError() from None

    def delete(self, key: str) -> None:
        with self._lock:
            if self._nodes.pop(key, None) is None:
                raise KeyNotFoundError()

    def set_multi(self, nodes: Iterable[StoreNode]) -> None:
        """Store every node, replacing whatever the keys held."""
        nodes = list(nodes)
        for node in nodes:
            _raise_if_injected(self.set_error_injector, node.key)
        with self._lock:
            for node in nodes:
                self._nodes[node.key] = node

    def compare_and_swap(self, old_node: StoreNode, new_node: StoreNode) -> None:
        """Replace the node at ``old_node.key`` if its value equals ``old_node.value``."""
        with self._lock:
            current = self._nodes.get(old_node.key)
            if current is None:
                raise KeyNotFoundError()
            if current.value != old_node.value:
                raise KeyComparisonFailedError()
            self._nodes[new_node.key] = new_node

    def compare_and_delete(self, node: StoreNode) -> None:
        """Delete the node at ``node.key`` if its value equals ``node.value``."""
        with self._lock:
            current = self._nodes.get(node.key)
            if current is None:
                raise KeyNotFoundError()
            if current.value != node.value:
                raise KeyComparisonFailedError()
            del self._nodes[node.key]