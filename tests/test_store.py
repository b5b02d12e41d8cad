import pytest

from logrelay.store import (
    InMemoryStore,
    KeyComparisonFailedError,
    KeyExistsError,
    KeyNotFoundError,
    StoreError,
    StoreNode,
)


@pytest.fixture
def store():
    return InMemoryStore()


def test_connect_marks_connected(store):
    store.connect()
    assert store.did_connect is True


def test_connect_raises_configured_error(store):
    error = StoreError("connection error")
    store.connect_error = error
    with pytest.raises(StoreError) as info:
        store.connect()
    assert info.value is error
    assert store.did_connect is False


def test_create_then_get_round_trip(store):
    node = StoreNode("some/key", b"value", 3)
    store.create(node)
    assert store.get("some/key") == node


def test_create_existing_key_raises(store):
    store.create(StoreNode("some/key", b"first"))
    with pytest.raises(KeyExistsError):
        store.create(StoreNode("some/key", b"second"))
    assert store.get("some/key").value == b"first"


def test_get_missing_key_raises(store):
    with pytest.raises(KeyNotFoundError):
        store.get("missing")


def test_delete_removes_key(store):
    store.create(StoreNode("some/key", b"value"))
    store.delete("some/key")
    with pytest.raises(KeyNotFoundError):
        store.get("some/key")


def test_delete_missing_key_raises(store):
    with pytest.raises(KeyNotFoundError):
        store.delete("missing")


def test_set_multi_overwrites_existing(store):
    store.create(StoreNode("a", b"old"))
    store.set_multi([StoreNode("a", b"new", 5), StoreNode("b", b"other")])
    assert store.get("a") == StoreNode("a", b"new", 5)
    assert store.get("b") == StoreNode("b", b"other")


def test_set_error_injector_blocks_all_writes(store):
    error = StoreError("fake error")
    store.set_error_injector = (".*", error)
    with pytest.raises(StoreError) as info:
        store.set_multi([StoreNode("a", b"x")])
    assert info.value is error
    with pytest.raises(KeyNotFoundError):
        store.get("a")


def test_create_error_injector_matches_pattern_only(store):
    error = StoreError("test error")
    store.create_error_injector = ("blocked", error)
    with pytest.raises(StoreError) as info:
        store.create(StoreNode("blocked/key", b"x"))
    assert info.value is error
    store.create(StoreNode("open/key", b"y"))
    assert store.get("open/key").value == b"y"


def test_compare_and_swap_replaces_on_match(store):
    store.create(StoreNode("k", b"v"))
    store.compare_and_swap(StoreNode("k", b"v"), StoreNode("k", b"v", 7))
    assert store.get("k") == StoreNode("k", b"v", 7)


def test_compare_and_swap_mismatch_keeps_node(store):
    store.create(StoreNode("k", b"v"))
    with pytest.raises(KeyComparisonFailedError):
        store.compare_and_swap(StoreNode("k", b"other"), StoreNode("k", b"other"))
    assert store.get("k") == StoreNode("k", b"v")


def test_compare_and_swap_missing_key_raises(store):
    with pytest.raises(KeyNotFoundError):
        store.compare_and_swap(StoreNode("k", b"v"), StoreNode("k", b"v"))


def test_compare_and_delete(store):
    store.create(StoreNode("k", b"v"))
    with pytest.raises(KeyComparisonFailedError):
        store.compare_and_delete(StoreNode("k", b"other"))
    store.compare_and_delete(StoreNode("k", b"v"))
    with pytest.raises(KeyNotFoundError):
        store.compare_and_delete(StoreNode("k", b"v"))


def test_store_failures_are_caught_as_store_error(store):
    store.create(StoreNode("k", b"v"))

    with pytest.raises(StoreError) as exists:
        store.create(StoreNode("k", b"again"))
    assert isinstance(exists.value, KeyExistsError)

    with pytest.raises(StoreError) as missing:
        store.get("absent")
    assert isinstance(missing.value, KeyNotFoundError)

    with pytest.raises(StoreError) as mismatch:
        store.compare_and_delete(StoreNode("k", b"other"))
    assert isinstance(mismatch.value, KeyComparisonFailedError)

    assert store.get("k") == StoreNode("k", b"v")