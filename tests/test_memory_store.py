"""Tests for convex_envsync.store.memory and the NOT_FOUND sentinel."""

from __future__ import annotations

import pytest

from convex_envsync.errors import RemoteUnavailableError
from convex_envsync.store.base import NOT_FOUND, RemoteStoreClient
from convex_envsync.store.memory import InMemoryStore


class TestNotFound:
    def test_falsy(self):
        assert not NOT_FOUND

    def test_repr(self):
        assert repr(NOT_FOUND) == "NOT_FOUND"

    def test_singleton(self):
        assert type(NOT_FOUND)() is NOT_FOUND


class TestInMemoryStore:
    def test_is_store(self):
        assert isinstance(InMemoryStore(), RemoteStoreClient)

    def test_get_missing(self):
        assert InMemoryStore().get("A") is NOT_FOUND

    def test_set_get(self):
        store = InMemoryStore()
        store.set("A", "1")
        assert store.get("A") == "1"

    def test_last_write_wins(self):
        store = InMemoryStore({"A": "1"})
        store.set("A", "2")
        assert store.data == {"A": "2"}

    def test_list_and_remove(self):
        store = InMemoryStore({"A": "1", "B": "2"})
        store.remove("A")
        store.remove("missing")
        assert store.list() == ["B"]

    def test_failure_injection(self):
        store = InMemoryStore(failures={"B": RemoteUnavailableError("down")})
        store.set("A", "1")
        with pytest.raises(RemoteUnavailableError):
            store.set("B", "2")
        assert "B" not in store.data

    def test_call_log(self):
        store = InMemoryStore()
        store.fail_on("X", RemoteUnavailableError("x"))
        store.set("A", "1")
        store.get("A")
        with pytest.raises(RemoteUnavailableError):
            store.set("X", "1")
        assert store.calls == [("set", "A"), ("get", "A"), ("set", "X")]
        assert store.set_calls() == ["A", "X"]
