"""Dict-backed store used for dry runs and tests."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from convex_envsync.store.base import NOT_FOUND, Ack, GetResult, RemoteStoreClient


class InMemoryStore(RemoteStoreClient):
    """In-process store with a call log and injectable per-key failures."""

    def __init__(
        self,
        initial: Optional[Mapping[str, str]] = None,
        *,
        failures: Optional[Mapping[str, Exception]] = None,
    ):
        self.data: Dict[str, str] = dict(initial or {})
        self.failures: Dict[str, Exception] = dict(failures or {})
        self.calls: List[Tuple[str, ...]] = []

    @property
    def name(self) -> str:
        return "memory"

    def fail_on(self, key: str, exc: Exception) -> None:
        """Make every call touching *key* raise *exc*."""
        self.failures[key] = exc

    def _check(self, key: str) -> None:
        exc = self.failures.get(key)
        if exc is not None:
            raise exc

    def get(self, key: str) -> GetResult:
        self.calls.append(("get", key))
        self._check(key)
        return self.data.get(key, NOT_FOUND)

    def set(self, key: str, value: str) -> Ack:
        self.calls.append(("set", key))
        self._check(key)
        self.data[key] = value
        return Ack(key=key, action="set")

    def list(self) -> List[str]:
        self.calls.append(("list",))
        return list(self.data)

    def remove(self, key: str) -> Ack:
        self.calls.append(("remove", key))
        self._check(key)
        self.data.pop(key, None)
        return Ack(key=key, action="remove")

    def set_calls(self) -> List[str]:
        return [c[1] for c in self.calls if c[0] == "set"]
