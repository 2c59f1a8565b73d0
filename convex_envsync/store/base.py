"""Remote configuration store interface.

Keys and values are opaque text.  Implementations must pass them as data
and never let the transport reinterpret them (a value starting with ``-``
is a value, not a flag).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Union


class _NotFound:
    """Sentinel returned by :meth:`RemoteStoreClient.get` for unset keys."""

    _instance = None

    def __new__(cls) -> "_NotFound":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NOT_FOUND"


NOT_FOUND = _NotFound()

GetResult = Union[str, _NotFound]


@dataclass(frozen=True)
class Ack:
    """Acknowledgement of a successful mutation."""

    key: str
    action: str = "set"


class RemoteStoreClient(ABC):
    """Abstract get/set/list/remove over a deployment's environment variables.

    Network failures raise :class:`~convex_envsync.errors.RemoteUnavailableError`;
    rejected credentials raise :class:`~convex_envsync.errors.AuthenticationError`.
    """

    @abstractmethod
    def get(self, key: str) -> GetResult:
        """Return the value for *key*, or :data:`NOT_FOUND`."""

    @abstractmethod
    def set(self, key: str, value: str) -> Ack:
        """Set *key* to *value*.  Last write wins."""

    @abstractmethod
    def list(self) -> List[str]:
        """Return the names of all variables currently set."""

    @abstractmethod
    def remove(self, key: str) -> Ack:
        """Unset *key*.  Removing an unset key is not an error."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable store name."""
