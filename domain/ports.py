"""Domain ports — abstract interfaces for the stores duplicate detection reads from.

Only stdlib (abc) and domain.models imports allowed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from domain.models import DetectionPolicy, DoubleOrderReference, OrderSnapshot


# ── Repository Ports ──────────────────────────────────────────────────────


class PolicyReader(ABC):
    """Read port for per-seller detection policies."""

    @abstractmethod
    def get_policy(self, seller_id: str) -> DetectionPolicy | None: ...


class CandidateFinder(ABC):
    """Read port for prior orders of a seller inside a time range."""

    @abstractmethod
    def find_candidates(
        self,
        seller_id: str,
        start: datetime,
        end: datetime,
        exclude_order_id: str | None = None,
    ) -> list[OrderSnapshot]:
        """Return the seller's orders dated within ``[start, end]`` (inclusive)."""


class DuplicateFlagRepository(ABC):
    """Write port recording that an order duplicates earlier ones."""

    @abstractmethod
    def flag_order(
        self, order_id: str, references: list[DoubleOrderReference]
    ) -> None: ...

    @abstractmethod
    def list_references(self, order_id: str) -> list[DoubleOrderReference]: ...


# ── Infrastructure Ports ──────────────────────────────────────────────────


class CachePort(ABC):
    """Port for key-value caching (Redis, in-memory, etc.)."""

    @abstractmethod
    def get(self, key: str) -> object | None: ...

    @abstractmethod
    def set(self, key: str, value: object, ttl: int = 3600) -> None: ...

    @abstractmethod
    def invalidate(self, prefix: str) -> None: ...
