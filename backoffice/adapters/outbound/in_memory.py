"""In-memory implementations of the duplicate detection ports.

Intended for tests and local tooling where no database is available.
"""

from __future__ import annotations

from datetime import datetime

from domain.models import DetectionPolicy, DoubleOrderReference, OrderSnapshot
from domain.ports import CandidateFinder, DuplicateFlagRepository, PolicyReader
from domain.time_window import as_utc


class InMemoryPolicyReader(PolicyReader):
    """PolicyReader backed by a ``{seller_id: DetectionPolicy}`` dict."""

    def __init__(self, policies: dict[str, DetectionPolicy] | None = None):
        self.policies = dict(policies or {})
        self.calls = 0

    def get_policy(self, seller_id: str) -> DetectionPolicy | None:
        self.calls += 1
        return self.policies.get(seller_id)


class InMemoryCandidateFinder(CandidateFinder):
    """CandidateFinder over a list of orders, kept in insertion order."""

    def __init__(self, orders: list[OrderSnapshot] | None = None):
        self.orders = list(orders or [])
        self.queries: list[tuple[str, datetime, datetime, str | None]] = []

    def find_candidates(
        self,
        seller_id: str,
        start: datetime,
        end: datetime,
        exclude_order_id: str | None = None,
    ) -> list[OrderSnapshot]:
        self.queries.append((seller_id, start, end, exclude_order_id))
        return [
            o
            for o in self.orders
            if o.seller_id == seller_id
            and start <= as_utc(o.order_date) <= end
            and (exclude_order_id is None or o.order_id != exclude_order_id)
        ]


class InMemoryDuplicateFlagRepository(DuplicateFlagRepository):
    """DuplicateFlagRepository keeping references in a dict."""

    def __init__(self):
        self.flags: dict[str, list[DoubleOrderReference]] = {}

    def flag_order(self, order_id: str, references: list[DoubleOrderReference]) -> None:
        self.flags[order_id] = list(references)

    def list_references(self, order_id: str) -> list[DoubleOrderReference]:
        return list(self.flags.get(order_id, []))
