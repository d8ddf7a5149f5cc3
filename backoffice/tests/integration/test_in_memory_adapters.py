"""The in-memory port implementations honor the same contracts as the SQL ones."""

from datetime import datetime, timedelta, timezone

from backoffice.adapters.outbound.in_memory import (
    InMemoryCandidateFinder,
    InMemoryDuplicateFlagRepository,
    InMemoryPolicyReader,
)
from domain.models import Customer, DetectionPolicy, DoubleOrderReference, OrderSnapshot
from domain.ports import CandidateFinder, DuplicateFlagRepository, PolicyReader

T0 = datetime(2024, 1, 15, 10, tzinfo=timezone.utc)


def _order(order_id, minutes, seller="seller1"):
    return OrderSnapshot(customer=Customer(), seller_id=seller, order_id=order_id,
                         order_date=T0 + timedelta(minutes=minutes))


def test_implements_ports():
    assert isinstance(InMemoryPolicyReader(), PolicyReader)
    assert isinstance(InMemoryCandidateFinder(), CandidateFinder)
    assert isinstance(InMemoryDuplicateFlagRepository(), DuplicateFlagRepository)


def test_policy_reader_counts_calls():
    reader = InMemoryPolicyReader({"s": DetectionPolicy(is_enabled=True)})
    assert reader.get_policy("s").is_enabled
    assert reader.get_policy("x") is None
    assert reader.calls == 2


def test_candidate_finder_inclusive_range_seller_and_exclusion():
    finder = InMemoryCandidateFinder([
        _order("edge-low", -60), _order("edge-high", 60), _order("outside", 61),
        _order("self", 0), _order("other-seller", 0, seller="seller2"),
    ])
    found = finder.find_candidates(
        "seller1", T0 - timedelta(hours=1), T0 + timedelta(hours=1), exclude_order_id="self"
    )
    assert [o.order_id for o in found] == ["edge-low", "edge-high"]
    assert finder.queries[0][3] == "self"


def test_flag_repository_replaces_references():
    repo = InMemoryDuplicateFlagRepository()
    ref = DoubleOrderReference("a", "ORD-a", "Phone", T0)
    repo.flag_order("n", [ref])
    repo.flag_order("n", [])
    assert repo.list_references("n") == []
    assert repo.list_references("unknown") == []
