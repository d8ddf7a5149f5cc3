"""Tests for CachedPolicyReader over the in-memory cache and a mocked Redis."""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import redis

from backoffice.adapters.outbound.cached_policy_reader import CachedPolicyReader
from backoffice.adapters.outbound.in_memory import InMemoryCandidateFinder, InMemoryPolicyReader
from backoffice.adapters.outbound.redis_cache import InMemoryCacheAdapter, RedisCacheAdapter
from domain.duplicate_detector import DuplicateDetector
from domain.models import (
    Condition,
    Customer,
    DetectionPolicy,
    FieldType,
    OrderSnapshot,
    Rule,
    TimeUnit,
    TimeWindow,
)


def _reader(policies):
    inner = InMemoryPolicyReader(policies)
    return CachedPolicyReader(inner, InMemoryCacheAdapter(), ttl=30), inner


def test_second_read_served_from_cache():
    policy = DetectionPolicy(is_enabled=True, default_time_window=TimeWindow(3, TimeUnit.DAYS))
    reader, inner = _reader({"seller1": policy})
    assert reader.get_policy("seller1") == policy
    assert reader.get_policy("seller1") == policy
    assert inner.calls == 1


def test_missing_policy_is_cached():
    reader, inner = _reader({})
    assert reader.get_policy("nobody") is None
    assert reader.get_policy("nobody") is None
    assert inner.calls == 1


def test_invalidate_one_seller():
    reader, inner = _reader({
        "seller1": DetectionPolicy(is_enabled=True),
        "seller10": DetectionPolicy(is_enabled=True),
    })
    reader.get_policy("seller1")
    reader.get_policy("seller10")
    inner.policies["seller1"] = DetectionPolicy(is_enabled=False)

    reader.invalidate("seller1")

    assert reader.get_policy("seller1").is_enabled is False
    reader.get_policy("seller10")
    assert inner.calls == 3


def test_redis_backend_stores_document_with_ttl():
    client = MagicMock()
    client.get.return_value = None
    inner = InMemoryPolicyReader({"s1": DetectionPolicy(is_enabled=True)})
    reader = CachedPolicyReader(inner, RedisCacheAdapter(client), ttl=45)

    reader.get_policy("s1")

    key, ttl, payload = client.setex.call_args.args
    assert key == "dupcheck:policy:s1:"
    assert ttl == 45
    assert '"isEnabled": true' in payload


def test_redis_outage_reads_through_to_store():
    client = MagicMock()
    client.get.side_effect = redis.ConnectionError("down")
    client.setex.side_effect = redis.ConnectionError("down")
    now = datetime(2024, 1, 15, 10, tzinfo=timezone.utc)
    policy = DetectionPolicy(
        is_enabled=True,
        rules=(
            Rule(
                name="Phone Strict Rule",
                time_window=TimeWindow(1, TimeUnit.HOURS),
                conditions=(Condition(FieldType.CUSTOMER_PHONE),),
            ),
        ),
    )
    earlier = OrderSnapshot(
        order_id="order1",
        order_number="ORD-001",
        customer=Customer(name="Jane Smith", phone_numbers=("(123) 456-7890",)),
        seller_id="seller1",
        order_date=now - timedelta(minutes=30),
    )
    detector = DuplicateDetector(
        CachedPolicyReader(InMemoryPolicyReader({"seller1": policy}), RedisCacheAdapter(client)),
        InMemoryCandidateFinder([earlier]),
    )

    result = detector.detect(OrderSnapshot(
        customer=Customer(name="John Doe", phone_numbers=("+1234567890",)),
        seller_id="seller1",
        order_date=now,
    ))

    assert result.error is None
    assert result.rules_checked == 1
    assert result.is_duplicate is True
