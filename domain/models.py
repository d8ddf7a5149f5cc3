"""Domain models — pure Python, zero external dependencies.

Only stdlib imports allowed: dataclasses, datetime, decimal, enum.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum


class _LenientEnum(Enum):
    """Enum whose value lookup ignores case ("AND", "and", "And")."""

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted or member.name.lower() == wanted:
                    return member
        return None


class FieldType(_LenientEnum):
    """Comparable order field a rule condition can target."""

    CUSTOMER_NAME = "customer_name"
    CUSTOMER_PHONE = "customer_phone"
    CUSTOMER_ADDRESS = "customer_address"
    PRODUCT_ID = "product_id"
    PRODUCT_NAME = "product_name"
    PRODUCT_CODE = "product_code"
    ORDER_TOTAL = "order_total"
    WAREHOUSE = "warehouse"


class LogicalOperator(_LenientEnum):
    """How the enabled conditions of a rule are combined."""

    AND = "AND"
    OR = "OR"


class TimeUnit(_LenientEnum):
    """Unit of a rule time window."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"


# ── Order view ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Customer:
    """Customer block of an order."""

    name: str = ""
    phone_numbers: tuple[str, ...] = ()
    shipping_address: str = ""


@dataclass(frozen=True)
class OrderLine:
    """One product line of an order."""

    product_id: str
    quantity: int = 0
    unit_price: Decimal = Decimal("0")


@dataclass(frozen=True)
class OrderSnapshot:
    """Minimal, immutable view of an order used by duplicate detection.

    ``order_id`` and ``order_number`` are set on candidates loaded from the
    order store; a subject that is not persisted yet leaves them empty.
    ``exclude_order_id`` omits one order from the candidate search, which is
    how an order being edited is re-checked without matching itself.
    """

    customer: Customer
    seller_id: str
    order_date: datetime
    products: tuple[OrderLine, ...] = ()
    total_price: Decimal = Decimal("0")
    warehouse_id: str | None = None
    order_id: str | None = None
    order_number: str | None = None
    exclude_order_id: str | None = None


# ── Detection policy ────────────────────────────────────────────────────


@dataclass(frozen=True)
class Condition:
    """Enable/disable toggle for one comparable field inside a rule."""

    field: FieldType
    enabled: bool = True


@dataclass(frozen=True)
class TimeWindow:
    """Maximum time distance between two orders, as (value, unit)."""

    value: int
    unit: TimeUnit = TimeUnit.HOURS


@dataclass(frozen=True)
class Rule:
    """A named detection rule."""

    name: str
    time_window: TimeWindow
    conditions: tuple[Condition, ...] = ()
    logical_operator: LogicalOperator = LogicalOperator.AND
    is_active: bool = True

    @property
    def enabled_conditions(self) -> tuple[Condition, ...]:
        return tuple(c for c in self.conditions if c.enabled)


@dataclass(frozen=True)
class DetectionPolicy:
    """Per-seller duplicate detection settings."""

    is_enabled: bool = False
    default_time_window: TimeWindow = field(
        default_factory=lambda: TimeWindow(1, TimeUnit.HOURS)
    )
    rules: tuple[Rule, ...] = ()

    @property
    def active_rules(self) -> tuple[Rule, ...]:
        return tuple(r for r in self.rules if r.is_active)


# ── Detection output ────────────────────────────────────────────────────


@dataclass(frozen=True)
class DuplicateMatch:
    """One candidate order flagged as a probable duplicate."""

    candidate_order_id: str
    candidate_order_number: str
    matched_rule_name: str


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of one detection call.

    ``error`` is set only when an infrastructure failure forced the
    fail-open "not a duplicate" answer.
    """

    is_duplicate: bool = False
    duplicate_orders: tuple[DuplicateMatch, ...] = ()
    rules_checked: int = 0
    processing_time: timedelta = timedelta(0)
    error: str | None = None


@dataclass(frozen=True)
class DoubleOrderReference:
    """Reference stored on an order flagged as a double of a prior order."""

    order_id: str
    order_number: str
    matched_rule: str
    detected_at: datetime
