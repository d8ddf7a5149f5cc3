"""Domain field comparators — pure functions, zero external dependencies.

Each comparator takes ``(subject, candidate)`` order snapshots and returns a
bool. Missing or malformed data never matches and never raises.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Callable, Mapping

from domain.models import FieldType, OrderSnapshot
from domain.normalization import (
    normalize_address,
    normalize_name,
    normalized_phones,
)

Comparator = Callable[[OrderSnapshot, OrderSnapshot], bool]

TOTAL_TOLERANCE = Decimal("0.01")


def _customer(order):
    return getattr(order, "customer", None)


def same_customer_name(subject, candidate):
    """Names equal after trimming and case-folding."""
    name1 = normalize_name(getattr(_customer(subject), "name", None))
    name2 = normalize_name(getattr(_customer(candidate), "name", None))
    return bool(name1) and name1 == name2


def shared_phone(subject, candidate):
    """At least one non-empty digits-only phone number in common."""
    phones1 = normalized_phones(getattr(_customer(subject), "phone_numbers", None))
    phones2 = normalized_phones(getattr(_customer(candidate), "phone_numbers", None))
    return not phones1.isdisjoint(phones2)


def same_address(subject, candidate):
    """Addresses equal after case-folding and whitespace collapsing."""
    addr1 = normalize_address(getattr(_customer(subject), "shipping_address", None))
    addr2 = normalize_address(getattr(_customer(candidate), "shipping_address", None))
    return bool(addr1) and addr1 == addr2


def _product_ids(order):
    ids = set()
    for line in getattr(order, "products", None) or ():
        product_id = getattr(line, "product_id", None)
        if product_id is not None and str(product_id) != "":
            ids.add(str(product_id))
    return ids


def shared_product(subject, candidate):
    """At least one product identifier in common; quantities are ignored."""
    return not _product_ids(subject).isdisjoint(_product_ids(candidate))


def _as_decimal(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def same_total(subject, candidate):
    """Order totals differ by strictly less than one cent."""
    total1 = _as_decimal(getattr(subject, "total_price", None))
    total2 = _as_decimal(getattr(candidate, "total_price", None))
    if total1 is None or total2 is None:
        return False
    return abs(total1 - total2) < TOTAL_TOLERANCE


def same_warehouse(subject, candidate):
    """Warehouse identifiers identical."""
    wh1 = getattr(subject, "warehouse_id", None)
    wh2 = getattr(candidate, "warehouse_id", None)
    if wh1 is None or wh2 is None:
        return False
    return str(wh1) == str(wh2)


_DEFAULT_COMPARATORS: dict[FieldType, Comparator] = {
    FieldType.CUSTOMER_NAME: same_customer_name,
    FieldType.CUSTOMER_PHONE: shared_phone,
    FieldType.CUSTOMER_ADDRESS: same_address,
    FieldType.PRODUCT_ID: shared_product,
    # No product catalog here: name and code fall back to identifier matching.
    FieldType.PRODUCT_NAME: shared_product,
    FieldType.PRODUCT_CODE: shared_product,
    FieldType.ORDER_TOTAL: same_total,
    FieldType.WAREHOUSE: same_warehouse,
}


def build_comparators(
    overrides: Mapping[FieldType, Comparator] | None = None,
) -> Mapping[FieldType, Comparator]:
    """Build a read-only FieldType -> comparator table.

    ``overrides`` replaces individual entries, e.g. a catalog-backed
    comparator for ``PRODUCT_NAME``.
    """
    table = dict(_DEFAULT_COMPARATORS)
    if overrides:
        table.update(overrides)
    return MappingProxyType(table)


COMPARATORS = build_comparators()
