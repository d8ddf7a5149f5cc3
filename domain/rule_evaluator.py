"""Domain rule evaluation — pure functions, zero external dependencies.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

import logging
from typing import Mapping

from domain.comparators import COMPARATORS, Comparator
from domain.models import FieldType, LogicalOperator, OrderSnapshot, Rule
from domain.time_window import window_millis

logger = logging.getLogger(__name__)


def _condition_holds(comparators, field, subject, candidate):
    comparator = comparators.get(field)
    if comparator is None:
        return False
    try:
        return bool(comparator(subject, candidate))
    except Exception:
        logger.debug(
            "Comparator %s failed on candidate %s",
            field.value,
            getattr(candidate, "order_id", None),
            exc_info=True,
        )
        return False


def evaluate_rule(
    rule: Rule,
    subject: OrderSnapshot,
    candidate: OrderSnapshot,
    delta_millis: int,
    comparators: Mapping[FieldType, Comparator] | None = None,
) -> bool:
    """Decide whether *candidate* duplicates *subject* under *rule*.

    A delta equal to the rule window is still inside it. A rule without
    enabled conditions never fires.
    """
    if delta_millis > window_millis(rule.time_window):
        return False

    enabled = rule.enabled_conditions
    if not enabled:
        return False

    table = COMPARATORS if comparators is None else comparators
    results = [
        _condition_holds(table, condition.field, subject, candidate)
        for condition in enabled
    ]
    if rule.logical_operator is LogicalOperator.AND:
        return all(results)
    return any(results)
