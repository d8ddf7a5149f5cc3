"""Order intake — runs duplicate detection when an order is created or edited.

This is the caller side of the detection engine: it decides what to do with
a DetectionResult (flag the order and log it) and never lets detection break
order submission.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from domain.duplicate_detector import DuplicateDetector, to_double_order_references
from domain.models import DetectionResult, OrderSnapshot
from domain.ports import DuplicateFlagRepository

logger = logging.getLogger(__name__)


class OrderIntake:
    """Check orders for duplicates and flag the ones that are."""

    def __init__(
        self, detector: DuplicateDetector, flag_repository: DuplicateFlagRepository
    ) -> None:
        self._detector = detector
        self._flags = flag_repository

    def on_order_created(self, order: OrderSnapshot) -> DetectionResult:
        """Check a freshly persisted order (its ``order_id`` is excluded from candidates)."""
        subject = replace(order, exclude_order_id=order.order_id)
        return self._handle(subject, self._detector.detect(subject))

    def on_order_updated(self, order: OrderSnapshot) -> DetectionResult:
        """Re-check an edited order against everything but itself."""
        subject = replace(order, exclude_order_id=order.exclude_order_id or order.order_id)
        return self._handle(subject, self._detector.detect(subject))

    def _handle(self, order, result):
        if result.error:
            logger.error(
                "Duplicate check skipped for order %s (seller %s): %s",
                order.order_number or order.order_id, order.seller_id, result.error,
            )
            return result

        if result.is_duplicate:
            logger.warning(
                "Order %s flagged as duplicate of %s",
                order.order_number or order.order_id,
                ", ".join(
                    f"{m.candidate_order_number} ({m.matched_rule_name})"
                    for m in result.duplicate_orders
                ),
            )
        if order.order_id is None:
            return result

        try:
            if result.is_duplicate:
                self._flags.flag_order(order.order_id, to_double_order_references(result))
            elif self._flags.list_references(order.order_id):
                # An edit can clear an earlier flag.
                self._flags.flag_order(order.order_id, [])
        except Exception:
            logger.exception("Could not record duplicate flag for order %s", order.order_id)
        return result
