"""Duplicate order detection — orchestrates policy, candidates and rules.

Depends only on domain ports; adapters are injected by the composition root.
"""

from __future__ import annotations

import dataclasses
import logging
import time
from concurrent.futures import Executor
from datetime import datetime, timedelta, timezone
from typing import Callable, Mapping

from domain.comparators import COMPARATORS, Comparator
from domain.models import (
    Condition,
    DetectionResult,
    DoubleOrderReference,
    DuplicateMatch,
    FieldType,
    LogicalOperator,
    OrderSnapshot,
    Rule,
    TimeWindow,
)
from domain.policy_rules import max_window_millis
from domain.ports import CandidateFinder, PolicyReader
from domain.rule_evaluator import evaluate_rule
from domain.time_window import as_utc, delta_millis, time_bounds

logger = logging.getLogger(__name__)

DEFAULT_RULE_NAME = "Default Rule (Customer Name OR Phone)"


def default_rule(time_window: TimeWindow) -> Rule:
    """Implicit rule applied when detection is enabled but no rule is active."""
    return Rule(
        name=DEFAULT_RULE_NAME,
        time_window=time_window,
        conditions=(
            Condition(FieldType.CUSTOMER_NAME),
            Condition(FieldType.CUSTOMER_PHONE),
        ),
        logical_operator=LogicalOperator.OR,
    )


def _utcnow():
    return datetime.now(timezone.utc)


class DuplicateDetector:
    """Decide whether an order probably duplicates a recent order of the same seller.

    ``detect`` always returns a DetectionResult: when the policy store or the
    order store fails, the answer degrades to "not a duplicate" and the
    failure is logged and reported in ``DetectionResult.error``.

    Args:
        policy_reader: Source of the seller's DetectionPolicy.
        candidate_finder: Source of prior orders within a time range.
        comparators: FieldType -> comparator table (defaults to COMPARATORS).
        executor: Optional executor evaluating candidates concurrently.
        clock: Monotonic clock used to measure processing time.
        now: Wall clock used by ``check_new_order``.
    """

    def __init__(
        self,
        policy_reader: PolicyReader,
        candidate_finder: CandidateFinder,
        comparators: Mapping[FieldType, Comparator] | None = None,
        executor: Executor | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._policy_reader = policy_reader
        self._candidate_finder = candidate_finder
        self._comparators = COMPARATORS if comparators is None else comparators
        self._executor = executor
        self._clock = clock
        self._now = now

    # ── Public API ───────────────────────────────────────────────────────

    def detect(self, subject: OrderSnapshot) -> DetectionResult:
        started = self._clock()
        try:
            policy = self._policy_reader.get_policy(subject.seller_id)
            if policy is None or not policy.is_enabled:
                return self._result(started)

            rules = policy.active_rules
            if not rules:
                rules = (default_rule(policy.default_time_window),)

            # Stored orders come back tz-aware; naive subject dates are UTC.
            subject = dataclasses.replace(subject, order_date=as_utc(subject.order_date))
            start, end = time_bounds(subject.order_date, max_window_millis(rules))
            candidates = self._candidate_finder.find_candidates(
                subject.seller_id, start, end, subject.exclude_order_id
            )
            matches = self._collect_matches(rules, subject, candidates)
        except Exception as exc:
            logger.exception(
                "Duplicate detection failed for seller %s", subject.seller_id
            )
            return self._result(started, error=f"{type(exc).__name__}: {exc}")

        logger.debug(
            "Checked %d candidate(s) against %d rule(s) for seller %s: %d match(es)",
            len(candidates), len(rules), subject.seller_id, len(matches),
        )
        return self._result(started, matches=matches, rules_checked=len(rules))

    def check_new_order(self, subject: OrderSnapshot) -> DetectionResult:
        """Run detection for an order being created right now."""
        return self.detect(dataclasses.replace(subject, order_date=self._now()))

    # ── Internal helpers ─────────────────────────────────────────────────

    def _collect_matches(self, rules, subject, candidates):
        def first_match(candidate):
            return self._first_match(rules, subject, candidate)

        if self._executor is not None and len(candidates) > 1:
            found = self._executor.map(first_match, candidates)
        else:
            found = map(first_match, candidates)
        return tuple(m for m in found if m is not None)

    def _first_match(self, rules, subject, candidate):
        try:
            delta = delta_millis(subject.order_date, candidate.order_date)
            for rule in rules:
                if evaluate_rule(rule, subject, candidate, delta, self._comparators):
                    return DuplicateMatch(
                        candidate_order_id=str(candidate.order_id),
                        candidate_order_number=candidate.order_number or "",
                        matched_rule_name=rule.name,
                    )
        except (AttributeError, TypeError, ValueError):
            logger.warning(
                "Skipping malformed candidate order %s",
                getattr(candidate, "order_id", None),
                exc_info=True,
            )
        return None

    def _result(self, started, matches=(), rules_checked=0, error=None):
        return DetectionResult(
            is_duplicate=bool(matches),
            duplicate_orders=tuple(matches),
            rules_checked=rules_checked,
            processing_time=timedelta(seconds=self._clock() - started),
            error=error,
        )


def to_double_order_references(
    result: DetectionResult, detected_at: datetime | None = None
) -> list[DoubleOrderReference]:
    """Turn the matches of *result* into references stored on the flagged order."""
    detected_at = detected_at or _utcnow()
    return [
        DoubleOrderReference(
            order_id=m.candidate_order_id,
            order_number=m.candidate_order_number,
            matched_rule=m.matched_rule_name,
            detected_at=detected_at,
        )
        for m in result.duplicate_orders
    ]
