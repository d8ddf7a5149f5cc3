"""SQLAlchemy implementations of domain repository ports.

Each adapter translates between ORM models (sqlalchemy_models) and
pure domain models (domain.models), keeping the domain layer free
of any infrastructure dependency.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from backoffice.adapters.outbound.policy_document import (
    PolicyDocumentError,
    decode_policy,
    encode_policy,
)
from backoffice.adapters.outbound.sqlalchemy_models import (
    DoubleOrderReference as OrmDoubleOrderReference,
    DuplicateDetectionSettings as OrmSettings,
    Order as OrmOrder,
)
from domain.models import (
    Customer,
    DetectionPolicy,
    DoubleOrderReference as DomainDoubleOrderReference,
    OrderLine,
    OrderSnapshot,
    Rule,
)
from domain.policy_rules import create_default_policy, validate_policy, validate_rule
from domain.ports import CandidateFinder, DuplicateFlagRepository, PolicyReader

logger = logging.getLogger(__name__)


def to_storage_time(moment: datetime) -> datetime:
    """Convert a timestamp to the naive-UTC form stored in the database."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage_time(moment: datetime | None) -> datetime | None:
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)


class SqlAlchemyCandidateFinder(CandidateFinder):
    """SQLAlchemy adapter for the CandidateFinder port."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── Queries ────────────────────────────────────────────────────────

    def find_candidates(
        self,
        seller_id: str,
        start: datetime,
        end: datetime,
        exclude_order_id: str | None = None,
    ) -> list[OrderSnapshot]:
        """Return the seller's orders dated within [start, end], oldest first."""
        stmt = (
            select(OrmOrder)
            .options(selectinload(OrmOrder.lines))
            .where(OrmOrder.seller_id == seller_id)
            .where(OrmOrder.order_date >= to_storage_time(start))
            .where(OrmOrder.order_date <= to_storage_time(end))
            .order_by(OrmOrder.order_date, OrmOrder.id)
        )
        if exclude_order_id:
            stmt = stmt.where(OrmOrder.id != exclude_order_id)
        return [self._to_domain(orm) for orm in self._session.scalars(stmt)]

    # ── Internal helpers ───────────────────────────────────────────────

    @staticmethod
    def _to_domain(orm: OrmOrder) -> OrderSnapshot:
        """Convert an ORM Order row to a domain OrderSnapshot."""
        return OrderSnapshot(
            order_id=orm.id,
            order_number=orm.order_number,
            seller_id=orm.seller_id,
            warehouse_id=orm.warehouse_id,
            order_date=from_storage_time(orm.order_date),
            total_price=Decimal(orm.total_price or 0),
            customer=Customer(
                name=orm.customer_name or "",
                phone_numbers=tuple(orm.customer_phones or ()),
                shipping_address=orm.shipping_address or "",
            ),
            products=tuple(
                OrderLine(
                    product_id=line.product_id,
                    quantity=line.quantity or 0,
                    unit_price=Decimal(line.unit_price or 0),
                )
                for line in orm.lines
            ),
        )


class SqlAlchemyPolicyReader(PolicyReader):
    """SQLAlchemy adapter for the PolicyReader port.

    Also carries the settings-page commands (``save_policy``, ``add_rule``,
    ``get_or_create_policy``). Every write is validated first and then
    reported to *on_saved* with the seller id, which lets the composition
    root drop the seller's cached policy.
    """

    def __init__(
        self, session: Session, on_saved: Callable[[str], None] | None = None
    ) -> None:
        self._session = session
        self._on_saved = on_saved

    # ── Queries ────────────────────────────────────────────────────────

    def get_policy(self, seller_id: str) -> DetectionPolicy | None:
        """Return the seller's policy, or None when no settings were saved."""
        orm = self._settings_row(seller_id)
        if orm is None:
            return None
        return decode_policy(orm.document)

    def get_or_create_policy(self, seller_id: str) -> DetectionPolicy:
        """Return the seller's policy, saving the default one on first access."""
        policy = self.get_policy(seller_id)
        if policy is None:
            policy = create_default_policy()
            self.save_policy(seller_id, policy)
        return policy

    # ── Commands ───────────────────────────────────────────────────────

    def save_policy(self, seller_id: str, policy: DetectionPolicy) -> None:
        """Create or replace the seller's settings document.

        Raises:
            PolicyDocumentError: If the policy fails validation; nothing is written.
        """
        errors = validate_policy(policy)
        if errors:
            raise PolicyDocumentError(errors)
        orm = self._settings_row(seller_id)
        if orm is None:
            orm = OrmSettings(seller_id=seller_id, document=encode_policy(policy))
            self._session.add(orm)
        else:
            orm.document = encode_policy(policy)
        self._session.flush()
        logger.info("Saved duplicate detection settings for seller %s", seller_id)
        if self._on_saved is not None:
            self._on_saved(seller_id)

    def add_rule(self, seller_id: str, rule: Rule) -> DetectionPolicy:
        """Append *rule* to the seller's policy (created with defaults if missing)."""
        errors = validate_rule(rule)
        if errors:
            raise PolicyDocumentError(errors)
        policy = self.get_or_create_policy(seller_id)
        policy = dataclasses.replace(policy, rules=policy.rules + (rule,))
        self.save_policy(seller_id, policy)
        return policy

    def _settings_row(self, seller_id):
        return self._session.execute(
            select(OrmSettings).where(OrmSettings.seller_id == seller_id)
        ).scalar_one_or_none()


class SqlAlchemyDuplicateFlagRepository(DuplicateFlagRepository):
    """SQLAlchemy adapter for the DuplicateFlagRepository port."""

    def __init__(self, session: Session) -> None:
        self._session = session

    # ── Commands ───────────────────────────────────────────────────────

    def flag_order(
        self, order_id: str, references: list[DomainDoubleOrderReference]
    ) -> None:
        """Mark the order as a double and replace its references."""
        order = self._session.get(OrmOrder, order_id)
        if order is None:
            raise ValueError(f"Order {order_id} not found")
        self._session.execute(
            delete(OrmDoubleOrderReference).where(
                OrmDoubleOrderReference.order_id == order_id
            )
        )
        order.is_double = bool(references)
        self._session.add_all(
            OrmDoubleOrderReference(
                order_id=order_id,
                referenced_order_id=ref.order_id,
                referenced_order_number=ref.order_number,
                matched_rule=ref.matched_rule,
                detected_at=to_storage_time(ref.detected_at),
            )
            for ref in references
        )
        self._session.flush()

    # ── Queries ────────────────────────────────────────────────────────

    def list_references(self, order_id: str) -> list[DomainDoubleOrderReference]:
        stmt = (
            select(OrmDoubleOrderReference)
            .where(OrmDoubleOrderReference.order_id == order_id)
            .order_by(OrmDoubleOrderReference.id)
        )
        return [
            DomainDoubleOrderReference(
                order_id=orm.referenced_order_id,
                order_number=orm.referenced_order_number,
                matched_rule=orm.matched_rule,
                detected_at=from_storage_time(orm.detected_at),
            )
            for orm in self._session.scalars(stmt)
        ]
