#!/usr/bin/env python3
"""Load sample orders and a detection policy, then check a new order.

Usage:
    PYTHONPATH=. python scripts/load_demo_data.py

Creates 3 orders for seller "demo-seller", gives the seller default settings
plus two rules (on first run) and runs the duplicate check on a fourth
order placed 30 minutes later.
"""
import os
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

from sqlalchemy.orm import Session

from backoffice.adapters.outbound.sqlalchemy_models import Order, OrderLine
from backoffice.adapters.outbound.sqlalchemy_repos import SqlAlchemyCandidateFinder
from backoffice.app import build_order_intake, build_policy_store
from backoffice.config import configure_logging, load_config
from backoffice.data.db import get_engine, init_db
from domain.models import (
    Condition,
    FieldType,
    LogicalOperator,
    Rule,
    TimeUnit,
    TimeWindow,
)

SELLER = "demo-seller"


def main():
    config = load_config()
    configure_logging(config)
    engine = get_engine(config["database"]["url"])
    init_db(engine)

    now = datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)

    with Session(engine) as session:
        session.add_all([
            Order(
                order_number="ORD-DEMO-0001", seller_id=SELLER, warehouse_id="wh-casa",
                customer_name="John Doe", customer_phones=["(123) 456-7890"],
                shipping_address="123 Main St", total_price=Decimal("67.48"),
                order_date=now - timedelta(minutes=30),
                lines=[OrderLine(position=0, product_id="prod1", quantity=2,
                                 unit_price=Decimal("25.99"))],
            ),
            Order(
                order_number="ORD-DEMO-0002", seller_id=SELLER, warehouse_id="wh-rabat",
                customer_name="Jane Smith", customer_phones=["+212600000000"],
                shipping_address="9 Ocean Rd", total_price=Decimal("15.50"),
                order_date=now - timedelta(hours=5),
                lines=[OrderLine(position=0, product_id="prod2", quantity=1,
                                 unit_price=Decimal("15.50"))],
            ),
            Order(
                order_number="ORD-DEMO-0003", seller_id=SELLER, warehouse_id="wh-casa",
                customer_name="Old Customer", customer_phones=["+1234567890"],
                shipping_address="123 Main St", total_price=Decimal("67.48"),
                order_date=now - timedelta(days=3),
            ),
        ])

        store, policy_reader = build_policy_store(config, session)
        if not store.get_or_create_policy(SELLER).rules:
            store.add_rule(SELLER, Rule(
                name="Same phone within the hour",
                time_window=TimeWindow(60, TimeUnit.MINUTES),
                conditions=(Condition(FieldType.CUSTOMER_PHONE),),
            ))
            store.add_rule(SELLER, Rule(
                name="Same address and total within a day",
                time_window=TimeWindow(1, TimeUnit.DAYS),
                logical_operator=LogicalOperator.AND,
                conditions=(
                    Condition(FieldType.CUSTOMER_ADDRESS),
                    Condition(FieldType.ORDER_TOTAL),
                ),
            ))

        new_order = Order(
            order_number="ORD-DEMO-0004", seller_id=SELLER, warehouse_id="wh-casa",
            customer_name="john doe ", customer_phones=["123.456.7890"],
            shipping_address="123  main st", total_price=Decimal("67.48"),
            order_date=now,
            lines=[OrderLine(position=0, product_id="prod1", quantity=1,
                             unit_price=Decimal("25.99"))],
        )
        session.add(new_order)
        session.flush()

        snapshot = SqlAlchemyCandidateFinder._to_domain(new_order)
        result = build_order_intake(
            config, session, policy_reader=policy_reader
        ).on_order_created(snapshot)
        session.commit()

    print(f"Duplicate: {result.is_duplicate} ({result.rules_checked} rule(s) checked)")
    for match in result.duplicate_orders:
        print(f"  {match.candidate_order_number}: {match.matched_rule_name}")


if __name__ == "__main__":
    main()
