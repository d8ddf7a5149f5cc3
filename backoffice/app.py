"""Composition root: wires adapters into the duplicate detector."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy.orm import Session

from backoffice.adapters.outbound.cached_policy_reader import CachedPolicyReader
from backoffice.adapters.outbound.redis_cache import RedisCacheAdapter, connect_redis
from backoffice.adapters.outbound.sqlalchemy_repos import (
    SqlAlchemyCandidateFinder,
    SqlAlchemyDuplicateFlagRepository,
    SqlAlchemyPolicyReader,
)
from backoffice.order_intake import OrderIntake
from domain.duplicate_detector import DuplicateDetector
from domain.ports import PolicyReader

logger = logging.getLogger(__name__)


def build_executor(config: dict) -> ThreadPoolExecutor | None:
    """Thread pool for candidate evaluation, or None to evaluate inline."""
    workers = int(config.get("detection", {}).get("max_workers", 1) or 1)
    if workers <= 1:
        return None
    return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="dupcheck")


def _policy_cache(config: dict, redis_client=None) -> RedisCacheAdapter | None:
    if redis_client is None:
        redis_client = connect_redis(config.get("cache", {}).get("redis_url"))
    if redis_client is None:
        return None
    return RedisCacheAdapter(redis_client)


def build_policy_store(
    config: dict, session: Session, redis_client=None
) -> tuple[SqlAlchemyPolicyReader, PolicyReader]:
    """Return ``(store, reader)`` for duplicate detection settings.

    *store* takes settings-page writes; *reader* is what the detector reads,
    fronted by a Redis cache when ``cache.redis_url`` is reachable. Writes
    through *store* drop the seller's cached entry at once. Writes made by
    other processes are seen after at most ``cache.policy_ttl`` seconds.
    """
    cache = _policy_cache(config, redis_client)
    if cache is None:
        store = SqlAlchemyPolicyReader(session)
        return store, store

    logger.info("Caching detection policies in Redis")
    cached = None

    def invalidate(seller_id):
        cached.invalidate(seller_id)

    store = SqlAlchemyPolicyReader(session, on_saved=invalidate)
    cached = CachedPolicyReader(
        store, cache, ttl=int(config.get("cache", {}).get("policy_ttl", 60))
    )
    return store, cached


def build_detector(
    config: dict,
    session: Session,
    executor: ThreadPoolExecutor | None = None,
    redis_client=None,
    policy_reader: PolicyReader | None = None,
) -> DuplicateDetector:
    """Build a DuplicateDetector reading settings and orders through *session*.

    Pass the reader half of ``build_policy_store`` as *policy_reader* when the
    same process also edits settings; otherwise a fresh one is built.
    """
    if policy_reader is None:
        _, policy_reader = build_policy_store(config, session, redis_client)
    return DuplicateDetector(
        policy_reader=policy_reader,
        candidate_finder=SqlAlchemyCandidateFinder(session),
        executor=executor,
    )


def build_order_intake(config: dict, session: Session, **kwargs) -> OrderIntake:
    return OrderIntake(
        build_detector(config, session, **kwargs),
        SqlAlchemyDuplicateFlagRepository(session),
    )
