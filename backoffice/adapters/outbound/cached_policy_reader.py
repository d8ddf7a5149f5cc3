"""PolicyReader decorator that keeps decoded settings documents in a CachePort."""

from __future__ import annotations

from backoffice.adapters.outbound.policy_document import decode_policy, encode_policy
from domain.models import DetectionPolicy
from domain.ports import CachePort, PolicyReader

# Sellers without settings are cached too, so the store is not hit on every order.
_NO_POLICY = {"__absent__": True}


class CachedPolicyReader(PolicyReader):
    """Serve policies from *cache*, reading through to *inner* on a miss.

    Entries live for *ttl* seconds; callers that edit settings should call
    ``invalidate`` for the seller.
    """

    PREFIX = "policy:"

    def __init__(self, inner: PolicyReader, cache: CachePort, ttl: int = 60) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl

    def get_policy(self, seller_id: str) -> DetectionPolicy | None:
        key = self._key(seller_id)
        cached = self._cache.get(key)
        if cached is not None:
            return None if cached == _NO_POLICY else decode_policy(cached)
        policy = self._inner.get_policy(seller_id)
        self._cache.set(
            key, _NO_POLICY if policy is None else encode_policy(policy), ttl=self._ttl
        )
        return policy

    def invalidate(self, seller_id: str) -> None:
        self._cache.invalidate(self._key(seller_id))

    def _key(self, seller_id):
        # Trailing ":" keeps "seller1" from also matching "seller10" on invalidation.
        return f"{self.PREFIX}{seller_id}:"
