"""Hot-key sharding in front of the engine.

A rule with shard_count N splits one logical key into N sub-keys, each
enforcing its share of the limit (shares sum exactly to the parent limit).
Every request lands on one shard, so contention on the hot key drops by
roughly N. No request ever reads more than one shard; the price is that a
client can be denied by its shard while others still hold quota, so the
effective limit is approximate under skew.

Shard selection: crc32(request_id) % N when a request id is supplied (the
same request always lands on the same shard), uniformly random otherwise.
"""

import random
import zlib

from ratekeeper.application.engine import RateLimiterEngine
from ratekeeper.domain.value_objects import Decision, RateLimitKey, RateLimitRule


class ShardRouter:
    """Routes checks to one shard of a sharded rule (RateLimiterProtocol).

    Args:
        engine: Engine performing the per-shard check.
        rng: Random source for requests without an id.
    """

    def __init__(self, *, engine: RateLimiterEngine, rng: random.Random | None = None) -> None:
        self._engine = engine
        self._rng = rng or random.Random()

    def shard_for(self, rule: RateLimitRule, request_id: str | None) -> int:
        """Pick the shard index a request uses."""
        if request_id is None:
            return self._rng.randrange(rule.shard_count)
        return zlib.crc32(request_id.encode("utf-8")) % rule.shard_count

    async def check(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        if rule.shard_count == 1:
            return await self._engine.check(key, rule, cost, now=now)
        index = self.shard_for(rule, request_id)
        return await self._engine.check(key.with_shard(index), rule.for_shard(index), cost, now=now)

    async def peek(
        self,
        key: RateLimitKey,
        rule: RateLimitRule,
        cost: int | None = None,
        *,
        now: float | None = None,
        request_id: str | None = None,
    ) -> Decision:
        if rule.shard_count == 1:
            return await self._engine.peek(key, rule, cost, now=now)
        index = self.shard_for(rule, request_id)
        return await self._engine.peek(key.with_shard(index), rule.for_shard(index), cost, now=now)
