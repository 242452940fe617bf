# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, cast
from uuid import uuid4

import redis  # type: ignore[import-untyped]

from refresh_engine.services._shared.policies.tokens import is_active
from refresh_engine.services._shared.ports import RefreshTokenRecord, TokenRecordStore


def _b(s: bytes | str | None, default: str = "") -> str:
    if s is None:
        return default
    return s.decode() if isinstance(s, bytes | bytearray) else str(s)


@dataclass(slots=True)
class RedisTokenRecordStore(TokenRecordStore):
    """
    Redis-backed refresh-token store.

    Layout
    ------
    * ``rt:{jti}``: hash with the record fields (key TTL = time to expiry + retention).
    * ``rt:f:{family}``: set of jtis in a family.
    * ``rt:u:{user_id}``: set of jtis owned by a user.
    * ``rt:exp``: sorted set ``jti -> expires_at`` (epoch seconds) for cleanup.

    Conditional updates run under WATCH/MULTI/EXEC (optimistic locking) and
    retry when a watched key changes underneath.

    :param r: A Redis client (already connected, ``decode_responses=False``).
    :param retention_seconds: Extra key lifetime past ``expires_at``.
    """

    r: redis.Redis
    retention_seconds: int = 86400

    # -------------------- helpers --------------------

    @staticmethod
    def _k(jti: str) -> str:
        return f"rt:{jti}"

    @staticmethod
    def _kf(token_family: str) -> str:
        return f"rt:f:{token_family}"

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    K_EXP = "rt:exp"

    @staticmethod
    def _to_ts(dt: datetime) -> float:
        # Naive values are labelled as UTC (no conversion)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.timestamp()

    @staticmethod
    def _dt(raw: str) -> datetime | None:
        return datetime.fromisoformat(raw) if raw else None

    def _members(self, key: str) -> list[str]:
        return sorted(_b(m) for m in self.r.smembers(key))

    def _to_record(self, jti: str, h: dict[bytes, bytes]) -> RefreshTokenRecord:
        return RefreshTokenRecord(
            id=_b(h.get(b"id")),
            jti=jti,
            token_family=_b(h.get(b"token_family")),
            secret_hash=_b(h.get(b"secret_hash")),
            user_id=_b(h.get(b"user_id")),
            is_used=_b(h.get(b"is_used"), "0") == "1",
            is_revoked=_b(h.get(b"is_revoked"), "0") == "1",
            expires_at=cast(datetime, self._dt(_b(h.get(b"expires_at")))),
            created_at=cast(datetime, self._dt(_b(h.get(b"created_at")))),
            last_used_at=self._dt(_b(h.get(b"last_used_at"))),
            replaced_by_jti=_b(h.get(b"replaced_by_jti")) or None,
            ip_address=_b(h.get(b"ip_address")) or None,
            user_agent=_b(h.get(b"user_agent")) or None,
        )

    def _load(self, jtis: Iterable[str]) -> list[RefreshTokenRecord]:
        jtis = list(jtis)
        if not jtis:
            return []
        pipe = self.r.pipeline(transaction=False)
        for j in jtis:
            pipe.hgetall(self._k(j))
        rows = cast(list[dict[bytes, bytes]], pipe.execute())
        return [self._to_record(j, h) for j, h in zip(jtis, rows, strict=True) if h]

    def _watched(self, keys: list[str], body: Callable[[Any], Any]) -> Any:
        """Run ``body(pipe)`` under WATCH on ``keys``, retrying on conflicts.

        ``body`` reads through the pipe (immediate mode), then calls
        ``pipe.multi()`` and queues writes; its return value is passed through.
        """
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(*keys)
                    return body(p)
            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    def _revoke_jtis(self, index_key: str, predicate: Callable[[dict[bytes, bytes]], bool]) -> int:
        """Revoke every indexed record matching ``predicate``.

        The index is read under WATCH inside the retried body, so a jti added
        by a concurrent insert aborts the transaction and is picked up on retry.
        """

        def body(p: Any) -> int:
            jtis = sorted(_b(m) for m in p.smembers(index_key))
            if not jtis:
                p.unwatch()
                return 0
            keys = [self._k(j) for j in jtis]
            p.watch(*keys)
            targets = []
            for j, k in zip(jtis, keys, strict=True):
                h = p.hgetall(k)
                if h and _b(h.get(b"is_revoked"), "0") != "1" and predicate(h):
                    targets.append(k)
            if not targets:
                p.unwatch()
                return 0
            p.multi()
            for k in targets:
                p.hset(k, "is_revoked", "1")
            p.execute()
            return len(targets)

        return cast(int, self._watched([index_key], body))

    # -------------------- API ------------------------

    def find_by_jti(self, jti: str) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(jti))
        if not h:
            return None
        return self._to_record(jti, h)

    def insert(
        self,
        *,
        jti: str,
        token_family: str,
        secret_hash: str,
        user_id: str,
        expires_at: datetime,
        created_at: datetime,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> RefreshTokenRecord:
        """
        Insert the record *before* the signed token leaves the process.

        :raises ValueError: If ``jti`` is already present.
        """
        key = self._k(jti)
        exp_ts = self._to_ts(expires_at)
        # Keep the hash past expiry so late presentations still read as expired
        ttl = max(1, int(exp_ts - self._to_ts(created_at))) + self.retention_seconds
        mapping = {
            "id": uuid4().hex,
            "token_family": token_family,
            "secret_hash": secret_hash,
            "user_id": user_id,
            "is_used": "0",
            "is_revoked": "0",
            "expires_at": expires_at.isoformat(),
            "created_at": created_at.isoformat(),
        }
        if ip_address:
            mapping["ip_address"] = ip_address
        if user_agent:
            mapping["user_agent"] = user_agent

        def body(p: Any) -> None:
            if p.exists(key):
                p.unwatch()
                raise ValueError(f"Duplicate jti: {jti}")
            p.multi()
            p.hset(key, mapping=mapping)
            p.expire(key, ttl)
            p.sadd(self._kf(token_family), jti)
            p.sadd(self._ku(user_id), jti)
            p.zadd(self.K_EXP, {jti: exp_ts})
            p.execute()

        self._watched([key], body)
        return self._to_record(jti, {k.encode(): v.encode() for k, v in mapping.items()})

    def mark_used(self, *, jti: str, used_at: datetime, replaced_by_jti: str) -> bool:
        key = self._k(jti)

        def body(p: Any) -> bool:
            h = p.hgetall(key)
            if (
                not h
                or _b(h.get(b"is_used"), "0") == "1"
                or _b(h.get(b"is_revoked"), "0") == "1"
            ):
                p.unwatch()
                return False
            p.multi()
            p.hset(
                key,
                mapping={
                    "is_used": "1",
                    "last_used_at": used_at.isoformat(),
                    "replaced_by_jti": replaced_by_jti,
                },
            )
            p.execute()
            return True

        return cast(bool, self._watched([key], body))

    def revoke_family(self, *, token_family: str, user_id: str) -> int:
        return self._revoke_jtis(
            self._kf(token_family), lambda h: _b(h.get(b"user_id")) == user_id
        )

    def revoke_all_for_user(self, user_id: str) -> int:
        return self._revoke_jtis(self._ku(user_id), lambda h: True)

    def revoke(self, jti: str) -> bool:
        key = self._k(jti)

        def body(p: Any) -> bool:
            h = p.hgetall(key)
            if not h or _b(h.get(b"is_revoked"), "0") == "1":
                p.unwatch()
                return False
            p.multi()
            p.hset(key, "is_revoked", "1")
            p.execute()
            return True

        return cast(bool, self._watched([key], body))

    def list_family(self, token_family: str) -> list[RefreshTokenRecord]:
        rows = self._load(self._members(self._kf(token_family)))
        return sorted(rows, key=lambda r: r.created_at)

    def list_active(self, user_id: str, now: datetime) -> list[RefreshTokenRecord]:
        key_u = self._ku(user_id)
        members = self._members(key_u)
        rows = self._load(members)
        stale = sorted(set(members) - {r.jti for r in rows})
        if stale:
            # Underlying hash expired -> drop from the user's index
            self.r.srem(key_u, *stale)
        active = [r for r in rows if is_active(r, now)]
        return sorted(active, key=lambda r: r.created_at, reverse=True)

    def count_active(self, user_id: str, now: datetime) -> int:
        return len(self.list_active(user_id, now))

    def delete_expired(self, now: datetime) -> int:
        expired = [_b(j) for j in self.r.zrangebyscore(self.K_EXP, "-inf", self._to_ts(now))]
        if not expired:
            return 0
        rows = {r.jti: r for r in self._load(expired)}
        pipe = self.r.pipeline(transaction=True)
        for j in expired:
            rec = rows.get(j)
            if rec is not None:
                pipe.srem(self._kf(rec.token_family), j)
                pipe.srem(self._ku(rec.user_id), j)
            pipe.delete(self._k(j))
        pipe.zrem(self.K_EXP, *expired)
        pipe.execute()
        return len(rows)
