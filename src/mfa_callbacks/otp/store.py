"""Thread-safe in-memory OTP store, sharded by identity."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_SHARDS = 32


@dataclass(frozen=True)
class OtpRecord:
    """One outstanding challenge. Immutable once stored."""

    identity: str
    code: str
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


class _Shard:
    __slots__ = ("lock", "records")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.records: dict[str, OtpRecord] = {}


class OtpStore:
    """In-memory mapping of ``identity → OtpRecord``.

    Identities are spread across a fixed number of shards, each guarded
    by its own lock.  Every read-modify-write on an identity runs under
    that identity's shard lock, so operations on one identity are
    linearizable while operations on identities in other shards never
    contend.  Critical sections never perform I/O.
    """

    def __init__(self, shards: int = DEFAULT_SHARDS) -> None:
        if shards < 1:
            raise ValueError("shards must be at least 1")
        self._shards = [_Shard() for _ in range(shards)]

    def _shard(self, identity: str) -> _Shard:
        return self._shards[hash(identity) % len(self._shards)]

    def get(self, identity: str) -> OtpRecord | None:
        shard = self._shard(identity)
        with shard.lock:
            return shard.records.get(identity)

    def put(self, record: OtpRecord, *, unless_fresh_at: float | None = None) -> bool:
        """Store *record*, replacing any earlier record for its identity.

        When *unless_fresh_at* is given, an existing record that is still
        fresh at that instant is kept and ``False`` is returned.
        """
        shard = self._shard(record.identity)
        with shard.lock:
            if unless_fresh_at is not None:
                current = shard.records.get(record.identity)
                if current is not None and current.is_fresh(unless_fresh_at):
                    return False
            shard.records[record.identity] = record
            return True

    def pop_if(
        self, identity: str, predicate: Callable[[OtpRecord], bool]
    ) -> OtpRecord | None:
        """Atomically remove and return the record if *predicate* holds for it."""
        shard = self._shard(identity)
        with shard.lock:
            record = shard.records.get(identity)
            if record is None or not predicate(record):
                return None
            del shard.records[identity]
            return record

    def remove_expired(self, now: float) -> int:
        """Remove every record whose expiry is at or before *now*.

        Shards are purged one at a time, so foreground operations on other
        shards proceed while the sweep runs.
        """
        removed = 0
        for shard in self._shards:
            with shard.lock:
                expired = [
                    identity
                    for identity, record in shard.records.items()
                    if not record.is_fresh(now)
                ]
                for identity in expired:
                    del shard.records[identity]
            removed += len(expired)
        return removed

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.records)
        return total
