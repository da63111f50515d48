"""
Pending one-time passcodes, one per phone number.

Two backends share the same contract:

- ``put`` overwrites whatever is pending for the phone (last writer wins).
- ``pop`` removes the entry and returns the value it held at removal time,
  so two concurrent verifications can never both see the same code.
- ``restore`` puts a popped entry back only if nothing newer was written
  in the meantime.

Expiry is NOT enforced by the store: entries are kept for a retention window
past ``expires_at`` so a late verification can be told "expired" rather than
"not found". Callers compare ``expires_at`` against the wall clock.
"""
import json
import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta

from yenko.models.base import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpEntry:
    code: str
    expires_at: datetime

    def is_expired(self, now=None):
        return (now or utcnow()) > self.expires_at

    def to_json(self):
        return json.dumps({"code": self.code, "expires_at": self.expires_at.isoformat()})

    @classmethod
    def from_json(cls, raw):
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        data = json.loads(raw)
        return cls(code=data["code"], expires_at=datetime.fromisoformat(data["expires_at"]))


class OtpStore:
    """Interface for OTP backends."""

    def put(self, phone, entry):
        raise NotImplementedError

    def get(self, phone):
        raise NotImplementedError

    def pop(self, phone):
        raise NotImplementedError

    def restore(self, phone, entry):
        raise NotImplementedError


# ---------------------------------------------------------------------------
# In-process store (development / single worker / tests)
# ---------------------------------------------------------------------------
class MemoryOtpStore(OtpStore):

    def __init__(self, retention_seconds=3600):
        self._retention = timedelta(seconds=retention_seconds)
        self._entries = {}
        self._lock = threading.Lock()

    def _sweep(self, now):
        stale = [p for p, e in self._entries.items() if now > e.expires_at + self._retention]
        for phone in stale:
            del self._entries[phone]

    def put(self, phone, entry):
        with self._lock:
            self._sweep(utcnow())
            self._entries[phone] = entry

    def get(self, phone):
        with self._lock:
            return self._entries.get(phone)

    def pop(self, phone):
        with self._lock:
            return self._entries.pop(phone, None)

    def restore(self, phone, entry):
        with self._lock:
            if phone in self._entries:
                return False
            self._entries[phone] = entry
            return True

    def __len__(self):
        return len(self._entries)


# ---------------------------------------------------------------------------
# Redis store (production, shared between workers)
# ---------------------------------------------------------------------------
class RedisOtpStore(OtpStore):
    key_prefix = "yenko:otp:"

    def __init__(self, client, retention_seconds=3600):
        self._redis = client
        self._retention = retention_seconds

    @classmethod
    def from_url(cls, url, retention_seconds=3600):
        import redis
        return cls(redis.Redis.from_url(url), retention_seconds=retention_seconds)

    def _key(self, phone):
        return self.key_prefix + phone

    def _ttl_ms(self, entry):
        remaining = (entry.expires_at - utcnow()).total_seconds() + self._retention
        return max(int(remaining * 1000), 1)

    def put(self, phone, entry):
        self._redis.set(self._key(phone), entry.to_json(), px=self._ttl_ms(entry))

    def get(self, phone):
        raw = self._redis.get(self._key(phone))
        return OtpEntry.from_json(raw) if raw else None

    def pop(self, phone):
        # GETDEL is atomic on the server
        raw = self._redis.getdel(self._key(phone))
        return OtpEntry.from_json(raw) if raw else None

    def restore(self, phone, entry):
        return bool(self._redis.set(self._key(phone), entry.to_json(), px=self._ttl_ms(entry), nx=True))


def build_otp_store(config):
    """Pick the backend from app config (REDIS_URL wins when set)."""
    retention = config.get("OTP_RETENTION_SECONDS", 3600)
    redis_url = config.get("REDIS_URL")
    if redis_url:
        logger.info("Using Redis OTP store")
        return RedisOtpStore.from_url(redis_url, retention_seconds=retention)
    return MemoryOtpStore(retention_seconds=retention)
