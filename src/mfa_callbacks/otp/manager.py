"""OTP lifecycle manager — issues, validates, consumes and expires codes."""

from __future__ import annotations

import hmac
import logging
import secrets
import string
import time
from collections.abc import Callable
from datetime import timedelta

from mfa_callbacks.exceptions import InvalidArgumentError, OtpAlreadyPendingError
from mfa_callbacks.otp.store import OtpRecord, OtpStore

logger = logging.getLogger(__name__)

MIN_CODE_LENGTH = 4
MAX_CODE_LENGTH = 8
DEFAULT_CODE_LENGTH = 6
DEFAULT_VALIDITY = timedelta(minutes=5)


class OtpManager:
    """Owns the OTP store and enforces the one-time-passcode rules.

    * ``issue`` always leaves exactly one live record per identity.
    * ``validate`` consumes a record on the first correct, unexpired code.
      A wrong code on a fresh record leaves it in place so the user can
      retry; an expired record is dropped as soon as it is seen.
    * Unknown, wrong, expired and already-consumed codes all report
      ``False`` so callers cannot tell them apart.
    """

    def __init__(
        self,
        store: OtpStore | None = None,
        *,
        code_length: int = DEFAULT_CODE_LENGTH,
        validity: timedelta = DEFAULT_VALIDITY,
        allow_reissue: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store if store is not None else OtpStore()
        self._clock = clock
        self._allow_reissue = allow_reissue
        self._code_length = DEFAULT_CODE_LENGTH
        self._validity = DEFAULT_VALIDITY
        self.configure(code_length=code_length, validity=validity)

    def configure(
        self,
        code_length: int | None = None,
        validity: timedelta | None = None,
    ) -> None:
        """Update the code length and/or validity applied to new codes.

        The code length is kept within ``MIN_CODE_LENGTH``..``MAX_CODE_LENGTH``,
        the range accepted by the verification endpoint.
        Records already issued keep the expiry they were created with.
        """
        if code_length is not None:
            self._code_length = min(MAX_CODE_LENGTH, max(MIN_CODE_LENGTH, code_length))
        if validity is not None:
            if validity.total_seconds() <= 0:
                validity = DEFAULT_VALIDITY
            self._validity = validity
        logger.debug(
            "OTP manager configured: length=%d, validity=%ss",
            self._code_length,
            self._validity.total_seconds(),
        )

    @property
    def code_length(self) -> int:
        return self._code_length

    @property
    def validity(self) -> timedelta:
        return self._validity

    @property
    def pending_count(self) -> int:
        """Number of records currently held, expired-but-unswept included."""
        return len(self._store)

    def issue(self, identity: str) -> str:
        """Generate, store and return a new code for *identity*.

        Any earlier outstanding code for the same identity is discarded,
        unless reissue is disabled and that code is still fresh.
        """
        if identity is None or not identity.strip():
            raise InvalidArgumentError("Identity cannot be null or empty")

        code = self._generate_code()
        now = self._clock()
        record = OtpRecord(
            identity=identity,
            code=code,
            expires_at=now + self._validity.total_seconds(),
        )

        guard = None if self._allow_reissue else now
        if not self._store.put(record, unless_fresh_at=guard):
            logger.info("OTP already pending for %s, reissue refused", identity)
            raise OtpAlreadyPendingError(identity)

        logger.debug("Generated OTP for %s", identity)
        return code

    def validate(self, identity: str | None, code: str | None) -> bool:
        """Check *code* against the pending record for *identity*.

        Returns ``True`` exactly once per issued code.
        """
        if identity is None or code is None:
            return False

        now = self._clock()

        def matches(record: OtpRecord) -> bool:
            return hmac.compare_digest(code.encode(), record.code.encode())

        # Expired records go regardless of the code; fresh ones only on a match.
        consumed = self._store.pop_if(
            identity, lambda record: not record.is_fresh(now) or matches(record)
        )
        if consumed is None:
            logger.debug("OTP rejected for %s", identity)
            return False

        if not consumed.is_fresh(now):
            logger.debug("OTP expired for %s", identity)
            return False

        logger.debug("OTP accepted for %s", identity)
        return True

    def sweep_expired(self) -> int:
        """Purge every record expired as of now and return how many went."""
        removed = self._store.remove_expired(self._clock())
        logger.debug(
            "Swept %d expired OTP(s); %d still pending", removed, len(self._store)
        )
        return removed

    def _generate_code(self) -> str:
        return "".join(secrets.choice(string.digits) for _ in range(self._code_length))
