"""
Admin Gate
Day-scoped write capability.

A successful login yields a signed token that embeds the local calendar day.
Verification is stateless: signature, age and day must all check out.
"""

from __future__ import annotations

import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Optional

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from portfolio_dashboard.utils.time import end_of_day, local_tz, today_key

logger = logging.getLogger(__name__)

TOKEN_SALT = "admin-gate"
MAX_TOKEN_AGE_SECONDS = 24 * 60 * 60


@dataclass(frozen=True)
class AdminToken:
    value: str
    day: str
    expires_at: datetime

    def max_age(self, now: datetime) -> int:
        return max(0, int((self.expires_at - now).total_seconds()))


class AdminGate:
    def __init__(
        self,
        secret_key: str,
        password: str,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._serializer = URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)
        self._password = password
        self._tz = tz
        self._clock = clock

    def now(self) -> datetime:
        if self._clock is not None:
            return self._clock()
        return datetime.now(self._tz or local_tz())

    def check_password(self, password: Optional[str]) -> bool:
        if not password or not self._password:
            return False
        return hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))

    def issue(self, password: Optional[str]) -> Optional[AdminToken]:
        """Token valid until the end of the current local day, or None on a bad password."""
        if not self.check_password(password):
            logger.warning("Admin login rejected")
            return None
        now = self.now()
        day = today_key(now)
        value = self._serializer.dumps({"day": day, "nonce": secrets.token_hex(8)})
        logger.info("Admin token issued for %s", day)
        return AdminToken(value=value, day=day, expires_at=end_of_day(now))

    def verify(self, token: Optional[str]) -> bool:
        if not token:
            return False
        try:
            data = self._serializer.loads(token, max_age=MAX_TOKEN_AGE_SECONDS)
        except SignatureExpired:
            logger.debug("Admin token expired")
            return False
        except BadSignature:
            logger.debug("Admin token signature mismatch")
            return False
        if not isinstance(data, dict):
            return False
        return data.get("day") == today_key(self.now())
