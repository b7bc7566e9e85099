from datetime import datetime, timedelta, timezone
from typing import Callable
import logging
import jwt

from .errors import TokenError

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_LIFETIME = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bound identity tokens (JWT).

    Verification is stateless: there is no revocation list, a token stays
    valid until it expires.
    """

    def __init__(
        self,
        secret: str,
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self._secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm
        self._clock = clock

    def issue(self, user_id: str) -> str:
        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """Returns the user id bound to ``token`` or raises TokenError."""
        if not token:
            raise TokenError(TokenError.MISSING)
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenError(TokenError.EXPIRED)
        except jwt.InvalidSignatureError:
            raise TokenError(TokenError.INVALID_SIGNATURE)
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected undecodable token: {e}")
            raise TokenError(TokenError.MALFORMED)

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise TokenError(TokenError.MALFORMED)
        return user_id
