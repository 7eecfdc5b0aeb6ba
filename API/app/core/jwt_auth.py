"""JWT creation and verification for student auth."""
from datetime import datetime, timedelta, timezone

import jwt

from app.core.errors import UnauthorizedError

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class TokenIssuer:
    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret:
            raise ValueError("token signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl = timedelta(minutes=expire_minutes)

    def issue(self, student_id: str, expires_in: timedelta | None = None) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (self._ttl if expires_in is None else expires_in)
        payload = {
            "sub": student_id,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> str:
        """Return the token subject; any decoding failure is an UnauthorizedError."""
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE) from exc
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            raise UnauthorizedError(INVALID_TOKEN_MESSAGE)
        return subject
