"""Password hashing for student credentials.

We use passlib's pbkdf2_sha256: every hash embeds a fresh random salt and the
round count, so the same plaintext never hashes to the same string and older
hashes keep verifying after the round count is raised.
"""
from passlib.context import CryptContext

from app.core.errors import CredentialHashError

MIN_HASH_ROUNDS = 10000


class PasswordHasher:
    def __init__(self, rounds: int = 29000):
        if rounds < MIN_HASH_ROUNDS:
            raise ValueError(f"password hash rounds must be at least {MIN_HASH_ROUNDS}")
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__rounds=rounds,
        )

    def hash(self, plain: str) -> str:
        return self._context.hash(plain)

    def verify(self, plain: str, hashed: str | None) -> bool:
        """False on mismatch; CredentialHashError when the stored hash is unusable."""
        if not hashed:
            raise CredentialHashError("Stored password hash is missing")
        try:
            return self._context.verify(plain, hashed)
        except (ValueError, TypeError) as exc:
            raise CredentialHashError(f"Stored password hash is malformed: {type(exc).__name__}") from exc

    def dummy_verify(self) -> bool:
        return self._context.dummy_verify()
