"""Password service for hashing and verification with Passlib.

Argon2id is the primary scheme; bcrypt hashes (imported accounts) still
verify and are re-hashed on the next successful login.
"""

import secrets
import string

from passlib.context import CryptContext
from passlib.exc import UnknownHashError

COMMON_PASSWORDS = frozenset(
    {
        "password",
        "123456",
        "password123",
        "admin",
        "qwerty",
        "letmein",
        "welcome",
        "password1",
    }
)


class PasswordService:
    """Service responsible only for password operations."""

    def __init__(self, schemes: list[str] | None = None) -> None:
        self.pwd_context = CryptContext(
            schemes=schemes or ["argon2", "bcrypt"],
            deprecated="auto",
            argon2__type="ID",
            argon2__time_cost=3,
            argon2__memory_cost=65536,  # 64 MiB
            argon2__parallelism=4,
        )

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plaintext password against its hash."""
        if not plain_password or not hashed_password:
            return False

        try:
            return bool(self.pwd_context.verify(plain_password, hashed_password))
        except (UnknownHashError, ValueError):
            return False

    def get_password_hash(self, password: str) -> str:
        """Validate strength and hash ``password``."""
        if not password:
            raise ValueError("Password cannot be empty")

        self._validate_password_strength(password)
        return str(self.pwd_context.hash(password))

    def generate_random_password(self, length: int = 12) -> str:
        """Generate a password that passes strength validation."""
        if length < 8:
            raise ValueError("Password length must be at least 8 characters")

        alphabet = string.ascii_letters + string.digits + "!@#$%^&*"
        while True:
            password = "".join(secrets.choice(alphabet) for _ in range(length))
            if any(c.isdigit() for c in password) and any(
                c.isalpha() for c in password
            ):
                return password

    def _validate_password_strength(self, password: str) -> None:
        if len(password) < 8:
            raise ValueError("Password must be at least 8 characters long")
        if not any(char.isdigit() for char in password):
            raise ValueError("Password must contain at least one digit")
        if not any(char.isalpha() for char in password):
            raise ValueError("Password must contain at least one letter")
        if password.lower() in COMMON_PASSWORDS:
            raise ValueError("Password is too common")

    def update_hash_if_needed(
        self, plain_password: str, current_hash: str
    ) -> str | None:
        """Return a fresh hash when ``current_hash`` uses a deprecated scheme."""
        try:
            if self.pwd_context.needs_update(current_hash):
                return str(self.pwd_context.hash(plain_password))
        except (UnknownHashError, ValueError):
            return None
        return None
