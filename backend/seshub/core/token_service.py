"""
Token service for JWT token management.

Staff tokens carry ``company_id`` and ``user_type="ses"``. Client tokens carry
``user_type="client"`` together with the client company, the SES company and
the business partner linking them.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any, cast

from jose import JWTError, jwt  # type: ignore[import-untyped]

from .config import get_settings

settings = get_settings()

USER_TYPE_SES = "ses"
USER_TYPE_CLIENT = "client"


class TokenService:
    """Service responsible only for token operations."""

    def __init__(
        self, secret_key: str | None = None, algorithm: str | None = None
    ) -> None:
        self.secret_key = secret_key or settings.SECRET_KEY
        self.algorithm = algorithm or settings.ALGORITHM

    def _encode(
        self, data: dict[str, Any], token_type: str, lifetime: timedelta
    ) -> str:
        issued_at = datetime.now(UTC)
        claims = {
            **data,
            "exp": int((issued_at + lifetime).timestamp()),
            "type": token_type,
            "iat": int(issued_at.timestamp()),
            "jti": str(uuid.uuid4()),
        }
        try:
            return cast(str, jwt.encode(claims, self.secret_key, algorithm=self.algorithm))
        except JWTError as e:
            raise ValueError(f"Failed to create {token_type} token: {e}") from e

    def create_access_token(
        self, data: dict[str, Any], expires_delta: timedelta | None = None
    ) -> str:
        """Create JWT access token."""
        lifetime = expires_delta or timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )
        return self._encode(data, "access", lifetime)

    def create_refresh_token(
        self, data: dict[str, Any], expires_delta: timedelta | None = None
    ) -> str:
        """Create JWT refresh token."""
        lifetime = expires_delta or timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        return self._encode(data, "refresh", lifetime)

    def verify_token(
        self, token: str, token_type: str = "access"
    ) -> dict[str, Any] | None:
        """Decode a token, returning None when invalid, expired or of another type."""
        if not token or not isinstance(token, str):
            return None

        try:
            payload = cast(
                dict[str, Any],
                jwt.decode(token, self.secret_key, algorithms=[self.algorithm]),
            )
        except JWTError:
            return None

        if payload.get("type") != token_type:
            return None
        return payload

    def create_tokens_for_user_data(self, user_data: dict[str, Any]) -> dict[str, Any]:
        """Create both access and refresh tokens for a staff user."""
        if not user_data or "id" not in user_data:
            raise ValueError("Invalid user data provided")

        token_data = {
            "sub": str(user_data["id"]),
            "email": user_data.get("email", ""),
            "name": user_data.get("name", ""),
            "company_id": str(user_data.get("company_id", "")),
            "user_type": USER_TYPE_SES,
        }
        return {
            "access_token": self.create_access_token(token_data),
            "refresh_token": self.create_refresh_token(token_data),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        }

    def create_client_access_token(self, claims: dict[str, Any]) -> str:
        """Access token for a client user; ``claims`` must include ``sub``."""
        data = {**claims, "user_type": USER_TYPE_CLIENT}
        return self.create_access_token(
            data, timedelta(hours=settings.CLIENT_ACCESS_TOKEN_EXPIRE_HOURS)
        )

    def create_client_refresh_token(self, client_user_id: str, company_id: str) -> str:
        return self.create_refresh_token(
            {
                "sub": client_user_id,
                "company_id": company_id,
                "user_type": USER_TYPE_CLIENT,
            },
            timedelta(days=settings.CLIENT_REFRESH_TOKEN_EXPIRE_DAYS),
        )

    def extract_company_id_from_token(self, token: str) -> str | None:
        """Extract the owning company ID from an access token."""
        payload = self.verify_token(token)
        if not payload:
            return None
        return payload.get("company_id")
