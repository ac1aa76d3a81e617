"""
Token blacklist service for JWT invalidation on logout.

Blacklisted tokens are stored in Redis by JWT ID (``jti``), namespaced by the
owning company: ``blacklist:company:{company_id}:token:{jti}``. Entries expire
together with the token.
"""

from datetime import UTC, datetime
from typing import Any

from jose import JWTError, jwt  # type: ignore[import-untyped]

from ..adapters.redis import RedisAdapter
from .config import get_settings
from .logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class TokenBlacklistService:
    """Service for managing blacklisted JWT tokens in Redis."""

    def __init__(self, redis_adapter: RedisAdapter | None = None) -> None:
        self.redis = redis_adapter or RedisAdapter()

    @staticmethod
    def _blacklist_key(jti: str, company_id: str) -> str:
        if not company_id:
            raise ValueError("company_id is required for token blacklist key generation")
        return f"blacklist:company:{company_id}:token:{jti}"

    @staticmethod
    def _claims(token: str) -> dict[str, Any]:
        try:
            return dict(jwt.get_unverified_claims(token))
        except JWTError as e:
            logger.warning("Failed to read token claims", error=str(e))
            return {}

    @staticmethod
    def _ttl(claims: dict[str, Any]) -> int:
        exp = claims.get("exp")
        if not isinstance(exp, int | float):
            return settings.CLIENT_REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60
        return max(int(exp) - int(datetime.now(UTC).timestamp()), 0)

    async def blacklist_token(self, token: str) -> bool:
        """Blacklist ``token`` until it expires."""
        claims = self._claims(token)
        jti = claims.get("jti")
        company_id = claims.get("company_id")
        if not isinstance(jti, str) or not jti:
            logger.error("Failed to extract JTI from token for blacklisting")
            return False
        if not isinstance(company_id, str) or not company_id:
            raise ValueError("company_id is required in token for blacklist operation")

        ttl = self._ttl(claims)
        if ttl <= 0:
            logger.info("Token already expired, not blacklisting", jti=jti[:16])
            return True

        success = await self.redis.set(self._blacklist_key(jti, company_id), "1", ex=ttl)
        if success:
            logger.info(
                "Token blacklisted", jti=jti[:16], company_id=company_id, ttl=ttl
            )
        else:
            logger.error("Failed to blacklist token", jti=jti[:16], company_id=company_id)
        return success

    async def is_token_blacklisted(self, token: str) -> bool:
        """
        Check whether ``token`` was revoked.

        Fails closed: tokens without ``jti``/``company_id`` and Redis errors
        count as blacklisted.
        """
        if not settings.TOKEN_BLACKLIST_ENABLED:
            return False

        claims = self._claims(token)
        jti = claims.get("jti")
        company_id = claims.get("company_id")
        if not isinstance(jti, str) or not isinstance(company_id, str) or not company_id:
            logger.warning("Token lacks jti or company_id, treating as blacklisted")
            return True

        try:
            return bool(
                await self.redis.client.exists(self._blacklist_key(jti, company_id))
            )
        except Exception as e:
            logger.error(
                "Error checking token blacklist - FAIL-CLOSED",
                error=str(e),
            )
            return True
