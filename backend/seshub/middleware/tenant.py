"""
Company isolation middleware: puts the caller's company into request state.
"""

import uuid
from collections.abc import Iterable

from fastapi import HTTPException, Request, status
from starlette.middleware.base import BaseHTTPMiddleware

from ..core.config import EXEMPT_PATHS
from ..core.token_service import TokenService


class TenantIsolationMiddleware(BaseHTTPMiddleware):
    """Extract ``company_id`` from the bearer token for every API request.

    Authentication itself is enforced by endpoint dependencies; the middleware
    only records which company the request speaks for.
    """

    def __init__(
        self, app, excluded_path_prefixes: Iterable[str] | None = None
    ) -> None:
        super().__init__(app)
        self.excluded_prefixes = tuple(excluded_path_prefixes or EXEMPT_PATHS)
        self.token_service = TokenService()

    async def dispatch(self, request: Request, call_next):
        if self._is_excluded_path(request.url.path):
            request.state.company_id = None
            return await call_next(request)

        request.state.company_id = self._extract_company_from_request(request)
        return await call_next(request)

    def _is_excluded_path(self, path: str) -> bool:
        for prefix in self.excluded_prefixes:
            normalized = prefix.rstrip("/")
            if not normalized:
                continue
            if path == normalized or path.startswith(f"{normalized}/"):
                return True
        return False

    def _extract_company_from_request(self, request: Request) -> uuid.UUID | None:
        authorization = request.headers.get("Authorization")
        if authorization:
            scheme, _, token = authorization.partition(" ")
            if scheme.lower() != "bearer" or not token:
                return None
        else:
            token = request.cookies.get("access_token", "")
            if not token:
                return None

        payload = self.token_service.verify_token(token)
        if not payload:
            return None

        company_id = payload.get("company_id")
        if not company_id:
            return None
        try:
            return uuid.UUID(str(company_id))
        except ValueError:
            return None


class TenantContextManager:
    """Helpers to read the company context from request state."""

    @staticmethod
    def get_company_id(request: Request) -> uuid.UUID | None:
        state = getattr(request, "state", None)
        if state is None:
            return None
        company_id = getattr(state, "company_id", None)
        if company_id in (None, ""):
            return None
        return company_id

    @staticmethod
    def require_company_id(request: Request) -> uuid.UUID:
        company_id = TenantContextManager.get_company_id(request)
        if not company_id:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Company context required",
            )
        return company_id

    @staticmethod
    def set_company_id(request: Request, company_id: uuid.UUID) -> None:
        request.state.company_id = company_id
