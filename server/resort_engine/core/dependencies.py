"""FastAPI dependencies for database sessions, authentication and service assembly."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

import jwt
from fastapi import Depends, Header, Request
from jwt import PyJWTError
from sqlalchemy.ext.asyncio import AsyncSession

from ..repositories.sql import SqlAllocationRepository, SqlRateRepository
from ..services.allocation_service import AllocationService
from ..services.availability_service import AvailabilityPricingFacade
from ..services.interval_conflicts import IntervalConflictDetector
from ..services.modifier_engine import ModifierEngine
from ..services.rate_resolver import RateResolver
from ..services.rate_service import RateService
from ..services.rule_catalog import RuleCatalog
from .config import settings
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError
from .locks import ResourceLockRegistry
from .permissions import Permission, permissions_for


@dataclass(frozen=True)
class Principal:
    """Authenticated caller."""

    user_id: str
    username: Optional[str] = None
    email: Optional[str] = None
    roles: list[str] = field(default_factory=list)

    @property
    def permissions(self) -> frozenset[Permission]:
        return permissions_for(self.roles)


async def get_current_user(
    authorization: Optional[str] = Header(None, alias="Authorization")
) -> Principal:
    """
    Authentication dependency that validates Bearer tokens.

    Args:
        authorization: Authorization header with Bearer token

    Returns:
        Principal: Caller identity and roles from the validated token

    Raises:
        AuthenticationError: If the token is missing, malformed, expired or invalid
    """
    if not authorization:
        raise AuthenticationError("Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header format") from None

    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")

    try:
        payload = jwt.decode(
            token,
            settings.bearer_token_secret,
            algorithms=["HS256"]
        )
    except PyJWTError as e:
        raise AuthenticationError(f"Token validation failed: {str(e)}") from e

    user_id = payload.get("sub")
    if user_id is None:
        raise AuthenticationError("Invalid token payload")

    # PyJWT already rejects an expired numeric exp; this catches non-standard ones
    exp = payload.get("exp")
    if exp and datetime.utcnow().timestamp() > exp:
        raise AuthenticationError("Token has expired")

    roles = payload.get("roles", [])
    if isinstance(roles, str):
        roles = [roles]

    return Principal(
        user_id=str(user_id),
        username=payload.get("username"),
        email=payload.get("email"),
        roles=list(roles),
    )


CURRENT_USER_DEPENDENCY = Depends(get_current_user)


def require_permission(permission: Permission) -> Callable:
    """
    Build a dependency that admits only callers holding ``permission``.

    Usage:
        @router.post("/create", dependencies=[Depends(require_permission(Permission.RATE_MANAGE))])
    """

    async def check_permission(user: Principal = CURRENT_USER_DEPENDENCY) -> Principal:
        if permission not in user.permissions:
            raise AuthorizationError(
                detail=f"Permission '{permission.value}' is required",
                required_permissions=[permission.value],
            )
        return user

    return check_permission


DB_DEPENDENCY = Depends(get_db)


def get_lock_registry(request: Request) -> ResourceLockRegistry:
    """The application's per-resource lock registry, created at startup."""
    return request.app.state.resource_locks


LOCKS_DEPENDENCY = Depends(get_lock_registry)


def build_facade(db: AsyncSession) -> AvailabilityPricingFacade:
    """Wire the availability and pricing components over one session."""
    catalog = RuleCatalog(SqlRateRepository(db))
    return AvailabilityPricingFacade(
        detector=IntervalConflictDetector(
            SqlAllocationRepository(db),
            max_window_days=settings.blocked_dates_max_window_days,
        ),
        catalog=catalog,
        resolver=RateResolver(catalog),
        engine=ModifierEngine(),
        default_currency=settings.default_currency,
        strict=settings.strict_rate_resolution,
    )


async def get_facade(db: AsyncSession = DB_DEPENDENCY) -> AvailabilityPricingFacade:
    return build_facade(db)


async def get_allocation_service(
    db: AsyncSession = DB_DEPENDENCY,
    locks: ResourceLockRegistry = LOCKS_DEPENDENCY,
) -> AllocationService:
    return AllocationService(
        allocations=SqlAllocationRepository(db),
        facade=build_facade(db),
        locks=locks,
    )


async def get_rate_service(db: AsyncSession = DB_DEPENDENCY) -> RateService:
    return RateService(
        SqlRateRepository(db),
        supported_currencies=settings.supported_currencies,
        default_currency=settings.default_currency,
    )


FACADE_DEPENDENCY = Depends(get_facade)
ALLOCATION_SERVICE_DEPENDENCY = Depends(get_allocation_service)
RATE_SERVICE_DEPENDENCY = Depends(get_rate_service)
