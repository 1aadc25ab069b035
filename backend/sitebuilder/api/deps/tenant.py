# sitebuilder/api/deps/tenant.py
import uuid
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from sitebuilder.api.deps.auth import get_current_user
from sitebuilder.db.session import get_db
from sitebuilder.models.user import User
from sitebuilder.services.components import component_manager
from sitebuilder.services.guard import Actor, TenantResourceGuard
from sitebuilder.services.ordering import OrderedCollectionManager
from sitebuilder.services.pages import page_manager


async def get_tenant_id(
    x_tenant_id: Optional[str] = Header(default=None, alias="X-Tenant-Id"),
) -> uuid.UUID:
    """
    Tenant the caller claims to act in. Membership is checked by the guard,
    not here.
    """
    if not x_tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Tenant-Id header is required",
        )

    try:
        return uuid.UUID(x_tenant_id.strip())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="X-Tenant-Id must be a valid UUID",
        )


async def get_actor(user: User = Depends(get_current_user)) -> Actor:
    return Actor(user_id=user.id)


async def get_guard(db: AsyncSession = Depends(get_db)) -> TenantResourceGuard:
    return TenantResourceGuard(db)


async def get_page_manager(db: AsyncSession = Depends(get_db)) -> OrderedCollectionManager:
    return page_manager(db)


async def get_component_manager(db: AsyncSession = Depends(get_db)) -> OrderedCollectionManager:
    return component_manager(db)
