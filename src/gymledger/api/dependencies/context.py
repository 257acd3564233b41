# src/gymledger/api/dependencies/context.py

from typing import Optional
from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from gymledger.core.config import settings
from gymledger.core.context import AppContext
from gymledger.core.tenant import StaticTenantResolver
from gymledger.db.session import get_db
from gymledger.services.auditing.audit_emitter import LoggingAuditEmitter

async def get_gym_id(x_gym_id: Optional[str] = Header(None, alias=settings.TENANT_HEADER)) -> str:
    """Session resolution happens upstream; by the time a request lands here the gym id is a header."""
    if not x_gym_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=f"Missing {settings.TENANT_HEADER} header.")
    return x_gym_id

async def get_gym_context(
    request: Request,
    gym_id: str = Depends(get_gym_id),
    db: AsyncSession = Depends(get_db),
) -> AppContext:
    """Builds a fresh AppContext per request. Services are constructed from it in the route."""
    return AppContext(
        db=db,
        tenant_resolver=StaticTenantResolver(gym_id),
        audit_emitter=getattr(request.app.state, "audit_emitter", None) or LoggingAuditEmitter(),
    )

GymContextDep = Depends(get_gym_context)
