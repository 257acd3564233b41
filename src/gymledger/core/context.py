# src/gymledger/core/context.py

from datetime import date
from typing import Callable, Optional
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from gymledger.core.tenant import TenantResolver
from gymledger.services.auditing.audit_emitter import AuditEmitter, LoggingAuditEmitter
from gymledger.services.plan.types.plan_lookup import PlanLookup

class AppContext(BaseModel):
    """
    The typed set of collaborators every service is constructed with.
    Services are plain objects built per request from this context;
    there is no process-wide service registry.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    # request-scoped database session
    db: AsyncSession

    tenant_resolver: TenantResolver
    audit_emitter: AuditEmitter = Field(default_factory=LoggingAuditEmitter)
    # optional plan lookup override, defaults to the stored plan catalogue
    plan_lookup: Optional[PlanLookup] = None

    # "today" is injectable so cycle status can be evaluated at a fixed date
    today_provider: Callable[[], date] = Field(default=date.today)

    def today(self) -> date:
        return self.today_provider()
