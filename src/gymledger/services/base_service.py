# src/gymledger/services/base_service.py

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, Awaitable, Callable, Dict, List, Optional
from sqlalchemy.exc import OperationalError, InterfaceError
from sqlalchemy.ext.asyncio import AsyncSession

from gymledger.core.context import AppContext
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory, safe_emit
from gymledger.services.exceptions import (
    BackendUnavailableError, PartialFailureError, TenantNotResolvedError
)

logger = logging.getLogger(__name__)

class WriteSequence:
    """
    Tracks the writes of a multi-step handler. A failure after at least one
    step has been applied is re-raised as PartialFailureError naming the step
    that failed; a failure on the first step propagates untouched.
    """
    def __init__(self, operation: str, member_id: Optional[int] = None):
        self.operation = operation
        self.member_id = member_id
        self.completed: List[str] = []

    @asynccontextmanager
    async def step(self, name: str, failure_message: Optional[str] = None):
        try:
            yield
        except PartialFailureError:
            raise
        except Exception as e:
            if not self.completed:
                raise
            message = failure_message or (
                f"{self.operation} for member {self.member_id} failed at step '{name}' "
                f"after {', '.join(self.completed)} had been applied: {e}"
            )
            raise PartialFailureError(message, member_id=self.member_id, step=name) from e
        self.completed.append(name)

class BaseService:
    """Common plumbing for services built from an AppContext."""
    context: AppContext
    db: AsyncSession

    def __init__(self, context: AppContext):
        self.context = context
        self.db = context.db

    async def _require_gym_id(self) -> str:
        gym_id = await self.context.tenant_resolver.resolve_tenant_id()
        if not gym_id:
            raise TenantNotResolvedError("No gym id found for the current session.")
        return gym_id

    @contextmanager
    def backend_guard(self):
        """Store connectivity errors surface as BackendUnavailableError, never retried here."""
        try:
            yield
        except (OperationalError, InterfaceError) as e:
            raise BackendUnavailableError(f"Backing store unavailable: {e.orig if e.orig else e}") from e

    async def _best_effort(self, label: str, write: Callable[[], Awaitable[Any]]) -> bool:
        """
        Runs a non-critical side write inside a SAVEPOINT. A failure rolls back
        only the savepoint and is logged; the primary operation carries on.
        """
        try:
            async with self.db.begin_nested():
                await write()
            return True
        except Exception as e:
            logger.warning(f"[{type(self).__name__}] Non-critical write '{label}' failed: {e}", exc_info=True)
            return False

    def _emit(
        self,
        gym_id: Optional[str],
        category: AuditCategory,
        action: AuditAction,
        resource_type: str,
        resource_id: Any = None,
        old_values: Optional[Dict[str, Any]] = None,
        new_values: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        success: bool = True,
        error_message: Optional[str] = None,
    ) -> None:
        safe_emit(
            self.context.audit_emitter, category, action, resource_type, resource_id,
            old_values=old_values, new_values=new_values, metadata=metadata,
            success=success, error_message=error_message, gym_id=gym_id,
        )

    def _report_partial_failure(self, gym_id: str, category: AuditCategory, action: AuditAction, resource_type: str,
                                resource_id: Any, error: PartialFailureError) -> None:
        if error.reported:
            return
        error.reported = True
        logger.error(
            f"[{type(self).__name__}] Partial failure on {resource_type} {resource_id} "
            f"(member {error.member_id}, step '{error.step}'): {error.message}",
            exc_info=True
        )
        self._emit(
            gym_id, category, action, resource_type, resource_id,
            metadata={"member_id": error.member_id, "step": error.step, "partial_failure": True},
            success=False, error_message=error.message,
        )
