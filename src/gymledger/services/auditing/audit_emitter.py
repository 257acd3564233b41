# src/gymledger/services/auditing/audit_emitter.py

import enum
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("gymledger.audit")

class AuditCategory(str, enum.Enum):
    MEMBER = "MEMBER"
    PAYMENT = "PAYMENT"
    PLAN = "PLAN"
    SYSTEM = "SYSTEM"

class AuditAction(str, enum.Enum):
    MEMBER_CREATED = "member_created"
    MEMBER_STATUS_CHANGED = "member_status_changed"
    PAYMENT_CREATED = "payment_created"
    PAYMENT_DELETED = "payment_deleted"
    PLAN_CREATED = "plan_created"
    ERROR_OCCURRED = "error_occurred"

class AuditEvent(BaseModel):
    category: AuditCategory
    action: AuditAction
    resource_type: str
    resource_id: Optional[str] = None
    gym_id: Optional[str] = None
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    success: bool = True
    error_message: Optional[str] = None
    timestamp: datetime = Field(default_factory=datetime.utcnow)

@runtime_checkable
class AuditEmitter(Protocol):
    """
    Consumer side of the external telemetry pipeline. Fire-and-forget:
    storage, batching and anomaly rules live outside this package.
    """
    def emit(self, event: AuditEvent) -> None:
        ...

class LoggingAuditEmitter:
    """Writes each event as one structured JSON line on the `gymledger.audit` logger."""
    def emit(self, event: AuditEvent) -> None:
        level = logging.INFO if event.success else logging.ERROR
        audit_logger.log(level, event.model_dump_json())

def safe_emit(
    emitter: Optional[AuditEmitter],
    category: AuditCategory,
    action: AuditAction,
    resource_type: str,
    resource_id: Any = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    metadata: Optional[Dict[str, Any]] = None,
    success: bool = True,
    error_message: Optional[str] = None,
    gym_id: Optional[str] = None,
) -> None:
    """Emits an audit event. Emitter failures are logged and never reach the caller."""
    if emitter is None:
        return
    try:
        event = AuditEvent(
            category=category,
            action=action,
            resource_type=resource_type,
            resource_id=str(resource_id) if resource_id is not None else None,
            gym_id=gym_id,
            old_values=_jsonable(old_values),
            new_values=_jsonable(new_values),
            metadata=_jsonable(metadata) or {},
            success=success,
            error_message=error_message,
        )
        emitter.emit(event)
    except Exception as e:
        logger.warning(f"[Audit] Failed to emit {category.value}/{action.value} for {resource_type} {resource_id}: {e}", exc_info=True)

def _jsonable(values: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    # dates, Decimals and enums are flattened to strings so every sink can serialise them
    if values is None:
        return None
    flattened = {}
    for key, value in values.items():
        if isinstance(value, enum.Enum):
            flattened[key] = value.value
        elif value is None or isinstance(value, (bool, int, float, str)):
            flattened[key] = value
        else:
            flattened[key] = str(value)
    return flattened
