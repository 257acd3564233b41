# tests/conftest.py

from datetime import date
from decimal import Decimal
from typing import AsyncGenerator, Callable, List, Optional
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)
from sqlalchemy.pool import StaticPool
from gymledger.db.base import Base
from gymledger.core.context import AppContext
from gymledger.core.tenant import StaticTenantResolver
from gymledger.models import MembershipPlanType, PaymentMethod
from gymledger.schemas.member.member_schemas import MemberCreate
from gymledger.services.auditing.audit_emitter import AuditAction, AuditEvent
from gymledger.services.membership.member_service import MemberService

GYM_ID = "gym-test-1"
OTHER_GYM_ID = "gym-test-2"
TODAY = date(2024, 3, 10)

# ==============================================================================
# 1. Database fixtures
# ==============================================================================

@pytest.fixture(scope="function")
async def db_engine():
    """
    In-memory SQLite shared through a StaticPool. pysqlite's own transaction
    handling is switched off so SAVEPOINTs (begin_nested) behave like PostgreSQL.
    """
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()

@pytest.fixture(scope="function")
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """One transaction per test, rolled back at the end."""
    session_factory = async_sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=db_engine, class_=AsyncSession
    )
    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()

# ==============================================================================
# 2. Collaborator doubles
# ==============================================================================

class RecordingAuditEmitter:
    """Keeps every emitted event in memory for assertions."""
    def __init__(self):
        self.events: List[AuditEvent] = []

    def emit(self, event: AuditEvent) -> None:
        self.events.append(event)

    def actions(self) -> List[AuditAction]:
        return [e.action for e in self.events]

    def last(self, action: AuditAction) -> Optional[AuditEvent]:
        matching = [e for e in self.events if e.action == action]
        return matching[-1] if matching else None

@pytest.fixture
def audit_emitter() -> RecordingAuditEmitter:
    return RecordingAuditEmitter()

@pytest.fixture
def today_holder():
    """Mutable "today" so a test can move the clock between operations."""
    return {"today": TODAY}

@pytest.fixture
def make_context(db_session, audit_emitter, today_holder) -> Callable[..., AppContext]:
    def _make(gym_id: Optional[str] = GYM_ID, **overrides) -> AppContext:
        return AppContext(
            db=db_session,
            tenant_resolver=overrides.pop("tenant_resolver", StaticTenantResolver(gym_id)),
            audit_emitter=overrides.pop("audit_emitter", audit_emitter),
            today_provider=lambda: today_holder["today"],
            **overrides,
        )
    return _make

@pytest.fixture
def app_context(make_context) -> AppContext:
    return make_context()

# ==============================================================================
# 3. Data factories
# ==============================================================================

@pytest.fixture
def create_member(app_context):
    """Enrolls a member through the real enrollment path."""
    counter = {"n": 0}

    async def _create(
        joining_date: date = date(2024, 1, 31),
        plan_type: Optional[MembershipPlanType] = MembershipPlanType.MONTHLY,
        plan_id: Optional[int] = None,
        plan_amount: Decimal = Decimal("1000"),
        paid_amount: Optional[Decimal] = None,
        phone: Optional[str] = None,
        full_name: Optional[str] = None,
        context: Optional[AppContext] = None,
    ):
        counter["n"] += 1
        member_in = MemberCreate(
            full_name=full_name or f"Member {counter['n']}",
            phone=phone or f"90000000{counter['n']:02d}",
            joining_date=joining_date,
            plan_type=plan_type if plan_id is None else None,
            plan_id=plan_id,
            plan_amount=plan_amount,
            paid_amount=paid_amount,
            payment_method=PaymentMethod.CASH,
        )
        return await MemberService(context or app_context).create_member(member_in)
    return _create
