# src/gymledger/services/plan/plan_service.py

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import List, NamedTuple, Optional
from sqlalchemy.ext.asyncio import AsyncSession

from gymledger.core.context import AppContext
from gymledger.dao.plan.plan_dao import MembershipPlanDao
from gymledger.models import Member, MembershipPlan, MembershipPlanType, DiscountType, PromoType
from gymledger.schemas.plan.plan_schemas import PlanCreate
from gymledger.services.base_service import BaseService
from gymledger.services.auditing.audit_emitter import AuditAction, AuditCategory
from gymledger.services.exceptions import NotFoundError, ServiceException, ValidationError
from gymledger.services.membership.cycle_calculator import months_for_plan
from gymledger.services.plan.types.plan_lookup import PlanDuration, PlanLookup

logger = logging.getLogger(__name__)

# Fixed plans: (months, default price). Used for rejoin by key and as the duration fallback.
STATIC_PLANS = {
    MembershipPlanType.MONTHLY: (1, None),
    MembershipPlanType.QUARTERLY: (3, None),
    MembershipPlanType.HALF_YEARLY: (6, None),
    MembershipPlanType.ANNUAL: (12, None),
}

class PlanConfig(NamedTuple):
    """Everything a handler needs to open a cycle on a plan."""
    plan_id: Optional[int]
    name: str
    base_months: int
    bonus_months: int
    price: Optional[Decimal]

    @property
    def total_months(self) -> int:
        return self.base_months + self.bonus_months

class StoredPlanLookup:
    """Plan lookup served from the gym_membership_plans table."""
    def __init__(self, db: AsyncSession):
        self.dao = MembershipPlanDao(db)

    async def get_plan_duration(self, plan_id: int) -> PlanDuration:
        plan = await self.dao.get_by_pk(plan_id)
        if not plan:
            raise NotFoundError(f"Plan {plan_id} not found.")
        return PlanDuration(plan.base_duration_months, plan.bonus_duration_months or 0)

def compute_final_price(base_price: Decimal, discount_type: DiscountType, discount_value: Decimal) -> Decimal:
    if discount_type == DiscountType.PERCENTAGE:
        if discount_value > 100:
            raise ValidationError("A percentage discount cannot exceed 100.")
        final = base_price * (Decimal('1') - discount_value / Decimal('100'))
    elif discount_type == DiscountType.FLAT:
        final = base_price - discount_value
    else:
        final = base_price
    return max(final, Decimal('0')).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

class PlanService(BaseService):
    def __init__(self, context: AppContext):
        super().__init__(context)
        self.dao = MembershipPlanDao(context.db)
        self.lookup: PlanLookup = context.plan_lookup or StoredPlanLookup(context.db)

    async def create_plan(self, plan_in: PlanCreate) -> MembershipPlan:
        gym_id = await self._require_gym_id()

        final_price = compute_final_price(plan_in.base_price, plan_in.discount_type, plan_in.discount_value)
        has_discount = plan_in.discount_type != DiscountType.NONE and plan_in.discount_value > 0
        promo_type = PromoType.PROMOTIONAL if plan_in.bonus_duration_months > 0 or has_discount else PromoType.STANDARD

        plan = MembershipPlan(
            gym_id=gym_id,
            name=plan_in.name,
            description=plan_in.description,
            base_duration_months=plan_in.base_duration_months,
            bonus_duration_months=plan_in.bonus_duration_months,
            price=plan_in.base_price,
            discount_type=plan_in.discount_type,
            discount_value=plan_in.discount_value,
            final_price=final_price,
            promo_type=promo_type,
            is_active=True,
            display_order=plan_in.display_order,
        )
        with self.backend_guard():
            await self.dao.add(plan)

        logger.info(f"[PlanService] Created plan {plan.id} '{plan.name}' for gym {gym_id}.")
        self._emit(
            gym_id, AuditCategory.PLAN, AuditAction.PLAN_CREATED, "membership_plan", plan.id,
            new_values={
                "name": plan.name,
                "total_duration_months": plan.total_duration_months,
                "final_price": plan.final_price,
                "promo_type": plan.promo_type,
            },
        )
        return plan

    async def list_plans(self, active_only: bool = False) -> List[MembershipPlan]:
        gym_id = await self._require_gym_id()
        with self.backend_guard():
            return await self.dao.list_for_gym(gym_id, active_only=active_only)

    async def resolve_plan_config(
        self,
        plan_id: Optional[int] = None,
        plan_type: Optional[MembershipPlanType] = None
    ) -> PlanConfig:
        """Plan id wins over plan key. A plan id from another gym counts as missing."""
        if plan_id is not None:
            gym_id = await self._require_gym_id()
            with self.backend_guard():
                plan = await self.dao.get_for_gym(gym_id, plan_id)
            if not plan:
                raise NotFoundError(f"Plan {plan_id} not found.")
            return PlanConfig(
                plan_id=plan.id,
                name=plan.name,
                base_months=plan.base_duration_months,
                bonus_months=plan.bonus_duration_months or 0,
                price=plan.final_price,
            )

        if plan_type is None:
            raise ValidationError("Either a plan id or a plan type is required.")
        plan_type = MembershipPlanType(plan_type)
        months, price = STATIC_PLANS[plan_type]
        return PlanConfig(plan_id=None, name=plan_type.value, base_months=months, bonus_months=0, price=price)

    async def months_for_member(self, member: Member, plan_override: Optional[str] = None) -> int:
        """
        Cycle length for the member's next payment. A stored plan is preferred;
        when its lookup fails the fixed table is used so the payment still goes through.
        """
        if plan_override is None and member.plan_id is not None:
            try:
                duration = await self.lookup.get_plan_duration(member.plan_id)
                return duration.total_months
            except ServiceException as e:
                logger.warning(
                    f"[PlanService] Plan lookup for plan {member.plan_id} failed, "
                    f"falling back to the fixed table for '{member.membership_plan}': {e.message}"
                )
        plan_key = plan_override if plan_override is not None else member.membership_plan
        if isinstance(plan_key, MembershipPlanType):
            plan_key = plan_key.value
        return months_for_plan(plan_key)
