# src/gymledger/services/plan/types/plan_lookup.py

from typing import NamedTuple, Protocol, runtime_checkable

class PlanDuration(NamedTuple):
    base_months: int
    bonus_months: int

    @property
    def total_months(self) -> int:
        return self.base_months + self.bonus_months

@runtime_checkable
class PlanLookup(Protocol):
    async def get_plan_duration(self, plan_id: int) -> PlanDuration:
        """Raises NotFoundError when the plan does not exist."""
        ...
