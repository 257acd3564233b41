# src/gymledger/schemas/plan/plan_schemas.py

from pydantic import BaseModel, Field, ConfigDict, computed_field
from typing import Optional
from decimal import Decimal
from gymledger.models import DiscountType, PromoType

class PlanCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    base_duration_months: int = Field(..., ge=1)
    bonus_duration_months: int = Field(0, ge=0)
    base_price: Decimal = Field(..., ge=0)
    discount_type: DiscountType = DiscountType.NONE
    discount_value: Decimal = Field(Decimal('0'), ge=0)
    display_order: int = 0

class PlanRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    base_duration_months: int
    bonus_duration_months: int
    price: Decimal
    discount_type: DiscountType
    discount_value: Decimal
    final_price: Decimal
    promo_type: PromoType
    is_active: bool
    display_order: int

    @computed_field
    @property
    def total_duration_months(self) -> int:
        return self.base_duration_months + self.bonus_duration_months

    model_config = ConfigDict(from_attributes=True)
