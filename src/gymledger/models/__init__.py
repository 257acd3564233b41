# src/gymledger/models/__init__.py

from .member import (
    Member,
    MemberStatus,
    MembershipPlanType
)
from .membership_period import (
    MembershipPeriod,
    PeriodStatus
)
from .payment import (
    Payment,
    PaymentMethod,
    PaymentSchedule,
    PaymentScheduleStatus,
    PaymentScheduleHistory
)
from .plan import (
    MembershipPlan,
    DiscountType,
    PromoType
)
from .auditing import (
    MemberHistory,
    MemberHistoryType
)
