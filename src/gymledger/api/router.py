# src/gymledger/api/router.py

from fastapi import APIRouter
from gymledger.api.v1 import member
from gymledger.api.v1 import payment
from gymledger.api.v1 import calendar
from gymledger.api.v1 import dashboard
from gymledger.api.v1 import plan

# The main router for API v1
router = APIRouter(prefix="/api/v1")

router.include_router(
    member.router,
    prefix="/members",
    tags=["Members"]
)
router.include_router(
    payment.router,
    prefix="/payments",
    tags=["Payments"]
)
router.include_router(
    calendar.router,
    prefix="/calendar",
    tags=["Calendar"]
)
router.include_router(
    dashboard.router,
    prefix="/dashboard",
    tags=["Dashboard"]
)
router.include_router(
    plan.router,
    prefix="/plans",
    tags=["Plans"]
)
