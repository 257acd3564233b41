# src/gymledger/api/v1/dashboard.py

from typing import List
from fastapi import APIRouter, Query
from gymledger.core.context import AppContext
from gymledger.api.dependencies.context import GymContextDep
from gymledger.schemas.common import JsonResponse
from gymledger.schemas.dashboard.dashboard_schemas import DueTodaySummary, ExpiringMember, PendingPayment
from gymledger.services.dashboard.dashboard_service import DashboardService

router = APIRouter()

@router.get("/expiring", response_model=JsonResponse[List[ExpiringMember]], summary="Memberships Expiring This Week")
async def get_expiring(
    limit: int = Query(5, ge=1, le=100),
    context: AppContext = GymContextDep
):
    service = DashboardService(context)
    return JsonResponse(data=await service.get_expiring_this_week(limit))

@router.get("/pending", response_model=JsonResponse[List[PendingPayment]], summary="Overdue Payments")
async def get_pending(
    limit: int = Query(5, ge=1, le=100),
    context: AppContext = GymContextDep
):
    service = DashboardService(context)
    return JsonResponse(data=await service.get_pending_payments(limit))

@router.get("/due-today", response_model=JsonResponse[DueTodaySummary], summary="Payments Due Today")
async def get_due_today(
    context: AppContext = GymContextDep
):
    service = DashboardService(context)
    return JsonResponse(data=await service.get_due_today())
