# src/gymledger/api/v1/plan.py

from typing import List
from fastapi import APIRouter, status
from gymledger.core.context import AppContext
from gymledger.api.dependencies.context import GymContextDep
from gymledger.schemas.common import JsonResponse
from gymledger.schemas.plan.plan_schemas import PlanCreate, PlanRead
from gymledger.services.plan.plan_service import PlanService

router = APIRouter()

@router.get("", response_model=JsonResponse[List[PlanRead]], summary="List Plans")
async def list_plans(
    active_only: bool = False,
    context: AppContext = GymContextDep
):
    service = PlanService(context)
    plans = await service.list_plans(active_only=active_only)
    return JsonResponse(data=[PlanRead.model_validate(p) for p in plans])

@router.post("", response_model=JsonResponse[PlanRead], status_code=status.HTTP_201_CREATED, summary="Create a Plan")
async def create_plan(
    plan_in: PlanCreate,
    context: AppContext = GymContextDep
):
    service = PlanService(context)
    plan = await service.create_plan(plan_in)
    return JsonResponse(data=PlanRead.model_validate(plan))
