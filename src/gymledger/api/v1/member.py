# src/gymledger/api/v1/member.py

from fastapi import APIRouter, status
from gymledger.core.context import AppContext
from gymledger.api.dependencies.context import GymContextDep
from gymledger.schemas.common import JsonResponse
from gymledger.schemas.member.member_schemas import (
    MemberCreate, MemberRead, MemberStatusUpdate, MemberWithPayments, MemberWithPeriods,
    RejoinRequest, RejoinResult
)
from gymledger.services.membership.member_service import MemberService
from gymledger.services.membership.rejoin_service import RejoinService

router = APIRouter()

@router.post("", response_model=JsonResponse[MemberRead], status_code=status.HTTP_201_CREATED, summary="Enroll a Member")
async def create_member(
    member_in: MemberCreate,
    context: AppContext = GymContextDep
):
    service = MemberService(context)
    member = await service.create_member(member_in)
    return JsonResponse(data=MemberRead.model_validate(member))

@router.get("/by-phone/{phone}", response_model=JsonResponse[MemberWithPeriods], summary="Find a Member by Phone")
async def get_member_by_phone(
    phone: str,
    context: AppContext = GymContextDep
):
    service = MemberService(context)
    return JsonResponse(data=await service.get_member_by_phone(phone))

@router.get("/{member_id}", response_model=JsonResponse[MemberWithPayments], summary="Get Member with Payments")
async def get_member(
    member_id: int,
    context: AppContext = GymContextDep
):
    service = MemberService(context)
    return JsonResponse(data=await service.get_member_with_payments(member_id))

@router.put("/{member_id}/status", response_model=JsonResponse[MemberRead], summary="Set Member Status")
async def update_member_status(
    member_id: int,
    status_in: MemberStatusUpdate,
    context: AppContext = GymContextDep
):
    service = MemberService(context)
    member = await service.update_member_status(member_id, status_in.status)
    return JsonResponse(data=MemberRead.model_validate(member))

@router.post("/{member_id}/rejoin", response_model=JsonResponse[RejoinResult], summary="Rejoin an Inactive Member")
async def rejoin_member(
    member_id: int,
    rejoin_in: RejoinRequest,
    context: AppContext = GymContextDep
):
    service = RejoinService(context)
    return JsonResponse(data=await service.rejoin_member(member_id, rejoin_in))
