# src/gymledger/api/v1/payment.py

from fastapi import APIRouter, status
from gymledger.core.context import AppContext
from gymledger.api.dependencies.context import GymContextDep
from gymledger.schemas.common import JsonResponse
from gymledger.schemas.billing.payment_schemas import PaymentCreate, PaymentRead, PaymentDeletionResult
from gymledger.services.billing.payment_recorder import PaymentRecorderService
from gymledger.services.billing.payment_reversal import PaymentReversalService

router = APIRouter()

@router.post("", response_model=JsonResponse[PaymentRead], status_code=status.HTTP_201_CREATED, summary="Record a Payment")
async def record_payment(
    payment_in: PaymentCreate,
    context: AppContext = GymContextDep
):
    service = PaymentRecorderService(context)
    payment = await service.record_payment(payment_in)
    return JsonResponse(data=PaymentRead.model_validate(payment))

@router.delete("/{payment_id}", response_model=JsonResponse[PaymentDeletionResult], summary="Delete a Payment")
async def delete_payment(
    payment_id: int,
    context: AppContext = GymContextDep
):
    """`member_deactivated` tells the caller the member's only payment was removed."""
    service = PaymentReversalService(context)
    return JsonResponse(data=await service.delete_payment(payment_id))
