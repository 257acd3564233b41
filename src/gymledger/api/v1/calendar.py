# src/gymledger/api/v1/calendar.py

from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Query
from gymledger.core.context import AppContext
from gymledger.api.dependencies.context import GymContextDep
from gymledger.schemas.common import JsonResponse
from gymledger.schemas.calendar.calendar_schemas import CalendarEvent
from gymledger.services.calendar.calendar_service import CalendarService

router = APIRouter()

@router.get("", response_model=JsonResponse[List[CalendarEvent]], summary="Month Calendar Events")
async def get_calendar(
    year: int = Query(..., ge=1900, le=9999),
    month: int = Query(..., ge=1, le=12),
    start: Optional[date] = None,
    end: Optional[date] = None,
    context: AppContext = GymContextDep
):
    service = CalendarService(context)
    return JsonResponse(data=await service.get_month_events(year, month, start=start, end=end))
