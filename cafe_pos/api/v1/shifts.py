from datetime import date, datetime
from fastapi import APIRouter, Depends, Query, status
from typing import Optional
from cafe_pos.api.deps import get_acting_user_id, get_connection_name
from cafe_pos.core.clock import as_aware
from cafe_pos.core.errors import InvalidShift
from cafe_pos.models.shift import Shift
from cafe_pos.schemas.response import SuccessResponse
from cafe_pos.schemas.shift import ConflictCheckResponse, ShiftRequest, ShiftResponse
from cafe_pos.services import shift_service

router = APIRouter()


def _shift(shift: Shift, has_conflict: bool = False) -> ShiftResponse:
    return ShiftResponse(
        id=shift.id,
        user_id=shift.user_id,
        start_time=shift.start_time,
        end_time=shift.end_time,
        has_conflict=has_conflict,
    )


@router.get("", response_model=SuccessResponse)
async def list_shifts_endpoint(day: Optional[date] = Query(None, alias="date"), connection_name: str = Depends(get_connection_name)):
    """Shifts of a day, each flagged when it overlaps another shift of the same employee."""
    shifts = await shift_service.list_shifts(day, connection_name=connection_name)
    conflicts = shift_service.conflicting_shift_ids(shifts)
    return SuccessResponse(data=[_shift(s, s.id in conflicts).model_dump() for s in shifts])


@router.get("/conflicts", response_model=SuccessResponse)
async def check_conflicts_endpoint(
    user_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_shift_id: Optional[int] = None,
    connection_name: str = Depends(get_connection_name),
):
    """Advisory check run by the schedule editor before saving a shift."""
    start_time, end_time = as_aware(start_time), as_aware(end_time)
    if end_time <= start_time:
        raise InvalidShift()
    conflict = await shift_service.find_conflict(
        user_id, start_time, end_time, exclude_shift_id, connection_name=connection_name
    )
    data = ConflictCheckResponse(
        has_conflict=conflict is not None,
        conflicting_shift=_shift(conflict, True) if conflict else None,
    ).model_dump()
    return SuccessResponse(data=data)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=SuccessResponse)
async def create_shift_endpoint(
    payload: ShiftRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    shift = await shift_service.create_shift(payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_shift(shift).model_dump())


@router.put("/{shift_id}", response_model=SuccessResponse)
async def update_shift_endpoint(
    shift_id: int,
    payload: ShiftRequest,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    shift = await shift_service.update_shift(shift_id, payload, user_id, connection_name=connection_name)
    return SuccessResponse(data=_shift(shift).model_dump())


@router.delete("/{shift_id}", response_model=SuccessResponse)
async def delete_shift_endpoint(
    shift_id: int,
    user_id: int = Depends(get_acting_user_id),
    connection_name: str = Depends(get_connection_name),
):
    await shift_service.delete_shift(shift_id, user_id, connection_name=connection_name)
    return SuccessResponse(data={"shift_id": shift_id, "deleted": True})
