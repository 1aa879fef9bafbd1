"""
Shift scheduling and conflict detection.

Two shifts of the same employee conflict when their half-open intervals
overlap: ``a.start < b.end and a.end > b.start``. A shift ending at 17:00
and another starting at 17:00 do not conflict.

The conflict check is advisory. `create_shift` and `update_shift` do not
re-run it, so two requests that both pass the check may still write
overlapping shifts.
"""
import logging
from collections import defaultdict
from datetime import date, datetime
from tortoise.transactions import in_transaction
from typing import Dict, Iterable, List, Optional, Set
from cafe_pos.core.clock import as_aware, day_bounds
from cafe_pos.core.config import DB_CONNECTION_NAME
from cafe_pos.core.db import get_connection
from cafe_pos.core.errors import InvalidShift, ShiftNotFound
from cafe_pos.models.shift import Shift
from cafe_pos.schemas.shift import ShiftRequest
from cafe_pos.services import audit_service
from cafe_pos.services.audit_service import AuditAction, AuditModule

log = logging.getLogger(__name__)


def intervals_overlap(start_a: datetime, end_a: datetime, start_b: datetime, end_b: datetime) -> bool:
    return start_a < end_b and end_a > start_b


async def find_conflict(
    user_id: int,
    start_time: datetime,
    end_time: datetime,
    exclude_shift_id: Optional[int] = None,
    connection_name: str = DB_CONNECTION_NAME,
) -> Optional[Shift]:
    """Returns an existing shift of `user_id` overlapping the proposed interval, or None."""
    start_time, end_time = as_aware(start_time), as_aware(end_time)
    query = Shift.filter(user_id=user_id, start_time__lt=end_time, end_time__gt=start_time)
    if exclude_shift_id is not None:
        query = query.exclude(id=exclude_shift_id)
    return await query.using_db(get_connection(connection_name)).order_by("start_time", "id").first()


def conflicting_shift_ids(shifts: Iterable[Shift]) -> Set[int]:
    """Ids of every shift that overlaps another shift of the same employee."""
    by_user: Dict[int, List[Shift]] = defaultdict(list)
    for shift in shifts:
        by_user[shift.user_id].append(shift)

    conflicts: Set[int] = set()
    for user_shifts in by_user.values():
        for i, first in enumerate(user_shifts):
            for second in user_shifts[i + 1:]:
                if intervals_overlap(first.start_time, first.end_time, second.start_time, second.end_time):
                    conflicts.add(first.id)
                    conflicts.add(second.id)
    return conflicts


def _check_interval(data: ShiftRequest) -> None:
    if data.end_time <= data.start_time:
        raise InvalidShift()


async def create_shift(data: ShiftRequest, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> Shift:
    _check_interval(data)
    async with in_transaction(connection_name) as conn:
        shift = await Shift.create(
            user_id=data.user_id,
            start_time=data.start_time,
            end_time=data.end_time,
            using_db=conn,
        )
        await audit_service.record(
            conn, acting_user_id, AuditAction.CREATE_SHIFT, AuditModule.SCHEDULE,
            f"Scheduled user {data.user_id}: {data.start_time:%Y-%m-%d %H:%M} - {data.end_time:%H:%M}",
        )
    return shift


async def update_shift(
    shift_id: int,
    data: ShiftRequest,
    acting_user_id: int,
    connection_name: str = DB_CONNECTION_NAME,
) -> Shift:
    _check_interval(data)
    async with in_transaction(connection_name) as conn:
        shift = await Shift.filter(id=shift_id).using_db(conn).select_for_update().first()
        if not shift:
            raise ShiftNotFound(shift_id)

        shift.user_id = data.user_id
        shift.start_time = data.start_time
        shift.end_time = data.end_time
        await shift.save(using_db=conn)
        await audit_service.record(
            conn, acting_user_id, AuditAction.UPDATE_SHIFT, AuditModule.SCHEDULE,
            f"Changed shift #{shift_id}: user {data.user_id}, {data.start_time:%Y-%m-%d %H:%M} - {data.end_time:%H:%M}",
        )
    return shift


async def delete_shift(shift_id: int, acting_user_id: int, connection_name: str = DB_CONNECTION_NAME) -> None:
    async with in_transaction(connection_name) as conn:
        deleted = await Shift.filter(id=shift_id).using_db(conn).delete()
        if not deleted:
            raise ShiftNotFound(shift_id)
        await audit_service.record(
            conn, acting_user_id, AuditAction.DELETE_SHIFT, AuditModule.SCHEDULE,
            f"Deleted shift #{shift_id}",
        )


async def list_shifts(day: Optional[date] = None, connection_name: str = DB_CONNECTION_NAME) -> List[Shift]:
    """All shifts, or only those starting on `day`, ordered by start time."""
    query = Shift.all()
    if day is not None:
        start, end = day_bounds(day)
        query = Shift.filter(start_time__gte=start, start_time__lt=end)
    return await query.using_db(get_connection(connection_name)).order_by("start_time", "id")
