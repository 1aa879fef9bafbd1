from fastapi import APIRouter, Depends
from cafe_pos.api.deps import get_connection_name
from cafe_pos.schemas.response import SuccessResponse
from cafe_pos.schemas.user import UserResponse
from cafe_pos.services.user_service import list_users

router = APIRouter()


@router.get("", response_model=SuccessResponse)
async def list_users_endpoint(include_inactive: bool = False, connection_name: str = Depends(get_connection_name)):
    """Staff list used by the schedule editor to resolve employee ids."""
    users = await list_users(include_inactive, connection_name=connection_name)
    data = [
        UserResponse(id=u.id, name=u.name, role=u.role, is_active=u.is_active).model_dump()
        for u in users
    ]
    return SuccessResponse(data=data)
