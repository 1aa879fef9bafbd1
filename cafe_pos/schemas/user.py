from pydantic import BaseModel
from cafe_pos.models.user import UserRole


class UserResponse(BaseModel):
    id: int
    name: str
    role: UserRole
    is_active: bool
