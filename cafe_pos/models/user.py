from enum import Enum
from tortoise import fields, models


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class User(models.Model):
    """Staff member. Credentials live with the auth service; rows here are FK targets."""
    id = fields.IntField(primary_key=True)
    name = fields.CharField(max_length=128)
    role = fields.CharEnumField(UserRole, default=UserRole.EMPLOYEE)
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "users"
