from tortoise import fields, models


class AuditLog(models.Model):
    """
    Append-only record of business actions. Rows are written in the same
    transaction as the action they describe and are never updated or deleted.
    """
    id = fields.IntField(primary_key=True)
    user = fields.ForeignKeyField("models.User", related_name="logs", null=True, on_delete=fields.SET_NULL)
    action = fields.CharField(max_length=64) # e.g. 'COMPLETE_ORDER'
    module = fields.CharField(max_length=64) # e.g. 'Orders', 'Warehouse'
    details = fields.TextField(default="")
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "logs"
        indexes = [
            ("created_at",),
        ]
