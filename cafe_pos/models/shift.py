from tortoise import fields, models


class Shift(models.Model):
    id = fields.IntField(primary_key=True)
    user = fields.ForeignKeyField("models.User", related_name="shifts", on_delete=fields.CASCADE)
    start_time = fields.DatetimeField()
    end_time = fields.DatetimeField()

    class Meta:
        table = "shifts"
        indexes = [
            ("user_id", "start_time"),  # Per-employee overlap lookups
        ]
