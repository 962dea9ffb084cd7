from mongoengine import DateTimeField, IntField, StringField

from app.models.base import BaseDocument


class Coupon(BaseDocument):
    """Percentage discount applied to a payment intent.

    Fields: code (unique, upper-cased), discount (1-100), description, expires_at.
    """
    code = StringField(required=True, null=False, unique=True)
    discount = IntField(required=True, null=False, min_value=1, max_value=100)
    description = StringField(required=False, null=True, default="")
    expires_at = DateTimeField(required=True, null=False)

    meta = {
        "collection": "coupons",
        "indexes": [
            {"fields": ["code"], "unique": True},
        ],
    }
