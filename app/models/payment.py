from mongoengine import DateTimeField, EmailField, FloatField, StringField

from app.models.base import BaseDocument, utcnow


class Payment(BaseDocument):
    """Completed subscription payment reported back by the client."""
    email = EmailField(required=True, null=False)
    amount = FloatField(required=True, null=False, min_value=0)
    currency = StringField(required=True, null=False)
    transaction_id = StringField(required=True, null=False, unique=True)
    coupon_code = StringField(required=False, null=True)
    timestamp = DateTimeField(required=True, null=False, default=utcnow)

    meta = {
        "collection": "payments",
        "indexes": [
            {"fields": ["transaction_id"], "unique": True},
            {"fields": ["email", "-timestamp"]},
        ],
    }
