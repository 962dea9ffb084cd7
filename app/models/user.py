from mongoengine import BooleanField, EmailField, StringField

from app.models.base import BaseDocument
from app.utils.base import Role


class User(BaseDocument):
    """User document.

    Fields:
    - email (EmailStr, unique): identity key, stored lower-cased
    - name/photo (str): profile data from the identity provider
    - role (str): none/moderator/admin, changed by admins only
    - subscribed (bool): set once a payment is recorded
    """
    email = EmailField(required=True, null=False, unique=True)
    name = StringField(required=False, null=True)
    photo = StringField(required=False, null=True)
    role = StringField(required=True, null=False, default=Role.NONE.value, choices=Role.values())
    subscribed = BooleanField(required=True, null=False, default=False)

    meta = {
        "collection": "users",
        "indexes": [
            {"fields": ["email"], "unique": True},
        ],
    }
