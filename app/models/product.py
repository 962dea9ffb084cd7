from mongoengine import BooleanField, DateTimeField, IntField, ListField, StringField, EmailField

from app.models.base import BaseDocument, utcnow
from app.utils.base import ProductStatus


class Product(BaseDocument):
    """Product submitted to the site.

    Fields:
    - name/image/description/external_link (str): submitter content
    - tags (list[str]): searched case-insensitively by substring
    - owner_email/owner_name/owner_image: submitter, immutable after creation
    - status (str): pending/accepted/rejected, pending until moderated
    - votes (list[str]): voter emails, unique
    - vote_count (int): always len(votes); changed together with votes in one update
    - reported (bool): raised by a report, never cleared automatically
    - timestamp (datetime): creation time, default sort key
    """
    name = StringField(required=True, null=False)
    image = StringField(required=False, null=True)
    description = StringField(required=False, null=True, default="")
    external_link = StringField(required=False, null=True)
    tags = ListField(StringField(), null=False, default=list)

    owner_email = EmailField(required=True, null=False)
    owner_name = StringField(required=False, null=True)
    owner_image = StringField(required=False, null=True)

    status = StringField(required=True, null=False, default=ProductStatus.PENDING.value, choices=ProductStatus.values())
    votes = ListField(StringField(), null=False, default=list)
    vote_count = IntField(required=True, null=False, default=0, min_value=0)
    reported = BooleanField(required=True, null=False, default=False)
    timestamp = DateTimeField(required=True, null=False, default=utcnow)

    meta = {
        "collection": "products",
        "indexes": [
            {"fields": ["status", "-timestamp"]},
            {"fields": ["status", "-vote_count"]},
            {"fields": ["owner_email"]},
            {"fields": ["reported"]},
        ],
    }
