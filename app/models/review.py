from mongoengine import DateTimeField, EmailField, IntField, ReferenceField, StringField

from app.models.base import BaseDocument, utcnow
from app.models.product import Product


class Review(BaseDocument):
    """Append-only feedback on a product; the product store deletes it with its product."""
    product = ReferenceField(document_type=Product, required=True, null=False)
    reviewer_email = EmailField(required=True, null=False)
    reviewer_name = StringField(required=False, null=True)
    reviewer_image = StringField(required=False, null=True)
    rating = IntField(required=True, null=False, min_value=1, max_value=5)
    comment = StringField(required=False, null=True, default="")
    timestamp = DateTimeField(required=True, null=False, default=utcnow)

    meta = {
        "collection": "reviews",
        "indexes": [
            {"fields": ["product", "-timestamp"]},
        ],
    }

    def to_output(self, fields=None, exclude=None):
        exclude = list(exclude or []) + ["product"]
        output = super().to_output(fields, exclude)
        output["product_id"] = str(self.product.id) if self.product else None
        return output
