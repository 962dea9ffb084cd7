from enum import Enum


class BaseEnum(Enum):
    @classmethod
    def choices(cls):
        return [(item.value, item.name) for item in cls]

    @classmethod
    def values(cls) -> list[str]:
        return [item.value for item in cls]


class ProductStatus(BaseEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Role(BaseEnum):
    NONE = "none"
    MODERATOR = "moderator"
    ADMIN = "admin"
