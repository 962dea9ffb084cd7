from app.utils.base.enums import BaseEnum, ProductStatus, Role

__all__ = ["BaseEnum", "ProductStatus", "Role"]
