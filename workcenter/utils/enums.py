from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    STANDARD = "STANDARD"
    READ_ONLY = "READ_ONLY"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class ProductStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class OrderStatus(str, Enum):
    WIP = "WIP"
    FINISHED = "FINISHED"
    DELETED = "DELETED"


class HistoryEvent(str, Enum):
    ORDER_CREATED = "ORDER_CREATED"
    LINE_ITEMS_ADDED = "LINE_ITEMS_ADDED"
    STATUS_CHANGED = "STATUS_CHANGED"
    ORDER_DELETED = "ORDER_DELETED"
    ATTACHMENT_CREATED = "ATTACHMENT_CREATED"
    ATTACHMENT_VERSION_ADDED = "ATTACHMENT_VERSION_ADDED"
    ATTACHMENT_ARCHIVED = "ATTACHMENT_ARCHIVED"


STATUS_LABELS = {
    OrderStatus.WIP.value: "Work In Progress",
    OrderStatus.FINISHED.value: "Completed Works",
    OrderStatus.DELETED.value: "Deleted",
}
