import enum


class OrderStatus(str, enum.Enum):
    pending = "pending"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"


class POStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    received = "received"
    cancelled = "cancelled"


class Role(str, enum.Enum):
    admin = "admin"
    user = "user"
