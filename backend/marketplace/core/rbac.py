import enum


class Role(str, enum.Enum):
    customer = "customer"
    vendor = "vendor"
    admin = "admin"
