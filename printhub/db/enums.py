# printhub/db/enums.py
import enum

# User related enums
class UserRole(enum.Enum):
    student = "student"
    admin = "admin"


# Print option enums. Values are the labels the client submits.
class ColorMode(enum.Enum):
    BLACK_WHITE = "Black & White"
    COLOR = "Color"


class DuplexMode(enum.Enum):
    SINGLE = "Single-sided"
    DOUBLE = "Double-sided"


class PaperSize(enum.Enum):
    A4 = "A4"
    A3 = "A3"
    LETTER = "Letter"
    LEGAL = "Legal"


# Order related enums
class OrderStatus(enum.Enum):
    queued = "queued"
    done = "done"
    cancelled = "cancelled"

    @classmethod
    def parse(cls, value):
        '''Resolve a submitted status; returns None when outside the set'''
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        value = value.strip().lower()
        if value == "queue":  # label used by older clients
            return cls.queued
        try:
            return cls(value)
        except ValueError:
            return None


# AuditLog related enums
class AuditEntityType(enum.Enum):
    User = "user"
    RateTable = "rate_table"
    Order = "order"
    PrintJob = "print_job"
    ServiceStatus = "service_status"


class AuditAction(enum.Enum):
    create = "create"
    update = "update"
    system = "system"
