# fleetmaint/db/enums.py
import enum

# ServiceNote related enums
class ServiceNoteStatus(enum.Enum):
    open = "open"
    in_progress = "in_progress"
    completed = "completed"


class ServiceNotePriority(enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"

# AuditLog related enums
class AuditEntityType(enum.Enum):
    Part = "part"
    ServiceNote = "service_note"
    ServiceOrderPart = "service_order_part"


class AuditAction(enum.Enum):
    create = "create"
    update = "update"
    delete = "delete"
    system = "system"
