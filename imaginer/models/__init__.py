from imaginer.models.audit_log import AuditLog
from imaginer.models.image import Image
from imaginer.models.sequence import Sequence
from imaginer.models.transaction import Transaction
from imaginer.models.user import User

__all__ = [
    "AuditLog",
    "Image",
    "Sequence",
    "Transaction",
    "User",
]
