from .audit import AuditLog
from .mixins import DocumentModel, TimestampedModel

__all__ = [
    "DocumentModel",
    "TimestampedModel",
    "AuditLog",
]
