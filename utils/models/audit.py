from django.db import models
from django.utils import timezone

from utils.models.mixins import DocumentModel


class AuditLog(DocumentModel):
    """
    Append-only record of privileged actions.

    action: short machine-friendly action name (e.g. "promote_user_to_author")
    actor_id: id of the user who performed the action
    target_id / target_type: the affected resource (e.g. a user id and "user")
    """

    action = models.CharField(max_length=100, db_index=True)
    actor_id = models.CharField(max_length=24, blank=True, null=True)
    target_id = models.CharField(max_length=24, blank=True, null=True)
    target_type = models.CharField(max_length=50, blank=True, null=True)
    meta = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        verbose_name = "Audit Log Entry"
        verbose_name_plural = "Audit Log"

    def __str__(self):
        return f"{self.action} by {self.actor_id or 'system'} on {self.target_type}:{self.target_id}"
