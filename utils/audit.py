import logging

from django.db import transaction

logger = logging.getLogger(__name__)


def log_audit(action, actor_id=None, target_id=None, target_type=None, meta=None):
    """Write an audit entry. Never raises: a failed audit must not fail the caller."""
    from utils.models import AuditLog

    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                action=action,
                actor_id=actor_id,
                target_id=target_id,
                target_type=target_type,
                meta=meta,
            )
    except Exception as e:
        logger.error(f"[Audit] failed to write audit log for {action}: {e}")
        return None
