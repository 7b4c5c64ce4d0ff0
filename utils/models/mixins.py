from django.db import models
from django.utils import timezone

from utils.ids import generate_object_id


class DocumentModel(models.Model):
    id = models.CharField(
        primary_key=True,
        max_length=24,
        default=generate_object_id,
        editable=False,
        help_text="24-character hex document id",
    )

    class Meta:
        abstract = True


class TimestampedModel(models.Model):
    created_at = models.DateTimeField(
        default=timezone.now,
        editable=False,
        db_index=True,
        help_text="Timestamp when this record was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        db_index=True,
        help_text="Timestamp when this record was last updated",
    )

    class Meta:
        abstract = True
        ordering = ["-created_at"]
