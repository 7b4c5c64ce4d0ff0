import secrets
from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone

from utils.models.mixins import DocumentModel


def generate_token():
    return secrets.token_urlsafe(32)


class Subscriber(DocumentModel):
    email = models.EmailField(unique=True)
    subscribed_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "subscribers"
        ordering = ["-subscribed_at"]

    def __str__(self):
        return self.email


class PendingSubscriber(DocumentModel):
    """An address waiting for its owner to click the confirmation link."""

    email = models.EmailField(unique=True)
    token = models.CharField(max_length=64, unique=True, default=generate_token)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "pending_subscribers"
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.email} (pending)"

    @staticmethod
    def expiry_cutoff():
        return timezone.now() - timedelta(hours=settings.NEWSLETTER_TOKEN_TTL_HOURS)

    @property
    def is_expired(self):
        return self.created_at < self.expiry_cutoff()

    @property
    def confirm_url(self):
        return f"{settings.APP_URL.rstrip('/')}/api/newsletter/confirm/?token={self.token}"
