import logging

from django.db import IntegrityError, transaction
from django.utils import timezone

from newsletter.models import PendingSubscriber, Subscriber, generate_token
from utils.errors import NotFound

logger = logging.getLogger(__name__)


def normalize_email(email):
    return (email or "").strip().lower()


def is_subscribed(email):
    email = normalize_email(email)
    if not email:
        return False
    return Subscriber.objects.filter(email=email).exists()


def subscribe(email):
    """
    Start a double opt-in for `email`.

    Existing subscribers are reported as already subscribed. Otherwise the
    pending record gets a fresh token and a confirmation email is queued once
    the transaction commits. Returns (pending, already).
    """
    from newsletter.tasks import send_confirmation_email

    email = normalize_email(email)
    if Subscriber.objects.filter(email=email).exists():
        return None, True

    with transaction.atomic():
        pending, created = PendingSubscriber.objects.update_or_create(
            email=email,
            defaults={"token": generate_token(), "created_at": timezone.now()},
        )
        transaction.on_commit(lambda: send_confirmation_email.delay(pending.pk))

    logger.info(f"Newsletter confirmation {'created' if created else 'refreshed'} for pending {pending.pk}")
    return pending, False


def confirm(token):
    """Turn a pending address into a subscriber. Unknown or expired tokens raise NotFound."""
    with transaction.atomic():
        pending = PendingSubscriber.objects.select_for_update().filter(token=token).first() if token else None
        if pending is None:
            raise NotFound("Invalid or expired token")

        expired = pending.is_expired
        subscriber = None
        if not expired:
            try:
                with transaction.atomic():
                    subscriber, _ = Subscriber.objects.get_or_create(email=pending.email)
            except IntegrityError:
                subscriber = Subscriber.objects.get(email=pending.email)
        pending.delete()

    if expired:
        raise NotFound("Invalid or expired token")

    logger.info(f"Newsletter subscription confirmed for subscriber {subscriber.pk}")
    return subscriber


def purge_expired_pending():
    deleted, _ = PendingSubscriber.objects.filter(created_at__lt=PendingSubscriber.expiry_cutoff()).delete()
    return deleted
