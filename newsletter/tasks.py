import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.template.loader import render_to_string

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    retry_backoff_max=600,  # Max 10 minutes between retries
    max_retries=3,
)
def send_confirmation_email(self, pending_id):
    from newsletter.models import PendingSubscriber

    pending = PendingSubscriber.objects.filter(pk=pending_id).first()
    if pending is None:
        # Confirmed or purged before the worker got to it
        return False

    parameters = {"confirm_url": pending.confirm_url, "app_url": settings.APP_URL}
    text_body = render_to_string("emails/newsletter_confirmation.txt", parameters)
    html_body = render_to_string("emails/newsletter_confirmation.html", parameters)

    send_mail(
        "Please Confirm Your Subscription",
        text_body,
        settings.DEFAULT_FROM_EMAIL,
        [pending.email],
        html_message=html_body,
    )
    logger.info(f"Sent newsletter confirmation for pending {pending.pk}")
    return True


@shared_task(
    bind=True,
    autoretry_for=(Exception,),
    retry_backoff=True,
    max_retries=3,
)
def purge_expired_pending_subscribers(self):
    from newsletter.services import purge_expired_pending

    try:
        deleted = purge_expired_pending()
        logger.info(f"Purged {deleted} expired newsletter confirmations")
        return deleted
    except Exception as e:
        logger.error(f"Error purging expired newsletter confirmations: {e}")
        raise
