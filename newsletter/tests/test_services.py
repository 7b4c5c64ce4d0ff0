from datetime import timedelta
from unittest.mock import patch

from django.core import mail
from django.test import TestCase, override_settings
from django.utils import timezone

from newsletter import services
from newsletter.models import PendingSubscriber, Subscriber
from newsletter.tasks import purge_expired_pending_subscribers, send_confirmation_email
from utils.errors import NotFound


@patch("newsletter.tasks.send_confirmation_email.delay")
class SubscribeTest(TestCase):
    def test_new_address_gets_pending_record_and_email(self, mock_delay):
        with self.captureOnCommitCallbacks(execute=True):
            pending, already = services.subscribe("  Reader@Example.com ")

        self.assertFalse(already)
        self.assertEqual(pending.email, "reader@example.com")
        mock_delay.assert_called_once_with(pending.pk)

    def test_resubscribing_refreshes_token(self, mock_delay):
        with self.captureOnCommitCallbacks(execute=True):
            first, _ = services.subscribe("reader@example.com")
        old_token = first.token

        with self.captureOnCommitCallbacks(execute=True):
            second, _ = services.subscribe("reader@example.com")

        self.assertEqual(PendingSubscriber.objects.count(), 1)
        self.assertNotEqual(second.token, old_token)
        self.assertEqual(mock_delay.call_count, 2)

    def test_existing_subscriber_is_reported(self, mock_delay):
        Subscriber.objects.create(email="reader@example.com")

        pending, already = services.subscribe("reader@example.com")

        self.assertTrue(already)
        self.assertIsNone(pending)
        self.assertFalse(PendingSubscriber.objects.exists())
        mock_delay.assert_not_called()


class ConfirmTest(TestCase):
    def test_confirm_moves_pending_to_subscribers(self):
        pending = PendingSubscriber.objects.create(email="reader@example.com")

        subscriber = services.confirm(pending.token)

        self.assertEqual(subscriber.email, "reader@example.com")
        self.assertFalse(PendingSubscriber.objects.exists())
        self.assertTrue(services.is_subscribed("Reader@example.com"))

    def test_confirm_is_idempotent_for_existing_subscriber(self):
        Subscriber.objects.create(email="reader@example.com")
        pending = PendingSubscriber.objects.create(email="reader@example.com")

        services.confirm(pending.token)

        self.assertEqual(Subscriber.objects.count(), 1)

    def test_unknown_token(self):
        with self.assertRaises(NotFound):
            services.confirm("nope")
        with self.assertRaises(NotFound):
            services.confirm("")

    @override_settings(NEWSLETTER_TOKEN_TTL_HOURS=48)
    def test_expired_token_is_rejected_and_removed(self):
        pending = PendingSubscriber.objects.create(
            email="reader@example.com", created_at=timezone.now() - timedelta(hours=49)
        )

        with self.assertRaises(NotFound):
            services.confirm(pending.token)

        self.assertFalse(PendingSubscriber.objects.exists())
        self.assertFalse(Subscriber.objects.exists())


@override_settings(
    EMAIL_BACKEND="django.core.mail.backends.locmem.EmailBackend",
    APP_URL="https://ideas.example.com",
    DEFAULT_FROM_EMAIL="hub@example.com",
)
class NewsletterTasksTest(TestCase):
    def test_confirmation_email_contains_link(self):
        pending = PendingSubscriber.objects.create(email="reader@example.com")

        self.assertTrue(send_confirmation_email(pending.pk))

        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ["reader@example.com"])
        self.assertEqual(message.from_email, "hub@example.com")
        link = f"https://ideas.example.com/api/newsletter/confirm/?token={pending.token}"
        self.assertIn(link, message.body)
        self.assertIn(link, message.alternatives[0][0])

    def test_confirmation_email_skips_missing_record(self):
        self.assertFalse(send_confirmation_email("0" * 24))
        self.assertEqual(len(mail.outbox), 0)

    def test_purge_removes_only_expired(self):
        PendingSubscriber.objects.create(email="old@example.com", created_at=timezone.now() - timedelta(days=5))
        PendingSubscriber.objects.create(email="new@example.com")

        self.assertEqual(purge_expired_pending_subscribers(), 1)
        self.assertEqual(list(PendingSubscriber.objects.values_list("email", flat=True)), ["new@example.com"])
