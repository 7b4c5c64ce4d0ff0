import json
from io import StringIO

from django.core.management import call_command
from django.test import TestCase
from django_celery_beat.models import CrontabSchedule, PeriodicTask

from utils.management.commands.setup_periodic_tasks import PERIODIC_TASKS


class SetupPeriodicTasksCommandTest(TestCase):
    def test_creates_all_tasks(self):
        out = StringIO()
        call_command("setup_periodic_tasks", stdout=out)

        self.assertEqual(PeriodicTask.objects.count(), len(PERIODIC_TASKS))
        refresh = PeriodicTask.objects.get(task="blog.tasks.refresh_popular_categories")
        self.assertEqual(json.loads(refresh.kwargs), {"limit": 6})
        self.assertEqual(refresh.crontab.minute, "*/15")
        self.assertIn("Created: Refresh popular categories", out.getvalue())

    def test_is_idempotent(self):
        call_command("setup_periodic_tasks", stdout=StringIO())
        out = StringIO()
        call_command("setup_periodic_tasks", stdout=out)

        self.assertEqual(PeriodicTask.objects.count(), len(PERIODIC_TASKS))
        self.assertIn("Updated:", out.getvalue())

    def test_removes_orphans(self):
        schedule = CrontabSchedule.objects.create(minute="0", hour="1")
        PeriodicTask.objects.create(name="Old task", task="blog.tasks.retired", crontab=schedule)

        call_command("setup_periodic_tasks", stdout=StringIO())

        self.assertFalse(PeriodicTask.objects.filter(name="Old task").exists())

    def test_keep_orphans(self):
        schedule = CrontabSchedule.objects.create(minute="0", hour="1")
        PeriodicTask.objects.create(name="Old task", task="blog.tasks.retired", crontab=schedule)

        call_command("setup_periodic_tasks", "--keep-orphans", stdout=StringIO())

        self.assertTrue(PeriodicTask.objects.filter(name="Old task").exists())
