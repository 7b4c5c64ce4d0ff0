import json

from django.core.management.base import BaseCommand
from django_celery_beat.models import CrontabSchedule, PeriodicTask

# Format: (name, task_path, cron_schedule, task_kwargs, description)
PERIODIC_TASKS = [
    (
        "Purge expired newsletter confirmations",
        "newsletter.tasks.purge_expired_pending_subscribers",
        {"minute": "30", "hour": "*/6"},
        {},
        "Deletes pending newsletter subscriptions whose confirmation link has expired",
    ),
    (
        "Refresh popular categories",
        "blog.tasks.refresh_popular_categories",
        {"minute": "*/15"},
        {"limit": 6},
        "Recomputes the cached popular categories shown on the home page",
    ),
]


class Command(BaseCommand):
    help = "Register the content hub's periodic tasks with Celery Beat"

    def add_arguments(self, parser):
        parser.add_argument(
            "--keep-orphans",
            action="store_true",
            help="Leave periodic tasks that are not listed here untouched",
        )

    def handle(self, *args, **options):
        configured = set()

        for name, task_path, cron_config, task_kwargs, description in PERIODIC_TASKS:
            configured.add(name)

            schedule, _ = CrontabSchedule.objects.get_or_create(
                minute=cron_config.get("minute", "*"),
                hour=cron_config.get("hour", "*"),
                day_of_week=cron_config.get("day_of_week", "*"),
                day_of_month=cron_config.get("day_of_month", "*"),
                month_of_year=cron_config.get("month_of_year", "*"),
            )

            task, created = PeriodicTask.objects.update_or_create(
                name=name,
                defaults={
                    "task": task_path,
                    "crontab": schedule,
                    "kwargs": json.dumps(task_kwargs),
                    "enabled": True,
                    "description": description,
                },
            )
            self.stdout.write(self.style.SUCCESS(f"{'Created' if created else 'Updated'}: {task.name}"))

        if options["keep_orphans"]:
            return

        # celery.backend_cleanup is managed by django-celery-beat itself
        orphaned = PeriodicTask.objects.exclude(name__in=configured).exclude(task="celery.backend_cleanup")
        for task in orphaned:
            self.stdout.write(self.style.WARNING(f"Removing orphaned task: {task.name}"))
            task.delete()

        self.stdout.write(self.style.SUCCESS(f"Configured {len(PERIODIC_TASKS)} periodic tasks"))
