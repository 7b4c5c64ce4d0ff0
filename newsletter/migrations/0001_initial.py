import django.utils.timezone
from django.db import migrations, models

import newsletter.models
import utils.ids


def id_field():
    return models.CharField(
        default=utils.ids.generate_object_id,
        editable=False,
        help_text="24-character hex document id",
        max_length=24,
        primary_key=True,
        serialize=False,
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="PendingSubscriber",
            fields=[
                ("id", id_field()),
                ("email", models.EmailField(max_length=254, unique=True)),
                (
                    "token",
                    models.CharField(default=newsletter.models.generate_token, max_length=64, unique=True),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "pending_subscribers",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="Subscriber",
            fields=[
                ("id", id_field()),
                ("email", models.EmailField(max_length=254, unique=True)),
                ("subscribed_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "subscribers",
                "ordering": ["-subscribed_at"],
            },
        ),
    ]
