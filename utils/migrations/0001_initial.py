import django.utils.timezone
from django.db import migrations, models

import utils.ids


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                (
                    "id",
                    models.CharField(
                        default=utils.ids.generate_object_id,
                        editable=False,
                        help_text="24-character hex document id",
                        max_length=24,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("action", models.CharField(db_index=True, max_length=100)),
                ("actor_id", models.CharField(blank=True, max_length=24, null=True)),
                ("target_id", models.CharField(blank=True, max_length=24, null=True)),
                ("target_type", models.CharField(blank=True, max_length=50, null=True)),
                ("meta", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
            ],
            options={
                "verbose_name": "Audit Log Entry",
                "verbose_name_plural": "Audit Log",
                "db_table": "audit_logs",
                "ordering": ["-created_at"],
            },
        ),
    ]
