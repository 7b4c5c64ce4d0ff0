import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models

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


def created_at_field():
    return models.DateTimeField(
        db_index=True,
        default=django.utils.timezone.now,
        editable=False,
        help_text="Timestamp when this record was created",
    )


def updated_at_field():
    return models.DateTimeField(
        auto_now=True,
        db_index=True,
        help_text="Timestamp when this record was last updated",
    )


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Author",
            fields=[
                ("id", id_field()),
                ("created_at", created_at_field()),
                ("updated_at", updated_at_field()),
                ("name", models.CharField(max_length=200)),
                ("bio", models.TextField(blank=True)),
                ("profile_image", models.CharField(blank=True, max_length=500)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                (
                    "user",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="author_profile",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "authors",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="Blog",
            fields=[
                ("id", id_field()),
                ("created_at", created_at_field()),
                ("updated_at", updated_at_field()),
                ("title", models.CharField(max_length=300)),
                ("description", models.TextField(help_text="Sanitized HTML body")),
                ("image", models.CharField(blank=True, max_length=500)),
                ("category", models.CharField(blank=True, db_index=True, max_length=100)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("likes", models.PositiveIntegerField(default=0)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("published", "Published")],
                        db_index=True,
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("author_name", models.CharField(blank=True, max_length=200)),
                ("author_slug", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "author",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="blogs",
                        to="blog.author",
                    ),
                ),
            ],
            options={
                "db_table": "blogs",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="blogs_status_created_idx"),
                    models.Index(fields=["status", "likes"], name="blogs_status_likes_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Draft",
            fields=[
                ("id", id_field()),
                ("created_at", created_at_field()),
                ("updated_at", updated_at_field()),
                ("title", models.CharField(blank=True, max_length=300)),
                ("description", models.TextField(blank=True)),
                ("image", models.CharField(blank=True, max_length=500)),
                ("category", models.CharField(blank=True, max_length=100)),
                (
                    "status",
                    models.CharField(
                        choices=[("draft", "Draft"), ("published", "Published")],
                        default="draft",
                        max_length=10,
                    ),
                ),
                ("revision", models.PositiveIntegerField(default=1, help_text="Incremented on every save")),
                (
                    "blog",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="drafts",
                        to="blog.blog",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="drafts",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "drafts",
                "ordering": ["-updated_at"],
                "constraints": [
                    models.UniqueConstraint(
                        condition=models.Q(("blog__isnull", False)),
                        fields=("user", "blog"),
                        name="unique_draft_per_user_blog",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Comment",
            fields=[
                ("id", id_field()),
                ("name", models.CharField(max_length=100)),
                (
                    "message",
                    models.TextField(
                        help_text="Comment content (max 2000 characters)",
                        validators=[django.core.validators.MaxLengthValidator(2000)],
                    ),
                ),
                ("created_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "blog",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="comments",
                        to="blog.blog",
                    ),
                ),
            ],
            options={
                "db_table": "comments",
                "ordering": ["-created_at"],
            },
        ),
    ]
