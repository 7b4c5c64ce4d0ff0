from django.conf import settings
from django.core.validators import MaxLengthValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from utils.models import DocumentModel, TimestampedModel


class Author(DocumentModel, TimestampedModel):
    """Public profile of a promoted user. Exactly one per user."""

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="author_profile",
    )
    name = models.CharField(max_length=200)
    bio = models.TextField(blank=True)
    profile_image = models.CharField(max_length=500, blank=True)
    slug = models.SlugField(max_length=255, unique=True)

    class Meta:
        db_table = "authors"
        ordering = ["name"]

    def __str__(self):
        return self.name or self.slug

    def to_dict(self):
        return {
            "id": self.pk,
            "userId": self.user_id,
            "name": self.name,
            "bio": self.bio,
            "profileImage": self.profile_image,
            "slug": self.slug,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class Blog(DocumentModel, TimestampedModel):
    """
    A published or draft-status article.

    author_name and author_slug are copies of the Author's fields at last
    write; update_author() propagates changes to them.
    """

    STATUS_DRAFT = "draft"
    STATUS_PUBLISHED = "published"
    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_PUBLISHED, "Published"),
    ]

    title = models.CharField(max_length=300)
    description = models.TextField(help_text="Sanitized HTML body")
    image = models.CharField(max_length=500, blank=True)
    category = models.CharField(max_length=100, blank=True, db_index=True)
    slug = models.SlugField(max_length=255, unique=True)
    likes = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_DRAFT, db_index=True)

    author = models.ForeignKey(
        Author,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="blogs",
    )
    author_name = models.CharField(max_length=200, blank=True)
    author_slug = models.CharField(max_length=255, blank=True, null=True)

    class Meta:
        db_table = "blogs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"], name="blogs_status_created_idx"),
            models.Index(fields=["status", "likes"], name="blogs_status_likes_idx"),
        ]

    def __str__(self):
        return self.title

    @property
    def is_published(self):
        return self.status == self.STATUS_PUBLISHED

    def to_dict(self):
        return {
            "id": self.pk,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "category": self.category,
            "slug": self.slug,
            "likes": self.likes,
            "status": self.status,
            "authorId": self.author_id,
            "authorName": self.author_name,
            "authorSlug": self.author_slug,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class Draft(DocumentModel, TimestampedModel):
    """
    Unpublished working copy owned by a user.

    A draft linked to a blog is unique per (user, blog); standalone drafts
    (blog is NULL) are not. Deleting the blog unlinks the draft.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="drafts",
    )
    blog = models.ForeignKey(
        Blog,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="drafts",
    )
    title = models.CharField(max_length=300, blank=True)
    description = models.TextField(blank=True)
    image = models.CharField(max_length=500, blank=True)
    category = models.CharField(max_length=100, blank=True)
    status = models.CharField(max_length=10, choices=Blog.STATUS_CHOICES, default=Blog.STATUS_DRAFT)
    revision = models.PositiveIntegerField(default=1, help_text="Incremented on every save")

    class Meta:
        db_table = "drafts"
        ordering = ["-updated_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["user", "blog"],
                condition=Q(blog__isnull=False),
                name="unique_draft_per_user_blog",
            ),
        ]

    def __str__(self):
        return self.title or f"Untitled draft {self.pk}"

    def to_dict(self):
        return {
            "id": self.pk,
            "userId": self.user_id,
            "blogId": self.blog_id,
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "category": self.category,
            "status": self.status,
            "revision": self.revision,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


class Comment(DocumentModel):
    blog = models.ForeignKey(Blog, on_delete=models.CASCADE, related_name="comments")
    name = models.CharField(max_length=100)
    message = models.TextField(
        validators=[MaxLengthValidator(2000)],
        help_text="Comment content (max 2000 characters)",
    )
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        db_table = "comments"
        ordering = ["-created_at"]

    def __str__(self):
        return f"Comment by {self.name} on {self.blog_id}"

    def to_dict(self):
        return {
            "id": self.pk,
            "blogId": self.blog_id,
            "name": self.name,
            "message": self.message,
            "createdAt": self.created_at,
        }
