"""
Publish workflow.

States of a piece of content:

    (none) --save_as_draft--> Draft --publish--> Blog(published)
    Blog(published) --unpublish--> Blog(draft) --publish--> Blog(published)
    Blog --delete--> (gone); drafts that pointed at it become standalone

The publish guard runs before anything is read from or written to storage.
"""

import logging
from dataclasses import dataclass, field

from django.db import DatabaseError, transaction

from accounts.permissions import ensure_blog_owner
from blog import services
from blog.models import Blog
from blog.validators import ensure_publishable, has_meaningful_content
from utils.audit import log_audit
from utils.errors import ContentError, InvalidInput, NotFound
from utils.ids import validate_object_id

logger = logging.getLogger(__name__)

DRAFT_CLEANUP_WARNING = "Published but failed to delete draft on server."


@dataclass
class PublishOutcome:
    blog: Blog
    created: bool = False
    recovered: bool = False
    deleted_drafts: int = 0
    warnings: list = field(default_factory=list)

    def to_dict(self):
        return {
            "blog": self.blog.to_dict(),
            "created": self.created,
            "recovered": self.recovered,
            "deletedDrafts": self.deleted_drafts,
        }


def save_as_draft(context, fields, blog_id=None, draft_id=None, base_revision=None):
    """
    Persist work in progress without touching the live blog.

    Updates an existing draft by id, upserts the draft linked to blog_id, or
    creates a standalone draft. A standalone draft is only created when there
    is something worth keeping.
    """
    if not draft_id and not blog_id:
        if not has_meaningful_content(fields.get("title"), fields.get("description"), fields.get("image")):
            raise InvalidInput("Nothing to save yet: add a title, some text or an image.")

    if draft_id:
        return services.update_draft(context, draft_id, fields, base_revision=base_revision)
    return services.upsert_draft(context, blog_id, fields, base_revision=base_revision)


def publish(context, fields, blog_id=None, draft_id=None, author_user_id=None):
    """
    Publish content as a new blog or over an existing one.

    When blog_id refers to a blog that has since been deleted, a replacement
    is created and the outcome is marked recovered. After the blog is stored
    the corresponding draft is removed; failing to remove it only adds a
    warning to the outcome.
    """
    title = (fields.get("title") or "").strip()
    description = fields.get("description") or ""
    ensure_publishable(title, description)
    if blog_id:
        validate_object_id(blog_id, "blogId")
    if draft_id:
        validate_object_id(draft_id, "draftId")

    data = {
        "title": title,
        "description": description,
        "status": Blog.STATUS_PUBLISHED,
    }
    # Omitted fields keep the existing blog's values
    for name in ("image", "category"):
        if name in fields:
            data[name] = fields[name] or ""

    if blog_id:
        try:
            outcome = PublishOutcome(blog=services.update_blog(context, blog_id, data))
        except NotFound:
            blog, created = services.recover_blog(context, blog_id, data)
            outcome = PublishOutcome(blog=blog, created=created, recovered=created)
    else:
        blog = services.create_blog(author_user_id or context.user_id, data)
        outcome = PublishOutcome(blog=blog, created=True)

    logger.info(f"Published blog {outcome.blog.pk} (created={outcome.created}, recovered={outcome.recovered})")
    _remove_published_draft(context, outcome, blog_id=blog_id, draft_id=draft_id)
    return outcome


def _remove_published_draft(context, outcome, blog_id=None, draft_id=None):
    try:
        if draft_id:
            outcome.deleted_drafts = services.delete_draft(context, draft_id)
        elif blog_id:
            outcome.deleted_drafts = services.delete_draft_for_blog(context, blog_id)
    except (ContentError, DatabaseError) as e:
        logger.warning(f"Blog {outcome.blog.pk} published but draft cleanup failed: {e}")
        outcome.warnings.append(DRAFT_CLEANUP_WARNING)


def publish_draft(context, draft_id):
    """Publish a stored draft; the resulting blog belongs to the draft's owner."""
    draft = services.get_owned_draft(context, draft_id)
    return publish(
        context,
        {
            "title": draft.title,
            "description": draft.description,
            "image": draft.image,
            "category": draft.category,
        },
        blog_id=draft.blog_id,
        draft_id=draft.pk,
        author_user_id=draft.user_id,
    )


def set_blog_status(context, blog_id, status):
    """Move an existing blog between draft and published status."""
    if status not in (Blog.STATUS_DRAFT, Blog.STATUS_PUBLISHED):
        raise InvalidInput(f"Unknown status: {status}")

    validate_object_id(blog_id, "blog id")
    with transaction.atomic():
        blog = Blog.objects.select_for_update().filter(pk=blog_id).first()
        if blog is None:
            raise NotFound("Blog not found")
        ensure_blog_owner(context, blog)
        if status == Blog.STATUS_PUBLISHED:
            ensure_publishable(blog.title, blog.description)
        if blog.status != status:
            blog.status = status
            blog.save(update_fields=["status", "updated_at"])

    log_audit(f"set_blog_status:{status}", actor_id=context.user_id, target_id=blog.pk, target_type="blog")
    return blog


def unpublish(context, blog_id):
    return set_blog_status(context, blog_id, Blog.STATUS_DRAFT)


def republish(context, blog_id):
    return set_blog_status(context, blog_id, Blog.STATUS_PUBLISHED)


def delete_blog(context, blog_id):
    return services.delete_blog(context, blog_id)


POST_ACTIONS = {
    "publish": republish,
    "unpublish": unpublish,
    "delete": delete_blog,
}


def apply_post_action(context, blog_id, action):
    handler = POST_ACTIONS.get(action)
    if handler is None:
        raise InvalidInput(f"Unknown action: {action}")
    return handler(context, blog_id)
