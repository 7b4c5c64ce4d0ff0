"""
Content store operations for authors, blogs, drafts and comments.

Callers pass an AuthContext obtained from accounts.permissions.require_role();
this module performs ownership checks but never looks at the request.
"""

import logging
from dataclasses import dataclass

from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, F

from accounts.permissions import ROLE_ADMIN, ROLE_AUTHOR, ensure_blog_owner, ensure_draft_owner
from blog.models import Author, Blog, Comment, Draft
from blog.sanitizer import sanitize_html
from blog.slugs import save_with_unique_slug
from blog.validators import ensure_publishable
from utils.audit import log_audit
from utils.errors import Forbidden, InternalError, InvalidInput, NotFound
from utils.ids import validate_object_id

logger = logging.getLogger(__name__)

CONTENT_FIELDS = ("title", "description", "image", "category", "status")
POPULAR_CATEGORIES_CACHE_TIMEOUT = 300


@dataclass
class DraftWrite:
    draft: Draft
    created: bool = False
    conflict: bool = False


# Authors


def resolve_author(user_id):
    """Return the user's Author profile, creating a placeholder one on first use."""
    try:
        author = Author.objects.filter(user_id=user_id).first()
        if author is not None:
            return author

        author = Author(
            user_id=user_id,
            name=settings.AUTHOR_PLACEHOLDER_NAME,
            profile_image=settings.BLOG_FALLBACK_IMAGE,
        )
        try:
            save_with_unique_slug(author, "", "author")
        except IntegrityError:
            # Another request created the profile first
            return Author.objects.get(user_id=user_id)
        logger.info(f"Created placeholder author {author.pk} for user {user_id}")
        return author
    except DatabaseError as e:
        logger.error(f"Author lookup failed for user {user_id}: {e}", exc_info=True)
        raise InternalError("Author resolution failed") from e


def promote_user_to_author(context, user_id=None, email=None, name="", bio="", profile_image="", slug=""):
    """
    Give a user the author role and an Author profile.

    Returns (author, created). Promoting a user who already has a profile
    returns the existing one unchanged.
    """
    if bool(user_id) == bool(email):
        raise InvalidInput("Provide exactly one of userId or email")
    if user_id:
        validate_object_id(user_id, "userId")

    User = get_user_model()
    lookup = {"pk": user_id} if user_id else {"email__iexact": email}

    with transaction.atomic():
        user = User.objects.select_for_update().filter(**lookup).first()
        if user is None:
            raise NotFound("No user found with given identifier")

        if user.role != ROLE_ADMIN:
            user.role = ROLE_AUTHOR
        if name:
            user.name = name
        if profile_image:
            user.image = profile_image
        user.save(update_fields=["role", "name", "image"])

        author = Author.objects.filter(user=user).first()
        if author is not None:
            return author, False

        author = Author(
            user=user,
            name=name or user.name or "",
            bio=bio or "",
            profile_image=profile_image or user.image or "",
        )
        save_with_unique_slug(author, slug or author.name, "author")

    logger.info(f"User {user.pk} promoted to author {author.pk} by {context.user_id}")
    log_audit(
        "promote_user_to_author",
        actor_id=context.user_id,
        target_id=user.pk,
        target_type="user",
        meta={"authorId": author.pk, "promotedName": author.name, "promotedEmail": user.email},
    )
    return author, True


def update_author(context, author_id, updates):
    """
    Apply a partial update to an Author.

    Name and slug changes are copied onto every blog of the author.
    """
    validate_object_id(author_id, "author id")

    with transaction.atomic():
        author = Author.objects.select_for_update().filter(pk=author_id).first()
        if author is None:
            raise NotFound("Author not found")

        for name in ("name", "bio", "profile_image"):
            if name in updates:
                setattr(author, name, updates[name] or "")

        new_slug = (updates.get("slug") or "").strip()
        if new_slug:
            save_with_unique_slug(author, new_slug, "author")
        else:
            author.save()

        propagated = {}
        if "name" in updates:
            propagated["author_name"] = author.name
        if new_slug:
            propagated["author_slug"] = author.slug
        if propagated:
            count = Blog.objects.filter(author=author).update(**propagated)
            logger.info(f"Propagated {sorted(propagated)} of author {author.pk} to {count} blogs")

    log_audit(
        "update_author",
        actor_id=context.user_id,
        target_id=author.pk,
        target_type="author",
        meta={"fields": sorted(updates)},
    )
    return author


def delete_author(context, author_id):
    """Remove an Author profile. Their blogs keep the copied name and slug."""
    validate_object_id(author_id, "author id")
    deleted, _ = Author.objects.filter(pk=author_id).delete()
    if not deleted:
        raise NotFound("Author not found")

    logger.info(f"Author {author_id} deleted by {context.user_id}")
    log_audit("delete_author", actor_id=context.user_id, target_id=author_id, target_type="author")


def list_authors():
    return Author.objects.order_by("name")


def get_author_by_slug(slug):
    author = Author.objects.filter(slug=slug).first()
    if author is None:
        raise NotFound("Author not found")
    return author


def list_users():
    return get_user_model().objects.order_by("-date_joined")


# Blogs


def _require_blog(blog_id, for_update=False):
    validate_object_id(blog_id, "blog id")
    queryset = Blog.objects.select_for_update() if for_update else Blog.objects.all()
    blog = queryset.filter(pk=blog_id).first()
    if blog is None:
        raise NotFound("Blog not found")
    return blog


def create_blog(author_user_id, data):
    """
    Create a blog for the given user, resolving (or lazily creating) their Author.

    Missing image and category fall back to settings.BLOG_FALLBACK_IMAGE and
    settings.BLOG_DEFAULT_CATEGORY. A "published" status is only accepted
    for content that passes the publish guard.
    """
    title = (data.get("title") or "").strip()
    if not title or not data.get("description"):
        raise InvalidInput("Title and description are required")

    description = sanitize_html(data["description"])
    status = data.get("status") or Blog.STATUS_DRAFT
    if status == Blog.STATUS_PUBLISHED:
        ensure_publishable(title, description)

    with transaction.atomic():
        author = resolve_author(author_user_id)
        blog = Blog(
            title=title,
            description=description,
            image=data.get("image") or settings.BLOG_FALLBACK_IMAGE,
            category=data.get("category") or settings.BLOG_DEFAULT_CATEGORY,
            likes=0,
            status=status,
            author=author,
            author_name=author.name,
            author_slug=author.slug,
        )
        save_with_unique_slug(blog, data.get("slug") or title, "blog")

    logger.info(f"Created blog {blog.pk} ({blog.slug}) for author {author.pk}")
    return blog


def update_blog(context, blog_id, updates):
    """
    Apply a partial update to an existing blog.

    Raises NotFound when the blog is gone; use recover_blog() to recreate it.
    A payload with nothing to change returns the blog untouched.
    """
    with transaction.atomic():
        blog = _require_blog(blog_id, for_update=True)
        ensure_blog_owner(context, blog)

        new_slug = (updates.get("slug") or "").strip()
        if not any(name in updates for name in CONTENT_FIELDS) and not new_slug:
            return blog

        if "title" in updates and updates["title"]:
            blog.title = updates["title"].strip()
        if "description" in updates:
            blog.description = sanitize_html(updates["description"])
        if "image" in updates:
            blog.image = updates["image"] or settings.BLOG_FALLBACK_IMAGE
        if "category" in updates:
            blog.category = updates["category"] or settings.BLOG_DEFAULT_CATEGORY
        if updates.get("status"):
            blog.status = updates["status"]

        if blog.status == Blog.STATUS_PUBLISHED:
            ensure_publishable(blog.title, blog.description)

        if new_slug:
            save_with_unique_slug(blog, new_slug, "blog")
        else:
            blog.save()

    logger.info(f"Updated blog {blog.pk}")
    return blog


def recover_blog(context, blog_id, data):
    """
    Update blog_id if it still exists, otherwise create a replacement blog.

    Returns (blog, created). The replacement gets a new id; drafts that
    pointed at the deleted blog were already unlinked when it was removed.
    """
    validate_object_id(blog_id, "blog id")
    if Blog.objects.filter(pk=blog_id).exists():
        return update_blog(context, blog_id, data), False

    if not data.get("title") or not data.get("description"):
        raise InvalidInput(
            "Cannot recreate blog: title and description are required when the original blog is missing."
        )

    logger.warning(f"Blog {blog_id} not found (may have been deleted); creating a replacement")
    blog = create_blog(context.user_id, data)
    log_audit(
        "recover_blog",
        actor_id=context.user_id,
        target_id=blog.pk,
        target_type="blog",
        meta={"missingBlogId": blog_id},
    )
    return blog, True


def delete_blog(context, blog_id):
    """Delete a blog; drafts linked to it are kept but unlinked."""
    with transaction.atomic():
        blog = _require_blog(blog_id, for_update=True)
        ensure_blog_owner(context, blog)
        unlinked = blog.drafts.count()
        blog.delete()

    logger.info(f"Deleted blog {blog_id}, unlinked {unlinked} drafts")
    log_audit("delete_blog", actor_id=context.user_id, target_id=blog_id, target_type="blog")
    return unlinked


def get_blog(blog_id):
    return _require_blog(blog_id)


def get_blog_by_slug(slug, context=None):
    """Published blogs are public; other statuses are only shown to the owner or an admin."""
    blog = Blog.objects.filter(slug=slug).first()
    if blog is None:
        raise NotFound("Blog not found")
    if not blog.is_published:
        if context is None:
            raise NotFound("Blog not found")
        try:
            ensure_blog_owner(context, blog)
        except Forbidden:
            raise NotFound("Blog not found") from None
    return blog


def list_published_blogs(category=None, author_slug=None):
    queryset = Blog.objects.filter(status=Blog.STATUS_PUBLISHED).order_by("-created_at")
    if category:
        queryset = queryset.filter(category=category)
    if author_slug:
        queryset = queryset.filter(author__slug=author_slug)
    return queryset


def list_all_blogs():
    return Blog.objects.order_by("-created_at")


def list_blogs_for(context):
    """Blogs the caller may manage: everything for admins, their own for authors."""
    if context.is_admin:
        return list_all_blogs()
    return Blog.objects.filter(author__user_id=context.user_id).order_by("-created_at")


def get_featured_blog():
    return Blog.objects.filter(status=Blog.STATUS_PUBLISHED).order_by("-likes", "-created_at").first()


def get_next_blog(blog):
    """The next newer published blog, wrapping around to the oldest one."""
    published = Blog.objects.filter(status=Blog.STATUS_PUBLISHED).exclude(pk=blog.pk)
    return (
        published.filter(created_at__gt=blog.created_at).order_by("created_at").first()
        or published.order_by("created_at").first()
    )


def get_popular_categories(limit=6):
    cache_key = f"popular_categories:{limit}"
    categories = cache.get(cache_key)
    if categories is None:
        categories = list(
            Blog.objects.filter(status=Blog.STATUS_PUBLISHED)
            .exclude(category="")
            .values("category")
            .annotate(count=Count("id"))
            .order_by("-count", "category")[:limit]
        )
        cache.set(cache_key, categories, timeout=POPULAR_CATEGORIES_CACHE_TIMEOUT)
    return categories


def like_blog(slug):
    """Increment the like counter and return the new value."""
    if not slug:
        raise InvalidInput("Missing slug")
    if not Blog.objects.filter(slug=slug).update(likes=F("likes") + 1):
        raise NotFound("Blog not found")
    return Blog.objects.filter(slug=slug).values_list("likes", flat=True).first()


def unlike_blog(slug):
    """Decrement the like counter, never below zero, and return the new value."""
    if not slug:
        raise InvalidInput("Missing slug")
    if not Blog.objects.filter(slug=slug).exists():
        raise NotFound("Blog not found")
    Blog.objects.filter(slug=slug, likes__gt=0).update(likes=F("likes") - 1)
    return Blog.objects.filter(slug=slug).values_list("likes", flat=True).first()


# Drafts


def _draft_values(fields):
    values = {name: fields.get(name) or "" for name in CONTENT_FIELDS}
    values["description"] = sanitize_html(values["description"])
    values["status"] = values["status"] or Blog.STATUS_DRAFT
    return values


def _is_stale(base_revision, stored_revision):
    return base_revision is not None and base_revision < stored_revision


def upsert_draft(context, blog_id, fields, base_revision=None):
    """
    Save the caller's draft.

    With a blog_id the (user, blog) draft is created or overwritten; without
    one, or when that blog no longer exists, a new standalone draft is created.
    """
    values = _draft_values(fields)

    if blog_id:
        validate_object_id(blog_id, "blogId")
        if not Blog.objects.filter(pk=blog_id).exists():
            logger.warning(f"Draft for missing blog {blog_id} saved as standalone for user {context.user_id}")
            blog_id = None

    if not blog_id:
        draft = Draft.objects.create(user_id=context.user_id, **values)
        return DraftWrite(draft=draft, created=True)

    stored_revision = (
        Draft.objects.filter(user_id=context.user_id, blog_id=blog_id).values_list("revision", flat=True).first()
    )
    draft, created = Draft.objects.update_or_create(
        user_id=context.user_id,
        blog_id=blog_id,
        defaults={**values, "revision": F("revision") + 1},
        create_defaults={**values, "revision": 1},
    )
    if not created:
        draft.refresh_from_db(fields=["revision"])

    conflict = stored_revision is not None and _is_stale(base_revision, stored_revision)
    if conflict:
        logger.warning(f"Stale draft save for blog {blog_id} by {context.user_id}: {base_revision} < {stored_revision}")
    return DraftWrite(draft=draft, created=created, conflict=conflict)


def get_owned_draft(context, draft_id, for_update=False):
    validate_object_id(draft_id, "draftId")
    queryset = Draft.objects.select_for_update() if for_update else Draft.objects.all()
    draft = queryset.filter(pk=draft_id).first()
    if draft is None:
        raise NotFound("Draft not found")
    ensure_draft_owner(context, draft)
    return draft


def update_draft(context, draft_id, fields, base_revision=None):
    """Apply a partial update to one draft; a "blog_id" key relinks or unlinks it."""
    with transaction.atomic():
        draft = get_owned_draft(context, draft_id, for_update=True)
        conflict = _is_stale(base_revision, draft.revision)

        for name in CONTENT_FIELDS:
            if name in fields:
                setattr(draft, name, fields[name] or "")
        if "description" in fields:
            draft.description = sanitize_html(draft.description)
        draft.status = draft.status or Blog.STATUS_DRAFT

        if "blog_id" in fields:
            blog_id = fields["blog_id"]
            if blog_id:
                _require_blog(blog_id)
            draft.blog_id = blog_id or None

        draft.revision += 1
        try:
            with transaction.atomic():
                draft.save()
        except IntegrityError:
            raise InvalidInput("Another draft is already linked to this blog") from None

    if conflict:
        logger.warning(f"Stale save of draft {draft_id} by {context.user_id}: {base_revision} < {draft.revision - 1}")
    return DraftWrite(draft=draft, conflict=conflict)


def get_draft(context, draft_id):
    """The draft with this id, or None if it does not exist."""
    try:
        return get_owned_draft(context, draft_id)
    except NotFound:
        return None


def get_draft_for_blog(context, blog_id):
    validate_object_id(blog_id, "blogId")
    return Draft.objects.filter(user_id=context.user_id, blog_id=blog_id).first()


def list_drafts(context):
    return Draft.objects.filter(user_id=context.user_id).order_by("-updated_at")


def delete_draft(context, draft_id):
    """Delete one draft; a missing draft counts as already deleted."""
    validate_object_id(draft_id, "draftId")
    draft = Draft.objects.filter(pk=draft_id).first()
    if draft is None:
        return 0
    ensure_draft_owner(context, draft)
    deleted, _ = Draft.objects.filter(pk=draft.pk).delete()
    return deleted


def delete_draft_for_blog(context, blog_id):
    validate_object_id(blog_id, "blogId")
    deleted, _ = Draft.objects.filter(user_id=context.user_id, blog_id=blog_id).delete()
    return deleted


def delete_all_drafts(context):
    deleted, _ = Draft.objects.filter(user_id=context.user_id).delete()
    return deleted


# Comments


def add_comment(blog_id, name, message):
    blog = _require_blog(blog_id)
    comment = Comment.objects.create(blog=blog, name=name.strip(), message=message.strip())
    logger.info(f"Comment {comment.pk} added to blog {blog.pk}")
    return comment


def list_comments(blog_id):
    validate_object_id(blog_id, "blogId")
    return Comment.objects.filter(blog_id=blog_id).order_by("-created_at")
