from unittest.mock import patch

from django.core.cache import cache
from django.db import DatabaseError
from django.test import TestCase

from accounts.permissions import AuthContext
from accounts.tests.factories import UserFactory
from blog import services
from blog.models import Author, Blog, Draft
from blog.tests.factories import PUBLISHABLE_DESCRIPTION, AuthorFactory, BlogFactory, CommentFactory, DraftFactory
from utils.errors import Forbidden, InternalError, InvalidInput, NotFound
from utils.ids import generate_object_id
from utils.models import AuditLog


class ServiceTestCase(TestCase):
    def setUp(self):
        self.setUp_users()

    def setUp_users(self):
        self.author = AuthorFactory.create_author(name="Ada Lovelace", slug="ada-lovelace")
        self.ctx = AuthContext.from_user(self.author.user)
        self.other_author = AuthorFactory.create_author()
        self.other_ctx = AuthContext.from_user(self.other_author.user)
        self.admin_ctx = AuthContext.from_user(UserFactory.create_admin_user())


class CreateBlogTest(ServiceTestCase):
    def test_defaults_and_denormalized_author(self):
        blog = services.create_blog(self.ctx.user_id, {"title": "My First Post", "description": "<p>Body</p>"})

        self.assertEqual(blog.slug, "my-first-post")
        self.assertEqual(blog.status, "draft")
        self.assertEqual(blog.likes, 0)
        self.assertEqual(blog.image, "/fallback.avif")
        self.assertEqual(blog.category, "Uncategorized")
        self.assertEqual(blog.author, self.author)
        self.assertEqual(blog.author_name, "Ada Lovelace")
        self.assertEqual(blog.author_slug, "ada-lovelace")
        self.assertEqual(len(blog.pk), 24)

    def test_same_title_gets_suffixed_slug(self):
        first = services.create_blog(self.ctx.user_id, {"title": "Same", "description": "<p>Body</p>"})
        second = services.create_blog(self.ctx.user_id, {"title": "Same", "description": "<p>Body</p>"})

        self.assertEqual(first.slug, "same")
        self.assertEqual(second.slug, "same-1")

    def test_slug_hint_wins_over_title(self):
        blog = services.create_blog(
            self.ctx.user_id, {"title": "Long title", "description": "<p>Body</p>", "slug": "Short One"}
        )
        self.assertEqual(blog.slug, "short-one")

    def test_description_is_sanitized(self):
        blog = services.create_blog(
            self.ctx.user_id, {"title": "Unsafe", "description": "<p>Hi</p><script>alert(1)</script>"}
        )
        self.assertTrue(blog.description.startswith("<p>Hi</p>"))
        self.assertNotIn("<script", blog.description)

    def test_first_blog_creates_placeholder_author(self):
        newcomer = UserFactory.create_author_user()

        blog = services.create_blog(newcomer.pk, {"title": "Hello", "description": "<p>Body</p>"})

        author = Author.objects.get(user=newcomer)
        self.assertEqual(author.name, "Unknown Author")
        self.assertEqual(author.profile_image, "/fallback.avif")
        self.assertRegex(author.slug, r"^author-\d+")
        self.assertEqual(blog.author_name, "Unknown Author")

    def test_published_status_must_pass_guard(self):
        with self.assertRaises(InvalidInput):
            services.create_blog(self.ctx.user_id, {"title": "Hi", "description": "<p>x</p>", "status": "published"})
        self.assertFalse(Blog.objects.exists())

    def test_missing_title_is_rejected(self):
        with self.assertRaises(InvalidInput):
            services.create_blog(self.ctx.user_id, {"title": "  ", "description": "<p>Body</p>"})

    def test_author_lookup_failure_is_internal(self):
        with patch("blog.services.Author.objects.filter", side_effect=DatabaseError("down")):
            with self.assertRaises(InternalError) as cm:
                services.create_blog(self.ctx.user_id, {"title": "Hello", "description": "<p>Body</p>"})
        self.assertEqual(cm.exception.message, "Author resolution failed")


class UpdateBlogTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.blog = BlogFactory.create_blog(author=self.author, title="Original", slug="original", status="draft")

    def test_partial_update_keeps_other_fields(self):
        blog = services.update_blog(self.ctx, self.blog.pk, {"category": "Science"})

        self.assertEqual(blog.category, "Science")
        self.assertEqual(blog.title, "Original")
        self.assertEqual(blog.slug, "original")

    def test_title_change_does_not_touch_slug(self):
        blog = services.update_blog(self.ctx, self.blog.pk, {"title": "Renamed"})
        self.assertEqual(blog.slug, "original")

    def test_new_slug_hint_goes_through_uniqueness(self):
        BlogFactory.create_blog(slug="taken")
        blog = services.update_blog(self.ctx, self.blog.pk, {"slug": "Taken"})
        self.assertEqual(blog.slug, "taken-1")

    def test_empty_image_and_category_fall_back(self):
        blog = services.update_blog(self.ctx, self.blog.pk, {"image": "", "category": ""})
        self.assertEqual(blog.image, "/fallback.avif")
        self.assertEqual(blog.category, "Uncategorized")

    def test_other_author_is_forbidden(self):
        with self.assertRaises(Forbidden):
            services.update_blog(self.other_ctx, self.blog.pk, {"title": "Hijacked"})
        self.blog.refresh_from_db()
        self.assertEqual(self.blog.title, "Original")

    def test_admin_may_update_any_blog(self):
        blog = services.update_blog(self.admin_ctx, self.blog.pk, {"title": "Moderated"})
        self.assertEqual(blog.title, "Moderated")

    def test_missing_blog_is_not_found(self):
        with self.assertRaises(NotFound):
            services.update_blog(self.ctx, generate_object_id(), {"title": "Ghost"})

    def test_malformed_id_is_invalid_input(self):
        with self.assertRaises(InvalidInput):
            services.update_blog(self.ctx, "not-an-id", {"title": "Ghost"})

    def test_publishing_applies_guard_to_resulting_content(self):
        self.blog.description = "<p>short</p>"
        self.blog.save()

        with self.assertRaises(InvalidInput):
            services.update_blog(self.ctx, self.blog.pk, {"status": "published"})

    def test_empty_update_is_a_no_op(self):
        before = self.blog.updated_at
        blog = services.update_blog(self.ctx, self.blog.pk, {})
        self.assertEqual(blog.updated_at, before)


class RecoverAndDeleteBlogTest(ServiceTestCase):
    def test_recover_recreates_missing_blog(self):
        missing_id = generate_object_id()

        blog, created = services.recover_blog(
            self.ctx, missing_id, {"title": "Back again", "description": PUBLISHABLE_DESCRIPTION}
        )

        self.assertTrue(created)
        self.assertNotEqual(blog.pk, missing_id)
        self.assertEqual(blog.author, self.author)
        self.assertTrue(AuditLog.objects.filter(action="recover_blog", meta__missingBlogId=missing_id).exists())

    def test_recover_requires_title_and_description(self):
        with self.assertRaises(InvalidInput):
            services.recover_blog(self.ctx, generate_object_id(), {"title": "No body"})

    def test_recover_updates_existing_blog(self):
        blog = BlogFactory.create_blog(author=self.author)

        recovered, created = services.recover_blog(self.ctx, blog.pk, {"title": "Updated title"})

        self.assertFalse(created)
        self.assertEqual(recovered.pk, blog.pk)
        self.assertEqual(recovered.title, "Updated title")

    def test_delete_unlinks_drafts(self):
        blog = BlogFactory.create_blog(author=self.author)
        draft = DraftFactory.create_draft(user=self.author.user, blog=blog)

        unlinked = services.delete_blog(self.ctx, blog.pk)

        self.assertEqual(unlinked, 1)
        self.assertFalse(Blog.objects.filter(pk=blog.pk).exists())
        draft.refresh_from_db()
        self.assertIsNone(draft.blog_id)

    def test_delete_requires_ownership(self):
        blog = BlogFactory.create_blog(author=self.author)
        with self.assertRaises(Forbidden):
            services.delete_blog(self.other_ctx, blog.pk)


class PublicReadTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        cache.clear()

    def test_list_only_returns_published(self):
        published = BlogFactory.create_blog(author=self.author)
        BlogFactory.create_draft_status_blog(author=self.author)

        self.assertEqual(list(services.list_published_blogs()), [published])

    def test_list_filters_by_category_and_author(self):
        mine = BlogFactory.create_blog(author=self.author, category="Science")
        BlogFactory.create_blog(author=self.other_author, category="Science")
        BlogFactory.create_blog(author=self.author, category="Art")

        result = services.list_published_blogs(category="Science", author_slug="ada-lovelace")
        self.assertEqual(list(result), [mine])

    def test_draft_status_blog_is_hidden_from_public(self):
        blog = BlogFactory.create_draft_status_blog(author=self.author)

        with self.assertRaises(NotFound):
            services.get_blog_by_slug(blog.slug)
        with self.assertRaises(NotFound):
            services.get_blog_by_slug(blog.slug, context=self.other_ctx)
        self.assertEqual(services.get_blog_by_slug(blog.slug, context=self.ctx), blog)

    def test_featured_is_most_liked(self):
        BlogFactory.create_blog(likes=3)
        popular = BlogFactory.create_blog(likes=10)
        BlogFactory.create_draft_status_blog(likes=50)

        self.assertEqual(services.get_featured_blog(), popular)

    def test_next_blog_wraps_around(self):
        first = BlogFactory.create_blog()
        second = BlogFactory.create_blog()
        Blog.objects.filter(pk=first.pk).update(created_at=second.created_at.replace(year=2020))
        first.refresh_from_db()

        self.assertEqual(services.get_next_blog(first), second)
        self.assertEqual(services.get_next_blog(second), first)

    def test_popular_categories_are_counted_and_cached(self):
        BlogFactory.create_blog(category="Tech")
        BlogFactory.create_blog(category="Tech")
        BlogFactory.create_blog(category="Art")

        categories = services.get_popular_categories(limit=6)
        self.assertEqual(categories, [{"category": "Tech", "count": 2}, {"category": "Art", "count": 1}])

        BlogFactory.create_blog(category="Art")
        BlogFactory.create_blog(category="Art")
        self.assertEqual(services.get_popular_categories(limit=6), categories)


class LikeTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.blog = BlogFactory.create_blog(slug="likeable")

    def test_like_then_unlike_nets_zero(self):
        self.assertEqual(services.like_blog("likeable"), 1)
        self.assertEqual(services.unlike_blog("likeable"), 0)

    def test_unlike_is_clamped_at_zero(self):
        self.assertEqual(services.unlike_blog("likeable"), 0)
        self.blog.refresh_from_db()
        self.assertEqual(self.blog.likes, 0)

    def test_unknown_slug_is_not_found(self):
        with self.assertRaises(NotFound):
            services.like_blog("missing")
        with self.assertRaises(NotFound):
            services.unlike_blog("missing")

    def test_like_does_not_bump_updated_at(self):
        before = self.blog.updated_at
        services.like_blog("likeable")
        self.blog.refresh_from_db()
        self.assertEqual(self.blog.updated_at, before)


class DraftServiceTest(ServiceTestCase):
    def setUp(self):
        super().setUp()
        self.blog = BlogFactory.create_blog(author=self.author)

    def test_upsert_by_blog_keeps_single_draft(self):
        first = services.upsert_draft(self.ctx, self.blog.pk, {"title": "One", "description": "<p>a</p>"})
        second = services.upsert_draft(self.ctx, self.blog.pk, {"title": "Two", "description": "<p>b</p>"})

        self.assertTrue(first.created)
        self.assertFalse(second.created)
        self.assertEqual(first.draft.pk, second.draft.pk)
        self.assertEqual(Draft.objects.filter(user=self.author.user, blog=self.blog).count(), 1)

        draft = Draft.objects.get(pk=first.draft.pk)
        self.assertEqual(draft.title, "Two")
        self.assertEqual(draft.description, "<p>b</p>")
        self.assertEqual(draft.revision, 2)
        self.assertEqual(second.draft.revision, 2)

    def test_standalone_drafts_are_not_merged(self):
        services.upsert_draft(self.ctx, None, {"title": "One"})
        services.upsert_draft(self.ctx, None, {"title": "One"})

        self.assertEqual(Draft.objects.filter(user=self.author.user, blog__isnull=True).count(), 2)

    def test_missing_blog_saves_standalone(self):
        write = services.upsert_draft(self.ctx, generate_object_id(), {"title": "Orphan"})

        self.assertTrue(write.created)
        self.assertIsNone(write.draft.blog_id)

    def test_stale_revision_is_flagged(self):
        services.upsert_draft(self.ctx, self.blog.pk, {"title": "One"})
        services.upsert_draft(self.ctx, self.blog.pk, {"title": "Two"}, base_revision=1)

        write = services.upsert_draft(self.ctx, self.blog.pk, {"title": "Three"}, base_revision=1)

        self.assertTrue(write.conflict)
        self.assertEqual(write.draft.title, "Three")

    def test_update_draft_is_partial_and_bumps_revision(self):
        draft = DraftFactory.create_draft(user=self.author.user, title="Keep", category="Art")

        write = services.update_draft(self.ctx, draft.pk, {"category": "Science"})

        self.assertEqual(write.draft.title, "Keep")
        self.assertEqual(write.draft.category, "Science")
        self.assertEqual(write.draft.revision, 2)
        self.assertFalse(write.conflict)

    def test_update_draft_can_link_and_unlink(self):
        draft = DraftFactory.create_draft(user=self.author.user)

        services.update_draft(self.ctx, draft.pk, {"blog_id": self.blog.pk})
        draft.refresh_from_db()
        self.assertEqual(draft.blog_id, self.blog.pk)

        services.update_draft(self.ctx, draft.pk, {"blog_id": None})
        draft.refresh_from_db()
        self.assertIsNone(draft.blog_id)

    def test_second_draft_for_same_blog_is_rejected(self):
        DraftFactory.create_draft(user=self.author.user, blog=self.blog)
        draft = DraftFactory.create_draft(user=self.author.user)

        with self.assertRaises(InvalidInput):
            services.update_draft(self.ctx, draft.pk, {"blog_id": self.blog.pk})

    def test_update_someone_elses_draft_is_forbidden(self):
        draft = DraftFactory.create_draft(user=self.other_author.user)
        with self.assertRaises(Forbidden):
            services.update_draft(self.ctx, draft.pk, {"title": "Mine now"})

    def test_update_missing_draft_is_not_found(self):
        with self.assertRaises(NotFound):
            services.update_draft(self.ctx, generate_object_id(), {"title": "Ghost"})

    def test_delete_missing_draft_counts_zero(self):
        self.assertEqual(services.delete_draft(self.ctx, generate_object_id()), 0)

    def test_delete_draft_variants(self):
        linked = DraftFactory.create_draft(user=self.author.user, blog=self.blog)
        DraftFactory.create_draft(user=self.author.user)
        DraftFactory.create_draft(user=self.author.user)
        untouched = DraftFactory.create_draft(user=self.other_author.user)

        self.assertEqual(services.delete_draft_for_blog(self.ctx, self.blog.pk), 1)
        self.assertFalse(Draft.objects.filter(pk=linked.pk).exists())
        self.assertEqual(services.delete_all_drafts(self.ctx), 2)
        self.assertTrue(Draft.objects.filter(pk=untouched.pk).exists())

    def test_list_and_get_are_scoped_to_caller(self):
        mine = DraftFactory.create_draft(user=self.author.user)
        DraftFactory.create_draft(user=self.other_author.user)

        self.assertEqual(list(services.list_drafts(self.ctx)), [mine])
        self.assertEqual(services.get_draft(self.ctx, mine.pk), mine)
        self.assertIsNone(services.get_draft(self.ctx, generate_object_id()))


class AuthorServiceTest(ServiceTestCase):
    def test_promote_by_email(self):
        alice = UserFactory.create_user(email="alice@example.com")

        author, created = services.promote_user_to_author(self.admin_ctx, email="alice@example.com", name="Alice")

        self.assertTrue(created)
        self.assertEqual(author.slug, "alice")
        alice.refresh_from_db()
        self.assertEqual(alice.role, "author")
        self.assertEqual(alice.name, "Alice")

        entry = AuditLog.objects.get(action="promote_user_to_author")
        self.assertEqual(entry.actor_id, self.admin_ctx.user_id)
        self.assertEqual(entry.target_id, alice.pk)
        self.assertEqual(entry.meta["authorId"], author.pk)
        self.assertEqual(entry.meta["promotedEmail"], "alice@example.com")

    def test_promote_is_idempotent(self):
        user = UserFactory.create_user()
        first, _ = services.promote_user_to_author(self.admin_ctx, user_id=user.pk, name="Bob")
        second, created = services.promote_user_to_author(self.admin_ctx, user_id=user.pk, name="Bob")

        self.assertFalse(created)
        self.assertEqual(first.pk, second.pk)
        self.assertEqual(Author.objects.filter(user=user).count(), 1)

    def test_promote_keeps_admin_role(self):
        admin = UserFactory.create_admin_user()
        services.promote_user_to_author(self.admin_ctx, user_id=admin.pk, name="Boss")
        admin.refresh_from_db()
        self.assertEqual(admin.role, "admin")

    def test_promote_requires_exactly_one_identifier(self):
        with self.assertRaises(InvalidInput):
            services.promote_user_to_author(self.admin_ctx)
        with self.assertRaises(InvalidInput):
            services.promote_user_to_author(self.admin_ctx, user_id=generate_object_id(), email="a@example.com")

    def test_promote_unknown_user(self):
        with self.assertRaises(NotFound):
            services.promote_user_to_author(self.admin_ctx, email="nobody@example.com")

    def test_audit_failure_does_not_fail_promotion(self):
        user = UserFactory.create_user()
        with patch("utils.models.AuditLog.objects.create", side_effect=DatabaseError("audit down")):
            author, created = services.promote_user_to_author(self.admin_ctx, user_id=user.pk, name="Carol")
        self.assertTrue(created)
        self.assertTrue(Author.objects.filter(pk=author.pk).exists())

    def test_update_author_propagates_to_blogs(self):
        blog = BlogFactory.create_blog(author=self.author)
        AuthorFactory.create_author(slug="countess")

        author = services.update_author(self.admin_ctx, self.author.pk, {"name": "Countess", "slug": "countess"})

        self.assertEqual(author.slug, "countess-1")
        blog.refresh_from_db()
        self.assertEqual(blog.author_name, "Countess")
        self.assertEqual(blog.author_slug, "countess-1")

    def test_update_author_bio_only_leaves_blogs_alone(self):
        blog = BlogFactory.create_blog(author=self.author)
        services.update_author(self.admin_ctx, self.author.pk, {"bio": "Mathematician"})
        blog.refresh_from_db()
        self.assertEqual(blog.author_name, "Ada Lovelace")

    def test_delete_author_keeps_blogs(self):
        blog = BlogFactory.create_blog(author=self.author)

        services.delete_author(self.admin_ctx, self.author.pk)

        blog.refresh_from_db()
        self.assertIsNone(blog.author_id)
        self.assertEqual(blog.author_name, "Ada Lovelace")
        self.assertTrue(AuditLog.objects.filter(action="delete_author", target_id=self.author.pk).exists())

    def test_delete_missing_author(self):
        with self.assertRaises(NotFound):
            services.delete_author(self.admin_ctx, generate_object_id())


class CommentServiceTest(ServiceTestCase):
    def test_add_and_list(self):
        blog = BlogFactory.create_blog()
        older = CommentFactory.create_comment(blog=blog)

        comment = services.add_comment(blog.pk, " Reader ", " Great! ")

        self.assertEqual(comment.name, "Reader")
        self.assertEqual(comment.message, "Great!")
        self.assertEqual(list(services.list_comments(blog.pk)), [comment, older])

    def test_comment_on_missing_blog(self):
        with self.assertRaises(NotFound):
            services.add_comment(generate_object_id(), "Reader", "Hello")
