from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html

from .models import Author, Blog, Comment, Draft


@admin.register(Author)
class AuthorAdmin(admin.ModelAdmin):
    list_display = ["name", "slug", "user", "blogs_count", "created_at"]
    search_fields = ["name", "slug", "user__email"]
    readonly_fields = ["id", "created_at", "updated_at"]
    raw_id_fields = ["user"]

    @admin.display(description="Blogs", ordering="blog_count")
    def blogs_count(self, obj):
        return obj.blog_count

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        return qs.select_related("user").annotate(blog_count=Count("blogs"))


@admin.register(Blog)
class BlogAdmin(admin.ModelAdmin):
    list_display = ["title", "author_name", "category", "status_badge", "likes", "created_at"]
    list_filter = ["status", "category", "created_at"]
    search_fields = ["title", "slug", "author_name", "category"]
    readonly_fields = ["id", "likes", "author_name", "author_slug", "created_at", "updated_at"]
    raw_id_fields = ["author"]
    date_hierarchy = "created_at"

    fieldsets = (
        ("Content", {"fields": ("title", "slug", "description", "image", "category")}),
        ("Publishing", {"fields": ("status", "likes")}),
        ("Author", {"fields": ("author", "author_name", "author_slug")}),
        ("Metadata", {"fields": ("id", "created_at", "updated_at"), "classes": ("collapse",)}),
    )

    actions = ["unpublish_blogs"]

    @admin.display(description="Status", ordering="status")
    def status_badge(self, obj):
        color = "#28a745" if obj.is_published else "#6c757d"
        return format_html(
            '<span style="background-color: {}; color: white; padding: 3px 8px; border-radius: 3px;">{}</span>',
            color,
            obj.get_status_display(),
        )

    @admin.action(description="Move selected blogs back to draft")
    def unpublish_blogs(self, request, queryset):
        count = queryset.filter(status=Blog.STATUS_PUBLISHED).update(status=Blog.STATUS_DRAFT)
        self.message_user(request, f"{count} blogs unpublished.")


@admin.register(Draft)
class DraftAdmin(admin.ModelAdmin):
    list_display = ["__str__", "user", "blog", "revision", "updated_at"]
    list_filter = [("blog", admin.EmptyFieldListFilter), "updated_at"]
    search_fields = ["title", "user__email"]
    readonly_fields = ["id", "revision", "created_at", "updated_at"]
    raw_id_fields = ["user", "blog"]

    def has_add_permission(self, request):
        return False


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ["name", "blog", "truncated_message", "created_at"]
    search_fields = ["name", "message", "blog__title"]
    readonly_fields = ["id", "created_at"]
    raw_id_fields = ["blog"]

    @admin.display(description="Message")
    def truncated_message(self, obj):
        max_length = 50
        if len(obj.message) > max_length:
            return f"{obj.message[:max_length]}..."
        return obj.message

    def has_add_permission(self, request):
        return False
