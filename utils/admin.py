from django.contrib import admin
from django.utils.html import format_html

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ("action", "actor_display", "target_type", "target_id", "created_at")
    list_filter = ("action", "target_type", "created_at")
    search_fields = ("action", "actor_id", "target_id")
    readonly_fields = ("action", "actor_id", "target_id", "target_type", "meta", "created_at")
    date_hierarchy = "created_at"

    def actor_display(self, obj):
        if not obj.actor_id:
            return format_html('<span style="color: #888;">{}</span>', "system")
        return obj.actor_id

    actor_display.short_description = "Actor"

    # Audit entries are append-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
