from django.contrib import admin

from newsletter.models import PendingSubscriber, Subscriber


@admin.register(Subscriber)
class SubscriberAdmin(admin.ModelAdmin):
    list_display = ("email", "subscribed_at")
    search_fields = ("email",)
    readonly_fields = ("subscribed_at",)


@admin.register(PendingSubscriber)
class PendingSubscriberAdmin(admin.ModelAdmin):
    list_display = ("email", "created_at", "expired")
    search_fields = ("email",)
    exclude = ("token",)
    actions = ["confirm_selected"]

    @admin.display(boolean=True)
    def expired(self, obj):
        return obj.is_expired

    @admin.action(description="Confirm selected addresses")
    def confirm_selected(self, request, queryset):
        from newsletter.services import confirm

        confirmed = 0
        for pending in queryset.filter(created_at__gte=PendingSubscriber.expiry_cutoff()):
            confirm(pending.token)
            confirmed += 1
        self.message_user(request, f"Confirmed {confirmed} subscription(s).")
