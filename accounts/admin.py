from django.contrib import admin
from django.contrib.auth.admin import UserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(UserAdmin):
    list_display = ["email", "username", "name", "role", "is_active", "date_joined"]
    list_filter = ["role", "is_staff", "is_active"]
    search_fields = ["email", "username", "name"]
    ordering = ["-date_joined"]

    fieldsets = UserAdmin.fieldsets + (("Profile", {"fields": ("name", "role", "image")}),)
    add_fieldsets = UserAdmin.add_fieldsets + (("Profile", {"fields": ("email", "name", "role")}),)
