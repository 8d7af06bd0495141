from django.contrib import admin

from .models import AdminAuditLog, Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "email", "full_name", "is_admin", "created_at")
    list_filter = ("is_admin",)
    search_fields = ("email", "full_name")


@admin.register(AdminAuditLog)
class AdminAuditLogAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "admin", "action", "resource_type", "resource_id")
    readonly_fields = ("timestamp",)
