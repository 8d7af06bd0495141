from django.contrib import admin

from .models import MainsEvaluation, MentorGuidance


class MentorGuidanceInline(admin.TabularInline):
    model = MentorGuidance
    extra = 0
    readonly_fields = ("action_item_index", "action_item_text", "mentor_response", "created_at")


@admin.register(MainsEvaluation)
class MainsEvaluationAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "status", "created_at", "updated_at")
    list_filter = ("status",)
    search_fields = ("question", "user__email")
    readonly_fields = ("created_at", "updated_at")
    inlines = [MentorGuidanceInline]
