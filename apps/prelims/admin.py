from django.contrib import admin

from .models import PersonalizedExplanation, PracticeSession


class PersonalizedExplanationInline(admin.TabularInline):
    model = PersonalizedExplanation
    extra = 0
    readonly_fields = ("question_index", "explanation", "created_at")


@admin.register(PracticeSession)
class PracticeSessionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "topic", "difficulty", "score", "created_at")
    list_filter = ("difficulty",)
    search_fields = ("topic", "user__email")
    inlines = [PersonalizedExplanationInline]
