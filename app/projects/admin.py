from django.contrib import admin

from projects.models import Milestone, Project


class MilestoneInline(admin.TabularInline):
    model = Milestone
    extra = 0
    fields = ("order", "title", "amount", "status")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("title", "employer", "contractor", "status", "budget", "created_at")
    list_filter = ("status",)
    search_fields = ("title", "employer__email", "contractor__email")
    raw_id_fields = ("employer", "contractor")
    inlines = [MilestoneInline]
