from django.contrib import admin

from .models import Project, ProjectConfiguration


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "family", "api_endpoint", "updated_at")
    search_fields = ("name", "code")


@admin.register(ProjectConfiguration)
class ProjectConfigurationAdmin(admin.ModelAdmin):
    list_display = ("project", "has_page_assessments", "use_userindex_views", "updated_at")
    search_fields = ("project__name", "project__code")
    list_filter = ("has_page_assessments",)
