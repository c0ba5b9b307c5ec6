"""
URL configuration for the editstats project.

Only the admin site is routed here; the top edits engine is called directly
by its clients (see ``topedits.services``).
"""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    path("admin/", admin.site.urls),
]
