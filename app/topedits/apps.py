from django.apps import AppConfig


class TopEditsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "topedits"
    verbose_name = "Top edits"
