import django.db.models.deletion
from django.db import migrations, models

import topedits.models.project_configuration


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                ("code", models.CharField(max_length=50, unique=True)),
                ("family", models.CharField(default="wikipedia", max_length=100)),
                (
                    "api_endpoint",
                    models.URLField(
                        help_text="Full API endpoint, e.g. https://fi.wikipedia.org/w/api.php"
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["code"],
            },
        ),
        migrations.CreateModel(
            name="ProjectConfiguration",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True, primary_key=True, serialize=False, verbose_name="ID"
                    ),
                ),
                (
                    "has_page_assessments",
                    models.BooleanField(
                        default=False,
                        help_text=(
                            "Whether the project has the PageAssessments extension installed."
                        ),
                    ),
                ),
                (
                    "assessment_namespaces",
                    models.JSONField(
                        blank=True,
                        default=(
                            topedits.models.project_configuration._default_assessment_namespaces
                        ),
                        help_text=(
                            "Namespaces whose pages are enriched with their assessment class. "
                            "Pages in other namespaces are returned without one."
                        ),
                    ),
                ),
                (
                    "use_userindex_views",
                    models.BooleanField(
                        default=True,
                        help_text=(
                            "Query the revision_userindex replica view, which is indexed on "
                            "the acting user, instead of the plain revision view."
                        ),
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="configuration",
                        to="topedits.project",
                    ),
                ),
            ],
        ),
    ]
