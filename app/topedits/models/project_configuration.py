"""ProjectConfiguration model."""

from __future__ import annotations

from django.db import models


def _default_assessment_namespaces():
    return [0]


class ProjectConfiguration(models.Model):
    """Stores per-project switches that shape the replica queries."""

    project = models.OneToOneField(
        "topedits.Project", on_delete=models.CASCADE, related_name="configuration"
    )
    has_page_assessments = models.BooleanField(
        default=False,
        help_text="Whether the project has the PageAssessments extension installed.",
    )
    assessment_namespaces = models.JSONField(
        default=_default_assessment_namespaces,
        blank=True,
        help_text=(
            "Namespaces whose pages are enriched with their assessment class. "
            "Pages in other namespaces are returned without one."
        ),
    )
    use_userindex_views = models.BooleanField(
        default=True,
        help_text=(
            "Query the revision_userindex replica view, which is indexed on the "
            "acting user, instead of the plain revision view."
        ),
    )
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"Configuration for {self.project.code}"

    def assesses_namespace(self, namespace: int) -> bool:
        if not self.has_page_assessments:
            return False
        return namespace in (self.assessment_namespaces or [])
