from __future__ import annotations

from .project import Project
from .project_configuration import ProjectConfiguration

__all__ = [
    "Project",
    "ProjectConfiguration",
]
