"""Project CRUD service with the referential-integrity delete guard."""

from __future__ import annotations

import logging

from app.core.exceptions import NotFoundError, ReferentialIntegrityError, ValidationError
from app.models import db
from app.models.project import Project
from app.models.report import Report
from app.utils.helpers import commit_or_raise

logger = logging.getLogger(__name__)


def list_projects() -> list[Project]:
    return Project.query.order_by(Project.name.asc(), Project.id.asc()).all()


def get_project(project_id: int) -> Project:
    project = db.session.get(Project, project_id)
    if project is None:
        raise NotFoundError(resource="Project", resource_id=project_id)
    return project


def create_project(name: str, location: str) -> Project:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"name": "required"})

    project = Project(name=name, location=str(location or "").strip())
    db.session.add(project)
    commit_or_raise("project creation")
    logger.info("Project created", extra={"project_id": project.id})
    return project


def update_project(project_id: int, data: dict) -> Project:
    project = get_project(project_id)

    if "name" in data:
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValidationError("name cannot be empty", details={"name": "required"})
        project.name = name
    if "location" in data:
        project.location = str(data.get("location") or "").strip()

    commit_or_raise("project update")
    return project


def count_reports(project_id: int) -> int:
    return Report.query.filter_by(project_id=project_id).count()


def delete_project(project_id: int) -> None:
    """Delete a project that has no reports.

    Raises:
        ReferentialIntegrityError: reports still reference the project;
            nothing is deleted.
    """
    project = get_project(project_id)
    linked = count_reports(project_id)
    if linked:
        raise ReferentialIntegrityError("Obra", project_id, "relatório(s)", linked)

    db.session.delete(project)
    commit_or_raise("project deletion")
    logger.info("Project deleted", extra={"project_id": project_id})
