import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models, schemas
from .errors import Conflict, InternalError

logger = logging.getLogger(__name__)


def _commit(db: Session) -> None:
    """Commit, translating low-level failures for the API layer."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database commit failed")
        raise InternalError() from exc


def _parse_id(raw_id) -> Optional[uuid.UUID]:
    if isinstance(raw_id, uuid.UUID):
        return raw_id
    try:
        return uuid.UUID(str(raw_id))
    except ValueError:
        return None


# User CRUD


def get_user(db: Session, user_id) -> Optional[models.User]:
    parsed = _parse_id(user_id)
    if parsed is None:
        return None
    return db.get(models.User, parsed)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
    stmt = select(models.User).where(models.User.email == email)
    return db.execute(stmt).scalar_one_or_none()


def create_user(db: Session, name: str, email: str, password_hash: str) -> models.User:
    """Insert a user; a duplicate email raises Conflict.

    Callers check ``get_user_by_email`` first, but the unique index is the
    real guarantee when two registrations race.
    """
    user = models.User(name=name, email=email, password_hash=password_hash)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise Conflict("Email already in use") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database commit failed")
        raise InternalError() from exc

    db.refresh(user)
    return user


# Project CRUD


def _owned_project_stmt(project_id: uuid.UUID, user_id: uuid.UUID):
    return select(models.Project).where(
        models.Project.id == project_id,
        models.Project.user_id == user_id,
    )


def get_projects(db: Session, user_id: uuid.UUID) -> List[models.Project]:
    stmt = (
        select(models.Project)
        .where(models.Project.user_id == user_id)
        .order_by(models.Project.created_at)
    )
    return list(db.execute(stmt).scalars().all())


def get_project(db: Session, project_id, user_id: uuid.UUID) -> Optional[models.Project]:
    """Fetch a project only if it belongs to ``user_id``.

    Someone else's project and a missing one both come back as None.
    """
    parsed = _parse_id(project_id)
    if parsed is None:
        return None
    return db.execute(_owned_project_stmt(parsed, user_id)).scalar_one_or_none()


def create_project(
    db: Session, user_id: uuid.UUID, project_in: schemas.ProjectCreate
) -> models.Project:
    project = models.Project(
        name=project_in.name,
        description=project_in.description,
        status=project_in.status.value,
        start_date=project_in.start_date,
        user_id=user_id,
    )
    db.add(project)
    _commit(db)
    db.refresh(project)
    logger.info("Created project %s for user %s", project.id, user_id)
    return project


def _next_timestamp(previous: Optional[datetime]) -> datetime:
    now = models.utcnow()
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def update_project(
    db: Session, project_id, user_id: uuid.UUID, project_in: schemas.ProjectUpdate
) -> Optional[models.Project]:
    project = get_project(db, project_id, user_id)
    if project is None:
        return None

    updates = project_in.model_dump(exclude_unset=True)
    if "status" in updates:
        updates["status"] = updates["status"].value
    for field, value in updates.items():
        setattr(project, field, value)
    project.updated_at = _next_timestamp(project.updated_at)

    _commit(db)
    db.refresh(project)
    logger.info("Updated project %s fields=%s", project.id, sorted(updates))
    return project


def delete_project(db: Session, project_id, user_id: uuid.UUID) -> bool:
    """Delete an owned project.

    Returns:
        True if a project was deleted, False if none matched the id/owner pair.
    """
    project = get_project(db, project_id, user_id)
    if project is None:
        return False

    db.delete(project)
    _commit(db)
    logger.info("Deleted project %s", project_id)
    return True


def get_project_stats(db: Session, user_id: uuid.UUID) -> schemas.ProjectStats:
    stmt = (
        select(models.Project.status, func.count(models.Project.id))
        .where(models.Project.user_id == user_id)
        .group_by(models.Project.status)
    )
    counts = {status: int(count) for status, count in db.execute(stmt).all()}
    per_status = {s.value: counts.get(s.value, 0) for s in models.ProjectStatus}
    return schemas.ProjectStats(total=sum(counts.values()), **per_status)
