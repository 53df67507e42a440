from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from .. import crud, schemas
from ..auth import get_current_claims
from ..database import get_db
from ..errors import NotFound

# Every route here is owner-scoped through the verified token claims.
router = APIRouter(
    prefix="/api/projects",
    tags=["projects"],
    dependencies=[Depends(get_current_claims)],
)

PROJECT_NOT_FOUND = "Project not found"


@router.get("", response_model=List[schemas.ProjectOut])
def list_projects(
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    return crud.get_projects(db, claims.user_id)


@router.get("/stats", response_model=schemas.ProjectStats)
def project_stats(
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    """Total and per-status counts over the caller's projects."""
    return crud.get_project_stats(db, claims.user_id)


@router.post("", response_model=schemas.ProjectOut, status_code=status.HTTP_201_CREATED)
def create_project(
    project_in: schemas.ProjectCreate,
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    return crud.create_project(db, claims.user_id, project_in)


@router.get("/{project_id}", response_model=schemas.ProjectOut)
def get_project(
    project_id: str,
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    project = crud.get_project(db, project_id, claims.user_id)
    if not project:
        raise NotFound(PROJECT_NOT_FOUND)
    return project


@router.put("/{project_id}", response_model=schemas.ProjectOut)
def update_project(
    project_id: str,
    project_in: schemas.ProjectUpdate,
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    project = crud.update_project(db, project_id, claims.user_id, project_in)
    if not project:
        raise NotFound(PROJECT_NOT_FOUND)
    return project


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: str,
    claims: schemas.TokenClaims = Depends(get_current_claims),
    db: Session = Depends(get_db),
):
    if not crud.delete_project(db, project_id, claims.user_id):
        raise NotFound(PROJECT_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
