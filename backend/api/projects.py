"""
Projects API endpoints
"""

import logging
import sqlite3
from typing import Any, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from core.db import open_database
from core.store import ProjectStore, ImageStore
from backend.api.schemas import ProjectResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()

# Stores shared by all routers, opened at startup
_conn: Optional[sqlite3.Connection] = None
_project_store: Optional[ProjectStore] = None
_image_store: Optional[ImageStore] = None


def init_stores(db_path: str) -> None:
    """Open the database and create the stores."""
    global _conn, _project_store, _image_store

    close_stores()
    _conn = open_database(db_path)
    _project_store = ProjectStore(_conn)
    _image_store = ImageStore(_conn)
    logger.info(f"Opened database {db_path}")


def close_stores() -> None:
    """Close the database connection."""
    global _conn, _project_store, _image_store

    if _conn is not None:
        _conn.close()
    _conn = None
    _project_store = None
    _image_store = None


def stores_ready() -> bool:
    return _conn is not None


def get_project_store() -> ProjectStore:
    """Get the project store."""
    if _project_store is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return _project_store


def get_image_store() -> ImageStore:
    """Get the image store."""
    if _image_store is None:
        raise HTTPException(status_code=503, detail="Database not initialized")
    return _image_store


class UpdateProjectRequest(BaseModel):
    project: Any = None


@router.get("", response_model=list[ProjectResponse])
async def list_projects():
    """List all projects."""
    store = get_project_store()
    return [ProjectResponse.from_project(p) for p in store.get_all()]


@router.post("", response_model=ProjectResponse)
async def create_project():
    """Create a new, empty project."""
    store = get_project_store()
    project = store.create()
    logger.info(f"Created project {project.id}")
    return ProjectResponse.from_project(project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int):
    """Get a project by ID."""
    store = get_project_store()
    return ProjectResponse.from_project(store.get(project_id))


@router.patch("/{project_id}", response_model=SuccessResponse)
async def update_project(project_id: int, request: UpdateProjectRequest):
    """Update a project's name and/or label form."""
    store = get_project_store()
    store.update(project_id, request.project)
    return SuccessResponse()
