"""
Images API endpoints
"""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Query
from pydantic import StrictBool

from core.errors import ValidationError
from core.importer import import_local_directory
from core.mutator import LabelMutator, UNSET
from backend.api.projects import get_project_store, get_image_store
from backend.api.schemas import CamelModel, ImageResponse, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter()


class AddImagesRequest(CamelModel):
    project_id: int
    urls: Any = None
    local_path: Optional[str] = None


class AddImagesResponse(CamelModel):
    success: bool = True
    image_ids: list[int]


class LabelUpdateRequest(CamelModel):
    label_data: Any = None
    labeled: Optional[StrictBool] = None


@router.get("", response_model=list[ImageResponse])
async def list_images(project_id: Optional[int] = Query(None, alias="projectId")):
    """List all images of a project."""
    if project_id is None:
        raise ValidationError("projectId required")
    store = get_image_store()
    return [ImageResponse.from_image(img) for img in store.get_for_project(project_id)]


@router.get("/{image_id}", response_model=ImageResponse)
async def get_image(image_id: int):
    """Get image metadata by ID."""
    store = get_image_store()
    return ImageResponse.from_image(store.get(image_id))


@router.post("", response_model=AddImagesResponse)
async def add_images(request: AddImagesRequest):
    """Add images by remote URLs or from a folder on the server."""
    get_project_store().get(request.project_id)
    store = get_image_store()

    if request.urls is not None:
        ids = store.add_image_urls(request.project_id, request.urls)
        logger.info(f"Project {request.project_id}: added {len(ids)} image URLs")
    elif request.local_path:
        ids = import_local_directory(store, request.project_id, request.local_path)
    else:
        raise ValidationError("No urls or local path passed")

    return AddImagesResponse(image_ids=ids)


@router.patch("/{image_id}", response_model=SuccessResponse)
async def update_labels(image_id: int, request: LabelUpdateRequest):
    """Update the label data and/or labeled flag of an image."""
    mutator = LabelMutator(get_image_store())
    label_data = request.label_data if "label_data" in request.model_fields_set else UNSET
    mutator.apply(image_id, label_data=label_data, labeled=request.labeled)
    return SuccessResponse()


@router.delete("/{image_id}", response_model=SuccessResponse)
async def delete_image(image_id: int):
    """Delete an image."""
    store = get_image_store()
    store.delete(image_id)
    return SuccessResponse()
