"""
Labeling API endpoints
"""

from typing import Optional

from fastapi import APIRouter, Query

from core.allocator import Allocator
from core.errors import NotFoundError, ValidationError
from backend.api.projects import get_project_store, get_image_store
from backend.api.schemas import CamelModel, ImageResponse, ProjectResponse
from backend import config

router = APIRouter()


class LabelingInfoResponse(CamelModel):
    project: ProjectResponse
    image: ImageResponse


@router.get("/getLabelingInfo")
async def get_labeling_info(
    project_id: Optional[int] = Query(None, alias="projectId"),
    image_id: Optional[int] = Query(None, alias="imageId"),
):
    """
    Get the project and the image to label next.

    With imageId the given image is returned; otherwise the next unlabeled
    image is allocated. Returns {"success": true} when nothing is left.
    """
    if project_id is None:
        raise ValidationError("projectId required")

    project = get_project_store().get(project_id)
    images = get_image_store()

    if image_id is None:
        allocator = Allocator(images, lease_seconds=config.ALLOCATION_LEASE_SECONDS)
        image_id = allocator.allocate(project_id)
        if image_id is None:
            return {"success": True}

    image = images.get(image_id)
    if image.project_id != project_id:
        raise NotFoundError(f"Image {image_id} not found in project {project_id}")
    return LabelingInfoResponse(
        project=ProjectResponse.from_project(project),
        image=ImageResponse.from_image(image),
    ).model_dump(mode="json", by_alias=True)
