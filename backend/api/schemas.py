"""
Response and request models shared by the API routers.

Field names are snake_case in Python and camelCase on the wire.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from core.models import Project, ImageRecord


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProjectResponse(CamelModel):
    id: int
    name: str
    form: dict
    created_at: datetime

    @classmethod
    def from_project(cls, project: Project):
        return cls(
            id=project.id,
            name=project.name,
            form=project.form,
            created_at=project.created_at,
        )


class ImageResponse(CamelModel):
    id: int
    project_id: int
    original_name: str
    link: Optional[str] = None
    external_link: Optional[str] = None
    local_path: Optional[str] = None
    label_data: Any = None
    labeled: bool
    last_edited: Optional[float] = None

    @classmethod
    def from_image(cls, image: ImageRecord):
        return cls(
            id=image.id,
            project_id=image.project_id,
            original_name=image.original_name,
            link=image.link,
            external_link=image.external_link,
            local_path=image.local_path,
            label_data=image.label_data,
            labeled=image.labeled,
            last_edited=image.last_edited,
        )


class SuccessResponse(BaseModel):
    success: bool = True
