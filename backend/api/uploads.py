"""
Image upload and file serving endpoints
"""

import logging
import os
import shutil
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from core.errors import ValidationError
from core.importer import is_image_file, register_upload
from backend.api.projects import get_project_store, get_image_store
from backend.api.schemas import CamelModel
from backend import config

logger = logging.getLogger(__name__)

router = APIRouter()


class UploadResponse(CamelModel):
    success: bool = True
    image_ids: list[int]


@router.post("/api/uploads/{project_id}", response_model=UploadResponse)
async def upload_images(project_id: int, images: list[UploadFile] = File(...)):
    """Store uploaded image files in the project's upload directory."""
    get_project_store().get(project_id)
    store = get_image_store()

    for upload in images:
        if not upload.filename or not is_image_file(upload.filename):
            raise ValidationError(f"Unsupported image file: {upload.filename}")

    dest_dir = Path(config.UPLOADS_DIR) / str(project_id)
    dest_dir.mkdir(parents=True, exist_ok=True)

    ids = []
    for upload in images:
        image_id, stored_name = register_upload(store, project_id, upload.filename)
        dest = dest_dir / stored_name
        try:
            with open(dest, "wb") as f:
                shutil.copyfileobj(upload.file, f)
        except OSError:
            # The record must not outlive its bytes
            logger.error(f"Project {project_id}: failed to store {upload.filename}, removing image {image_id}")
            dest.unlink(missing_ok=True)
            store.delete(image_id)
            raise
        ids.append(image_id)

    logger.info(f"Project {project_id}: uploaded {len(ids)} images")
    return UploadResponse(image_ids=ids)


@router.get("/uploads/{project_id}/{image_name}")
async def get_image_file(project_id: int, image_name: str):
    """Serve the bytes of an uploaded or folder-imported image."""
    image_id = image_name.split(".")[0]
    if not image_id.isdigit():
        raise HTTPException(status_code=404, detail="Image not found")

    image = get_image_store().get(int(image_id))

    if image.local_path:
        path = Path(image.local_path)
    else:
        path = Path(config.UPLOADS_DIR) / str(project_id) / os.path.basename(image_name)

    if not path.is_file():
        raise HTTPException(status_code=404, detail="Image file not found on disk")

    return FileResponse(path, filename=image.original_name)
