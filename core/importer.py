"""
Adding images to a project from a local folder or from file uploads.
"""

import logging
import os
from pathlib import Path

from core.errors import ValidationError
from core.store import natural_sort_key

logger = logging.getLogger(__name__)

# Supported image extensions, matched case-insensitively
IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png'}


def is_image_file(filename: str) -> bool:
    """Check a file name against the supported image extensions."""
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def stored_name(image_id: int, filename: str) -> str:
    """File name of an image inside its project upload directory."""
    return f"{image_id}{Path(filename).suffix.lower()}"


def build_link(project_id: int, image_id: int, filename: str) -> str:
    """Public URL path under which an image's bytes are served."""
    return f"/uploads/{project_id}/{stored_name(image_id, filename)}"


def import_local_directory(images, project_id: int, local_path: str) -> list[int]:
    """
    Add every image file of a local directory to a project.

    Files are not copied; each image keeps the absolute path of its source.

    Args:
        images: Image store
        project_id: ID of the project
        local_path: Directory to scan (not recursive)

    Returns:
        IDs of the created images, in natural file name order

    Raises:
        ValidationError: directory missing or unreadable, or no image files in it
    """
    directory = Path(os.path.expanduser(local_path)).resolve()
    try:
        filenames = [entry.name for entry in directory.iterdir() if entry.is_file()]
    except OSError as e:
        raise ValidationError(f"Cannot read folder {local_path}: {e.strerror or e}") from e

    image_names = sorted(
        (name for name in filenames if is_image_file(name)),
        key=natural_sort_key
    )
    if not image_names:
        raise ValidationError("The specified folder has no image files.")

    ids = []
    for filename in image_names:
        image_id = images.add_image_stub(project_id, filename, str(directory / filename))
        images.update_link(image_id, build_link(project_id, image_id, filename))
        ids.append(image_id)

    logger.info(f"Project {project_id}: imported {len(ids)} images from {directory}")
    return ids


def register_upload(images, project_id: int, filename: str) -> tuple[int, str]:
    """
    Create the image record for an uploaded file.

    Args:
        images: Image store
        project_id: ID of the project
        filename: Client-side file name

    Returns:
        (image_id, stored_name) where stored_name is the file name to write
        the bytes to inside the project's upload directory
    """
    if not is_image_file(filename):
        raise ValidationError(f"Unsupported image file: {filename}")
    image_id = images.add_image_stub(project_id, filename, None)
    images.update_link(image_id, build_link(project_id, image_id, filename))
    return image_id, stored_name(image_id, filename)
