"""
Project export packaging.

Produces the entries of a project archive:
- images/<image_id><ext>  raw bytes of every readable image, creation order
- labels.json             manifest with project metadata and per-image labels

Entries are generated lazily, one image at a time, and each image record is
re-read when its entry is produced. An image whose bytes cannot be read is
left out of the archive and listed under "omitted" in the manifest; the
export itself carries on.
"""

import json
import logging
from pathlib import Path
from typing import Iterator, Optional

import httpx

from core.errors import ImageReadError, NotFoundError
from core.models import ExportEntry, ImageRecord, Project

logger = logging.getLogger(__name__)

MANIFEST_NAME = "labels.json"
IMAGES_PREFIX = "images/"


class ImageReader:
    """
    Reads image bytes for export.

    Sources, in order: the local path of a folder import, the uploaded copy
    under uploads_dir, then the external link over HTTP.
    """

    def __init__(
        self,
        uploads_dir: str,
        fetch_timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.uploads_dir = Path(uploads_dir)
        self.fetch_timeout = fetch_timeout
        self.transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> "ImageReader":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def upload_path(self, image: ImageRecord) -> Path:
        """Where the upload endpoint stores the bytes of an image."""
        return self.uploads_dir / str(image.project_id) / f"{image.id}{image.extension}"

    def read(self, image: ImageRecord) -> bytes:
        """
        Read the bytes of an image.

        Raises:
            ImageReadError: file missing or unreadable, or link unreachable
        """
        if image.local_path:
            return self._read_file(image, Path(image.local_path))
        if image.external_link:
            return self._fetch(image, image.external_link)
        return self._read_file(image, self.upload_path(image))

    def _read_file(self, image: ImageRecord, path: Path) -> bytes:
        try:
            with open(path, "rb") as f:
                return f.read()
        except OSError as e:
            raise ImageReadError(image.id, f"cannot read {path}: {e.strerror or e}") from e

    def _fetch(self, image: ImageRecord, url: str) -> bytes:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.fetch_timeout,
                follow_redirects=True,
                transport=self.transport,
            )
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ImageReadError(image.id, f"{url} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ImageReadError(image.id, f"cannot fetch {url}: {e}") from e
        return response.content


class ExportPackager:
    """Builds the archive entries for a project export."""

    def __init__(
        self,
        projects,
        images,
        uploads_dir: str,
        fetch_timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            projects: Project store (see core.store.ProjectStore)
            images: Image store (see core.store.ImageStore)
            uploads_dir: Root directory of uploaded image files
            fetch_timeout: Seconds allowed per remote image fetch
            transport: Optional httpx transport for remote fetches
        """
        self.projects = projects
        self.images = images
        self.uploads_dir = uploads_dir
        self.fetch_timeout = fetch_timeout
        self.transport = transport

    def export_project(self, project_id: int) -> Iterator[ExportEntry]:
        """
        Start exporting a project.

        The project is resolved immediately, so an unknown id raises
        NotFoundError here rather than on first iteration.

        Returns:
            Lazy iterator of ExportEntry; closing it stops the export
        """
        project = self.projects.get(project_id)
        image_ids = self.images.list_ids(project_id)
        logger.info(f"Exporting project {project_id} ({len(image_ids)} images)")
        return self._generate(project, image_ids)

    def _generate(self, project: Project, image_ids: list[int]) -> Iterator[ExportEntry]:
        exported = []
        omitted = []

        with ImageReader(self.uploads_dir, self.fetch_timeout, self.transport) as reader:
            for image_id in image_ids:
                try:
                    image = self.images.get(image_id)
                except NotFoundError:
                    omitted.append({
                        "id": image_id,
                        "originalName": None,
                        "labeled": None,
                        "labelData": None,
                        "reason": "image was deleted during export",
                    })
                    continue

                try:
                    contents = reader.read(image)
                except ImageReadError as e:
                    logger.warning(f"Export of project {project.id}: skipping image {image.id}: {e.reason}")
                    omitted.append({
                        "id": image.id,
                        "originalName": image.original_name,
                        "labeled": image.labeled,
                        "labelData": image.label_data,
                        "reason": e.reason,
                    })
                    continue

                name = entry_name(image)
                exported.append({
                    "id": image.id,
                    "file": name,
                    "originalName": image.original_name,
                    "labeled": image.labeled,
                    "labelData": image.label_data,
                })
                yield ExportEntry(name, contents)

        if omitted:
            logger.warning(f"Export of project {project.id}: {len(omitted)} image(s) omitted")
        yield ExportEntry(MANIFEST_NAME, build_manifest(project, exported, omitted))


def entry_name(image: ImageRecord) -> str:
    """Archive entry name of an image's bytes."""
    return f"{IMAGES_PREFIX}{image.id}{image.extension}"


def build_manifest(project: Project, exported: list[dict], omitted: list[dict]) -> bytes:
    """Serialize the label manifest as canonical JSON."""
    manifest = {
        "project": project.to_dict(),
        "images": exported,
        "omitted": omitted,
    }
    return (json.dumps(manifest, indent=2, sort_keys=True) + "\n").encode("utf-8")
