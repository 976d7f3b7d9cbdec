"""
ProjectStore and ImageStore - CRUD operations for projects and images.
"""

import re
import sqlite3
import time
from datetime import datetime
from pathlib import PurePosixPath
from typing import Any, Optional
from urllib.parse import urlparse, unquote

from core.errors import NotFoundError, ValidationError
from core.models import (
    Project, ImageRecord, DEFAULT_FORM, form_to_json, label_data_to_json
)


def natural_sort_key(s: str):
    """
    Key function for natural sorting of strings.
    E.g., sorts "img2.jpg" before "img10.jpg"
    """
    return [
        int(text) if text.isdigit() else text.lower()
        for text in re.split(r'(\d+)', s)
    ]


class ProjectStore:
    """
    Handles database operations for projects.
    """

    # Fields a client may change through update()
    UPDATABLE_FIELDS = {"name", "form"}

    def __init__(self, conn: sqlite3.Connection):
        """
        Initialize store with a shared connection.

        Args:
            conn: Connection returned by core.db.open_database
        """
        self.conn = conn

    def get_all(self) -> list[Project]:
        """List all projects ordered by creation."""
        cursor = self.conn.execute("SELECT * FROM projects ORDER BY id")
        return [self._row_to_project(row) for row in cursor.fetchall()]

    def create(self, name: str = "New Project", form: Optional[dict] = None) -> Project:
        """
        Create a new project.

        Args:
            name: Display name of the project
            form: Label schema; defaults to an empty form

        Returns:
            Created Project instance
        """
        cursor = self.conn.execute(
            "INSERT INTO projects (name, form_json) VALUES (?, ?)",
            (name, form_to_json(form if form is not None else DEFAULT_FORM))
        )
        self.conn.commit()
        return self.get(cursor.lastrowid)

    def get(self, project_id: int) -> Project:
        """Get project by ID, raising NotFoundError if it does not exist."""
        cursor = self.conn.execute(
            "SELECT * FROM projects WHERE id = ?",
            (project_id,)
        )
        row = cursor.fetchone()
        if not row:
            raise NotFoundError(f"Project {project_id} not found")
        return self._row_to_project(row)

    def update(self, project_id: int, partial: Any) -> None:
        """
        Update a project in place.

        Args:
            project_id: ID of the project
            partial: Dict with any of "name" (non-empty string) and "form" (dict)

        Raises:
            ValidationError: payload is not a dict, has unknown keys or bad types
            NotFoundError: project does not exist
        """
        if not isinstance(partial, dict) or not partial:
            raise ValidationError("Project update must be a non-empty object")

        unknown = set(partial) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown project fields: {', '.join(sorted(unknown))}")

        updates = []
        values = []
        if "name" in partial:
            name = partial["name"]
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("Project name must be a non-empty string")
            updates.append("name = ?")
            values.append(name)
        if "form" in partial:
            form = partial["form"]
            if not isinstance(form, dict):
                raise ValidationError("Project form must be an object")
            updates.append("form_json = ?")
            values.append(form_to_json(form))

        values.append(project_id)
        cursor = self.conn.execute(
            f"UPDATE projects SET {', '.join(updates)} WHERE id = ?",
            values
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Project {project_id} not found")

    def _row_to_project(self, row: sqlite3.Row) -> Project:
        """Convert database row to Project object."""
        return Project(
            id=row['id'],
            name=row['name'],
            created_at=datetime.fromisoformat(row['created_at']) if row['created_at'] else datetime.now(),
            form_json=row['form_json']
        )


class ImageStore:
    """
    Handles database operations for images and their labels.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    # ==================== Queries ====================

    def get_for_project(self, project_id: int) -> list[ImageRecord]:
        """
        List all images in a project.

        Args:
            project_id: ID of the project

        Returns:
            List of ImageRecord objects in creation order
        """
        cursor = self.conn.execute(
            "SELECT * FROM images WHERE project_id = ? ORDER BY id",
            (project_id,)
        )
        return [self._row_to_image(row) for row in cursor.fetchall()]

    def list_ids(self, project_id: int) -> list[int]:
        """List image ids of a project in creation order."""
        cursor = self.conn.execute(
            "SELECT id FROM images WHERE project_id = ? ORDER BY id",
            (project_id,)
        )
        return [row['id'] for row in cursor.fetchall()]

    def list_unlabeled(self, project_id: int) -> list[ImageRecord]:
        """List images still needing labels, in creation order."""
        cursor = self.conn.execute(
            """
            SELECT * FROM images
            WHERE project_id = ? AND labeled = 0
            ORDER BY id
            """,
            (project_id,)
        )
        return [self._row_to_image(row) for row in cursor.fetchall()]

    def get(self, image_id: int) -> ImageRecord:
        """Get image by ID, raising NotFoundError if it does not exist."""
        cursor = self.conn.execute(
            "SELECT * FROM images WHERE id = ?",
            (image_id,)
        )
        row = cursor.fetchone()
        if not row:
            raise NotFoundError(f"Image {image_id} not found")
        return self._row_to_image(row)

    # ==================== Creation ====================

    def add_image_urls(self, project_id: int, urls: Any) -> list[int]:
        """
        Add remote images to a project.

        Args:
            project_id: ID of the project
            urls: Non-empty list of absolute http(s) URLs

        Returns:
            IDs of the created images, in input order

        Raises:
            ValidationError: empty list or any invalid URL; nothing is inserted
        """
        if not isinstance(urls, list) or not urls:
            raise ValidationError("At least one image URL is required")
        for url in urls:
            if not _is_http_url(url):
                raise ValidationError(f"Invalid image URL: {url!r}")

        ids = []
        try:
            for url in urls:
                name = PurePosixPath(unquote(urlparse(url).path)).name or url
                cursor = self.conn.execute(
                    """
                    INSERT INTO images (project_id, original_name, link, external_link)
                    VALUES (?, ?, ?, ?)
                    """,
                    (project_id, name, url, url)
                )
                ids.append(cursor.lastrowid)
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise NotFoundError(f"Project {project_id} not found") from e
        self.conn.commit()
        return ids

    def add_image_stub(
        self,
        project_id: int,
        filename: str,
        local_path: Optional[str] = None
    ) -> int:
        """
        Create an image record whose link is not known yet.

        Args:
            project_id: ID of the project
            filename: Original file name
            local_path: Absolute path when imported from a local folder

        Returns:
            ID of the new image
        """
        try:
            cursor = self.conn.execute(
                """
                INSERT INTO images (project_id, original_name, local_path)
                VALUES (?, ?, ?)
                """,
                (project_id, filename, local_path)
            )
        except sqlite3.IntegrityError as e:
            self.conn.rollback()
            raise NotFoundError(f"Project {project_id} not found") from e
        self.conn.commit()
        return cursor.lastrowid

    def update_link(self, image_id: int, link: str) -> None:
        """Set the link of a freshly created stub."""
        self._update(image_id, "link = ?", (link,))

    # ==================== Labeling ====================

    def update_label_data(self, image_id: int, label_data: Any) -> None:
        """Overwrite label data; the labeled flag is left alone."""
        self._update(
            image_id,
            "label_data_json = ?, last_edited = ?",
            (label_data_to_json(label_data), time.time())
        )

    def update_labeled(self, image_id: int, labeled: bool) -> None:
        """Set the labeled flag. Marking an image labeled drops its lease."""
        if labeled:
            self._update(
                image_id,
                "labeled = 1, lease_expires_at = NULL, last_edited = ?",
                (time.time(),)
            )
        else:
            self._update(image_id, "labeled = 0, last_edited = ?", (time.time(),))

    def try_reserve(self, image_id: int, until: float, now: float) -> bool:
        """
        Atomically lease an unlabeled image.

        Succeeds only if the image is unlabeled and has no active lease.

        Returns:
            True if this call took the lease
        """
        cursor = self.conn.execute(
            """
            UPDATE images SET lease_expires_at = ?
            WHERE id = ? AND labeled = 0
              AND (lease_expires_at IS NULL OR lease_expires_at <= ?)
            """,
            (until, image_id, now)
        )
        self.conn.commit()
        return cursor.rowcount == 1

    def delete(self, image_id: int) -> None:
        """Delete an image record."""
        self.conn.execute("DELETE FROM images WHERE id = ?", (image_id,))
        self.conn.commit()

    def _update(self, image_id: int, assignments: str, values: tuple) -> None:
        cursor = self.conn.execute(
            f"UPDATE images SET {assignments} WHERE id = ?",
            (*values, image_id)
        )
        self.conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError(f"Image {image_id} not found")

    def _row_to_image(self, row: sqlite3.Row) -> ImageRecord:
        """Convert database row to ImageRecord object."""
        return ImageRecord(
            id=row['id'],
            project_id=row['project_id'],
            original_name=row['original_name'],
            link=row['link'],
            external_link=row['external_link'],
            local_path=row['local_path'],
            label_data_json=row['label_data_json'],
            labeled=bool(row['labeled']),
            last_edited=row['last_edited'],
            lease_expires_at=row['lease_expires_at']
        )


def _is_http_url(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
