"""
Core data models for the labeling backend.

Dataclasses representing projects and the images tracked for labeling.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath
from typing import Optional, Any, NamedTuple
from urllib.parse import urlparse
import copy
import json


DEFAULT_FORM = {"formParts": []}


@dataclass
class Project:
    """Represents a labeling project."""
    id: int
    name: str
    created_at: datetime
    form_json: Optional[str] = None

    @property
    def form(self) -> dict:
        """Parse the label schema JSON to dict."""
        if self.form_json:
            return json.loads(self.form_json)
        return copy.deepcopy(DEFAULT_FORM)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "form": self.form,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class ImageRecord:
    """Represents an image in a project."""
    id: int
    project_id: int
    original_name: str
    link: Optional[str] = None
    external_link: Optional[str] = None
    local_path: Optional[str] = None  # Absolute path for folder imports
    label_data_json: Optional[str] = None
    labeled: bool = False
    last_edited: Optional[float] = None
    lease_expires_at: Optional[float] = None

    @property
    def label_data(self) -> Any:
        """Parse label data JSON. None when never written."""
        if self.label_data_json is None:
            return None
        return json.loads(self.label_data_json)

    @property
    def extension(self) -> str:
        """Lowercase file extension, including the dot, or '' if unknown."""
        for candidate in (self.original_name, self.local_path):
            # Links without a path keep the whole URL as their name
            if candidate and candidate != self.external_link:
                suffix = PurePosixPath(candidate).suffix
                if suffix:
                    return suffix.lower()
        if self.external_link:
            return PurePosixPath(urlparse(self.external_link).path).suffix.lower()
        return ""


class ExportEntry(NamedTuple):
    """A single archive entry produced by the export packager."""
    name: str
    contents: bytes


def label_data_to_json(label_data: Any) -> Optional[str]:
    """Convert label data to JSON text, keeping None as NULL."""
    if label_data is None:
        return None
    return json.dumps(label_data)


def form_to_json(form: dict) -> str:
    """Convert a label schema dict to JSON text."""
    return json.dumps(form)
