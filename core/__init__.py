"""
Core module - Data model, storage, labeling state and export packaging
"""

from core.models import Project, ImageRecord, ExportEntry
from core.store import ProjectStore, ImageStore
from core.errors import LabelingError, NotFoundError, ValidationError, ImageReadError, TransportError
from core.allocator import Allocator
from core.mutator import LabelMutator
from core.exporter import ExportPackager
from core.archive import iter_zip, write_zip

__all__ = [
    "Project", "ImageRecord", "ExportEntry",
    "ProjectStore", "ImageStore",
    "LabelingError", "NotFoundError", "ValidationError", "ImageReadError", "TransportError",
    "Allocator", "LabelMutator", "ExportPackager",
    "iter_zip", "write_zip",
]
