"""
Label mutations on images.

Both transitions (unlabeled -> labeled and back) are always legal. Writes are
last-write-wins with no versioning. Marking an image labeled does not require
label data; callers that want that guarantee write label data first.
"""

import logging
from typing import Any, Optional

from core.errors import ValidationError
from core.models import ImageRecord

logger = logging.getLogger(__name__)

# Marker for "label data not supplied", since None is a legal payload
UNSET = object()


class LabelMutator:
    """Applies label data and labeled-flag updates to images."""

    def __init__(self, images):
        self.images = images

    def set_label_data(self, image_id: int, label_data: Any) -> ImageRecord:
        """Overwrite an image's label data. Raises NotFoundError for unknown ids."""
        self.images.update_label_data(image_id, label_data)
        logger.debug(f"Image {image_id}: label data updated")
        return self.images.get(image_id)

    def set_labeled(self, image_id: int, labeled: bool) -> ImageRecord:
        """Set an image's labeled flag. Raises NotFoundError for unknown ids."""
        if not isinstance(labeled, bool):
            raise ValidationError(f"'labeled' must be a boolean, got {labeled!r}")
        self.images.update_labeled(image_id, labeled)
        logger.debug(f"Image {image_id}: labeled={labeled}")
        return self.images.get(image_id)

    def apply(
        self,
        image_id: int,
        label_data: Any = UNSET,
        labeled: Optional[bool] = None,
    ) -> ImageRecord:
        """
        Apply a label update request.

        Label data is written before the flag so a request carrying both
        never leaves an image labeled with stale data.

        Args:
            image_id: ID of the image
            label_data: New label data, or UNSET to leave it untouched
            labeled: New flag value, or None to leave it untouched

        Returns:
            The image after the update
        """
        if label_data is UNSET and labeled is None:
            raise ValidationError("Nothing to update: pass labelData and/or labeled")

        image = None
        if label_data is not UNSET:
            image = self.set_label_data(image_id, label_data)
        if labeled is not None:
            image = self.set_labeled(image_id, labeled)
        return image
