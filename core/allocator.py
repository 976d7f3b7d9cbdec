"""
Labeling allocator.

Picks the next unlabeled image of a project. Allocation is first-by-creation
order, so repeated calls over an unchanged image set always agree.

Two modes:
- stateless (lease_seconds == 0): nothing is written; concurrent callers may
  be handed the same image.
- leased (lease_seconds > 0): the chosen image is reserved with a
  compare-and-set on its record until the lease expires or it gets labeled,
  so concurrent callers are spread over different images.
"""

import logging
import time
from typing import Callable, Optional

from core.models import ImageRecord

logger = logging.getLogger(__name__)


class Allocator:
    """Hands out unlabeled images of a project."""

    def __init__(
        self,
        images,
        lease_seconds: float = 0,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            images: Image store (see core.store.ImageStore)
            lease_seconds: How long an allocated image stays reserved; 0 disables leasing
            clock: Time source returning epoch seconds
        """
        self.images = images
        self.lease_seconds = lease_seconds
        self.clock = clock

    def allocate(self, project_id: int) -> Optional[int]:
        """
        Select the next image needing labels.

        Args:
            project_id: ID of the project. An unknown project has no candidates.

        Returns:
            Image ID, or None when no unlabeled images are left
        """
        candidates = self.images.list_unlabeled(project_id)
        if not candidates:
            logger.debug(f"Project {project_id}: no unlabeled images left")
            return None

        if self.lease_seconds <= 0:
            return candidates[0].id

        return self._allocate_leased(project_id, candidates)

    def _allocate_leased(self, project_id: int, candidates: list[ImageRecord]) -> int:
        now = self.clock()
        until = now + self.lease_seconds

        for image in candidates:
            if _lease_active(image, now):
                continue
            # Another caller may win the race between the scan and this write
            if self.images.try_reserve(image.id, until, now):
                logger.info(f"Project {project_id}: leased image {image.id} until {until:.0f}")
                return image.id

        # Everything is leased: hand out the one whose lease ends first
        fallback = min(candidates, key=lambda img: (img.lease_expires_at or 0, img.id))
        logger.info(
            f"Project {project_id}: all {len(candidates)} unlabeled images leased, "
            f"reusing image {fallback.id}"
        )
        return fallback.id


def _lease_active(image: ImageRecord, now: float) -> bool:
    return image.lease_expires_at is not None and image.lease_expires_at > now
