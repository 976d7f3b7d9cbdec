"""
Error taxonomy shared by the stores, the labeling core and the API layer.
"""


class LabelingError(Exception):
    """Base class for errors raised by the labeling core."""

    code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LabelingError):
    """An id (project or image) did not resolve."""

    code = 404


class ValidationError(LabelingError):
    """Malformed input: bad update payload, empty URL list, no image files."""

    code = 400


class ImageReadError(LabelingError, IOError):
    """Image bytes could not be read from disk or fetched from a link."""

    code = 502

    def __init__(self, image_id: int, reason: str):
        super().__init__(f"Image {image_id} is unreadable: {reason}")
        self.image_id = image_id
        self.reason = reason


class TransportError(LabelingError):
    """Writing the export archive to its output failed."""

    code = 500
