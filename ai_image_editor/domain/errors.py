from __future__ import annotations


class ImageEditorError(Exception):
    """Base class for errors raised by the editor's domain and application layers."""


class ImageValidationError(ImageEditorError):
    """Uploaded file was rejected before any processing happened."""


class SessionNotFoundError(ImageEditorError):
    pass


class SessionBusyError(ImageEditorError):
    """A remote operation is already in flight for this session."""


class NoImageLoadedError(ImageEditorError):
    pass


class HistoryIndexError(ImageEditorError):
    pass


class ImageLoadError(ImageEditorError):
    """An image reference could not be fetched or decoded."""


class AIServiceError(ImageEditorError):
    """Remote inference call failed or returned something unusable."""
