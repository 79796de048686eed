# app/domain/errors.py


class EditorError(Exception):
    """Base class for layout engine errors."""


class InvalidSource(EditorError, ValueError):
    """Native image dimensions are zero or not yet known. The fit is deferred."""


class UnsupportedFormat(EditorError, ValueError):
    """A template document matches none of the recognized shapes. Nothing was applied."""


class StaleCompletion(EditorError, RuntimeError):
    """An async result arrived after the context it was computed for was replaced."""


class FrameNotFound(EditorError, LookupError):
    def __init__(self, frame_id: str):
        super().__init__(f"Frame '{frame_id}' not found")
        self.frame_id = frame_id
