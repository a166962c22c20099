"""Exceptions raised by the compositing pipeline."""


class CompositingError(Exception):
    """Base class for all compositing errors."""


class DegenerateGeometryError(CompositingError, ValueError):
    """Raised for zero-area images, a non-positive canvas or pixel ratio."""


class ImageLoadError(CompositingError):
    """Raised when one of the source images cannot be fetched or decoded."""

    def __init__(self, role, locator, reason):
        self.role = role
        self.locator = locator
        self.reason = reason
        super().__init__(f"Failed to load {role} image from {locator}: {reason}")
